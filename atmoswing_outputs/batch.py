"""
Collect the best-parameter reports of many optimizer runs into one wide table.

Runs are expected under folders named after the dataset and the method,
in any order and at any depth, e.g.::

    runs/JRA-55/4Z/1/results/..._station_12_best_parameters.txt

Reports that sit under no requested dataset or no requested method are
ignored. A malformed report aborts the whole batch.

Usage:
    table = aggregate_parameter_reports(
        "path/to/runs", "predictand_db.nc",
        datasets=["CFSR", "ERA-20C", "JRA-55"], methods=["2Z", "4Z", "4Z-2MI"])
    table.to_frame().to_csv("parameters.csv", index=False)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .errors import AtmoSwingOutputError, InvalidArgumentError
from .reports import read_report
from .stations import WideTable, load_station_table

logger = logging.getLogger(__name__)

REPORT_PATTERN = "*_station_*_best_parameters.txt"

# called as progress(dataset, method, pairs_done, pairs_total)
ProgressCallback = Callable[[str, str, int, int], None]


def discover_reports(root, pattern: str = REPORT_PATTERN) -> List[Path]:
    if not os.path.isdir(root):
        raise InvalidArgumentError("not a directory", path=os.fspath(root))
    return sorted(p for p in Path(root).rglob(pattern) if p.is_file())


def select(files: Sequence[Path], folder: str) -> List[Path]:
    """Files having ``folder`` as one of their directory names."""
    return [f for f in files if folder in f.parts[:-1]]


def aggregate_reports(
    table: WideTable,
    files: Sequence[Path],
    datasets: Sequence[str],
    methods: Sequence[str],
    verbose: bool = False,
    progress: Optional[ProgressCallback] = None,
) -> WideTable:
    """Parse and merge ``files`` for every (dataset, method) pair, in that order."""
    log = logger.info if verbose else logger.debug
    total = len(datasets) * len(methods)
    done = 0

    n_ignored = sum(
        1 for f in files
        if not (any(d in f.parts[:-1] for d in datasets) and any(m in f.parts[:-1] for m in methods))
    )
    if n_ignored:
        logger.warning(f"{n_ignored} report(s) match no requested dataset/method; ignored")

    for dataset in datasets:
        log(f"Dataset: {dataset}")
        files_dataset = select(files, dataset)
        for method in methods:
            log(f"Method: {method}")
            for path in select(files_dataset, method):
                try:
                    report = read_report(path)
                    log(f"Station: {report.station_id}")
                    table.merge(dataset, method, report)
                except AtmoSwingOutputError as exc:
                    raise exc.annotate(path=os.fspath(path))
            done += 1
            if progress is not None:
                progress(dataset, method, done, total)
    return table


def aggregate_parameter_reports(
    root,
    predictand_db,
    datasets: Sequence[str],
    methods: Sequence[str],
    verbose: bool = False,
    progress: Optional[ProgressCallback] = None,
    pattern: str = REPORT_PATTERN,
) -> WideTable:
    """Station table of ``predictand_db`` widened with every report under ``root``."""
    table = WideTable.seed(load_station_table(predictand_db))
    files = discover_reports(root, pattern)
    logger.info(f"Found {len(files)} report(s) under {os.fspath(root)}")
    return aggregate_reports(table, files, datasets, methods, verbose=verbose, progress=progress)
