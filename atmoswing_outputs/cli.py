"""
Command line for the AtmoSwing optimizer outputs.

Examples:
  # Wide table of the best parameters of all runs
  atmoswing-outputs aggregate \
    --root ./runs --predictand-db ./predictand_db.nc \
    --datasets CFSR ERA-20C JRA-55 --methods 2Z 4Z 4Z-2MI \
    --output best_parameters.csv

  # Same, as netCDF, settings from a JSON file
  atmoswing-outputs aggregate --config runs.json --format nc --output best_parameters.nc

  # Per-situation results of station 1, validation period, level 2
  atmoswing-outputs extract --dir ./runs/JRA-55/4Z/1/results \
    --station 1 --period validation --level 2 --output station_1.csv
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Iterable, List, Optional

from tqdm import tqdm

from .batch import aggregate_parameter_reports
from .config import build_config, dump_template, setup_logging
from .errors import AtmoSwingOutputError
from .results import PERIODS, load_analog_dates, load_analog_results, load_analog_values, load_scores

LOADERS = {
    "all": load_analog_results,
    "dates": load_analog_dates,
    "values": load_analog_values,
    "scores": load_scores,
}


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=None, help="JSON config file (CLI flags take precedence).")
    common.add_argument("--log-level", default=None, help="Logging level (default INFO).")
    common.add_argument("--dump-config-template", action="store_true",
                        help="Print the JSON config template and exit.")
    common.add_argument("--output", default=None, help="Output file.")

    ap = argparse.ArgumentParser(
        prog="atmoswing-outputs",
        description="Tabulate results and best parameters of AtmoSwing optimizer runs.",
    )
    sub = ap.add_subparsers(dest="command")

    agg = sub.add_parser("aggregate", parents=[common],
                         help="Merge *_best_parameters.txt reports into one station table.")
    agg.add_argument("--root", default=None, help="Root directory of the runs.")
    agg.add_argument("--predictand-db", dest="predictand_db", default=None,
                     help="Predictand DB (netCDF) holding the station metadata.")
    agg.add_argument("--datasets", nargs="+", default=None, help="Dataset folder names.")
    agg.add_argument("--methods", nargs="+", default=None, help="Method folder names.")
    agg.add_argument("--pattern", dest="report_pattern", default=None, help="Report file glob.")
    agg.add_argument("--format", choices=["csv", "nc"], default=None, help="Output format.")
    agg.add_argument("--verbose", action="store_true",
                     help="Log every dataset/method/station instead of a progress bar.")

    ext = sub.add_parser("extract", parents=[common],
                         help="Write the per-situation results of one station as CSV.")
    ext.add_argument("--dir", dest="directory", default=None,
                     help="Results directory containing calibration/ and validation/.")
    ext.add_argument("--station", default=None, help="Station id.")
    ext.add_argument("--period", choices=PERIODS, default=None)
    ext.add_argument("--level", type=int, default=None, help="Analogy level (1-based).")
    ext.add_argument("--what", choices=sorted(LOADERS), default=None)

    return ap


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def run_aggregate(cfg: dict) -> None:
    for key in ("root", "predictand_db", "datasets", "methods"):
        if not cfg.get(key):
            raise SystemExit(f"'{key}' must be provided via CLI or config")

    kwargs = dict(
        root=cfg["root"],
        predictand_db=cfg["predictand_db"],
        datasets=list(cfg["datasets"]),
        methods=list(cfg["methods"]),
        pattern=cfg["report_pattern"],
    )
    if cfg["verbose"]:
        table = aggregate_parameter_reports(verbose=True, **kwargs)
    else:
        total = len(kwargs["datasets"]) * len(kwargs["methods"])
        with tqdm(total=total, unit="run", desc="Parsing reports") as pbar:
            table = aggregate_parameter_reports(progress=lambda *_: pbar.update(1), **kwargs)

    fmt = str(cfg.get("format") or "csv").lower()
    output = cfg.get("output") or f"best_parameters.{fmt}"
    if fmt == "nc":
        table.to_dataset().to_netcdf(output)
    else:
        table.to_frame().to_csv(output, index=False)
    logging.info(f"Wrote {len(table)} stations x {len(table.column_names)} columns to {output}")


def run_extract(cfg: dict) -> None:
    for key in ("directory", "station"):
        if cfg.get(key) is None:
            raise SystemExit(f"'{key}' must be provided via CLI or config")

    level = int(cfg["level"])
    loader = LOADERS[cfg["what"]]
    rs = loader(cfg["directory"], cfg["station"], cfg["period"], level)
    output = cfg.get("output") or f"results_id_{cfg['station']}_{cfg['period']}_level_{level}.csv"
    rs.to_frame().to_csv(output)
    logging.info(f"Wrote {rs.n_situations} situations to {output}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    if args.command is None:
        build_parser().print_help()
        return 2
    if args.dump_config_template:
        print(dump_template())
        return 0

    ignored: List[str] = []
    cfg = build_config(args, ignored)
    setup_logging(cfg["log"])
    if ignored:
        logging.warning(f"Unknown config keys ignored: {', '.join(ignored)}")
    try:
        if args.command == "aggregate":
            run_aggregate(cfg)
        else:
            run_extract(cfg)
    except AtmoSwingOutputError as exc:
        logging.error(str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
