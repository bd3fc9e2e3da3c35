"""Run configuration: DEFAULT_CONFIG < JSON file (--config) < CLI flags."""

from __future__ import annotations

import json
import logging
import os
from typing import List, Optional

# ==========================
# Editable Configuration
# ==========================
DEFAULT_CONFIG = {
    # aggregate
    "root": None,                   # root directory of the optimizer runs
    "predictand_db": None,          # predictand DB (station metadata, netCDF)
    "datasets": [],                 # folder names, e.g. ["CFSR", "JRA-55"]
    "methods": [],                  # folder names, e.g. ["2Z", "4Z"]
    "report_pattern": "*_station_*_best_parameters.txt",
    "output": None,                 # default: best_parameters.<format> / results_id_<id>_....csv
    "format": "csv",                # csv or nc

    # extract
    "directory": None,              # optimizer results directory (with calibration/, validation/)
    "station": None,
    "period": "calibration",
    "level": 1,
    "what": "all",                  # all, dates, values, scores

    "verbose": False,
    "log": "INFO",
}

# argparse dest -> config key, for flags whose names differ
CLI_KEYS = {
    "log_level": "log",
}


def load_json_config(path: Optional[str]) -> dict:
    if not path:
        return {}
    with open(os.fspath(path), "r", encoding="utf-8") as f:
        return json.load(f)


def dump_template() -> str:
    return json.dumps(DEFAULT_CONFIG, indent=2)


def build_config(args, ignored: Optional[List[str]] = None) -> dict:
    """Merge defaults, the JSON file named by ``args.config`` and explicit flags.

    Keys of the file that are not settings are skipped and appended to
    ``ignored``; nothing is logged here, logging is not set up yet.
    """
    file_cfg = load_json_config(getattr(args, "config", None))
    if ignored is not None:
        ignored.extend(sorted(set(file_cfg) - set(DEFAULT_CONFIG)))
    cfg = {**DEFAULT_CONFIG, **{k: v for k, v in file_cfg.items() if k in DEFAULT_CONFIG}}

    # CLI precedence (None / False = not given)
    for dest, value in vars(args).items():
        key = CLI_KEYS.get(dest, dest)
        if key not in DEFAULT_CONFIG or value is None or value is False:
            continue
        cfg[key] = value
    return cfg


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO),
                        format='[%(levelname)s] %(message)s')
