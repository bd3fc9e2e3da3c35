"""
Extract analogue-method results from the AtmoSwing optimizer netCDF outputs.

Layout of an optimizer run directory::

    <directory>/calibration/AnalogValues_id_<id>_step_<level-1>.nc
    <directory>/calibration/AnalogDates_id_<id>_step_<level-1>.nc
    <directory>/calibration/Scores_id_<id>_step_<level-1>.nc
    <directory>/validation/...

Levels are 1-based for callers and 0-based in file names. Every loader
returns a :class:`ResultSet` whose arrays are indexed by target situation
first (row = target date, column = analogue rank).

Usage:
    rs = load_analog_results("optimizer-outputs/1/results", 1, "validation")
    rs.to_frame().to_csv("station_1_validation.csv")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd

from .errors import InvalidArgumentError, ResultFileNotFoundError
from .mjd import mjd_to_dates
from .ncfiles import ResultFile, situation_major

logger = logging.getLogger(__name__)

PERIODS = ("calibration", "validation")
FILE_PREFIXES = {
    "values": "AnalogValues",
    "dates": "AnalogDates",
    "scores": "Scores",
}


@dataclass
class ResultSet:
    """Results for one station, period and analogy level.

    Fields a given loader does not read stay ``None``.
    """
    target_dates_mjd: np.ndarray
    target_dates: np.ndarray
    analog_dates_mjd: Optional[np.ndarray] = None
    analog_dates: Optional[np.ndarray] = None
    analog_criteria: Optional[np.ndarray] = None
    analog_values_norm: Optional[np.ndarray] = None
    analog_values_raw: Optional[np.ndarray] = None
    target_values_norm: Optional[np.ndarray] = None
    target_values_raw: Optional[np.ndarray] = None
    scores: Optional[np.ndarray] = None

    def __post_init__(self):
        n = self.n_situations
        for f in fields(self):
            arr = getattr(self, f.name)
            if arr is not None and arr.ndim > 0 and arr.shape[0] != n:
                raise InvalidArgumentError(
                    f"{f.name} has {arr.shape[0]} situations, expected {n}")

    @property
    def n_situations(self) -> int:
        return int(self.target_dates_mjd.shape[0])

    def to_frame(self) -> pd.DataFrame:
        """One row per target situation; matrices become ``<name>_<rank>`` columns."""
        columns: Dict[str, np.ndarray] = {}
        for f in fields(self):
            arr = getattr(self, f.name)
            if arr is None:
                continue
            if arr.ndim == 2:
                for k in range(arr.shape[1]):
                    columns[f"{f.name}_{k + 1}"] = arr[:, k]
            else:
                columns[f.name] = arr
        df = pd.DataFrame(columns)
        df.index.name = "situation"
        return df


# ----------------------------
# Paths / argument checks
# ----------------------------

def result_path(directory, kind: str, station_id, period: str, level: int = 1) -> Path:
    prefix = FILE_PREFIXES[kind]
    return Path(directory) / period / f"{prefix}_id_{station_id}_step_{int(level) - 1}.nc"


def _check_args(directory, period: str, level: int) -> None:
    if period not in PERIODS:
        raise InvalidArgumentError(f'period must be "calibration" or "validation", got {period!r}')
    if not os.path.isdir(directory):
        raise InvalidArgumentError(f"not a directory (cwd: {os.getcwd()})", path=os.fspath(directory))
    if int(level) < 1:
        raise InvalidArgumentError(f"level is 1-based, got {level}")


def _require(path: Path) -> Path:
    if not path.is_file():
        raise ResultFileNotFoundError("file not found", path=os.fspath(path))
    return path


def _target_dates(nc: ResultFile):
    mjd = np.ravel(nc.read("target_dates"))
    return mjd, mjd_to_dates(mjd)


def _scores(nc: ResultFile, n: int) -> np.ndarray:
    return situation_major(nc.read("forecast_scores"), n)


# ----------------------------
# File-level readers
# ----------------------------

def read_dates_file(path) -> ResultSet:
    """Analogue and target dates from one AnalogDates file."""
    with ResultFile(path) as ad:
        mjd, dates = _target_dates(ad)
        analog_mjd = situation_major(ad.read("analog_dates"), mjd.size)
    return ResultSet(
        target_dates_mjd=mjd,
        target_dates=dates,
        analog_dates_mjd=analog_mjd,
        analog_dates=mjd_to_dates(analog_mjd),
    )


def read_values_file(path) -> ResultSet:
    """Raw analogue and target predictand values from one AnalogValues file."""
    with ResultFile(path) as av:
        mjd, dates = _target_dates(av)
        return ResultSet(
            target_dates_mjd=mjd,
            target_dates=dates,
            analog_values_raw=situation_major(av.read("analog_values_raw"), mjd.size),
            target_values_raw=np.ravel(av.read("target_values_raw")),
        )


# ----------------------------
# Directory-level loaders
# ----------------------------

def load_analog_results(directory, station_id, period: str, level: int = 1) -> ResultSet:
    """Dates, criteria, values and scores for the analogues and target situations."""
    _check_args(directory, period, level)
    path_values = _require(result_path(directory, "values", station_id, period, level))
    path_dates = _require(result_path(directory, "dates", station_id, period, level))
    path_scores = _require(result_path(directory, "scores", station_id, period, level))
    logger.debug(f"Loading results of station {station_id} ({period}, level {level})")

    with ResultFile(path_values) as av, ResultFile(path_dates) as ad, ResultFile(path_scores) as sc:
        mjd, dates = _target_dates(av)
        n = mjd.size
        analog_mjd = situation_major(ad.read("analog_dates"), n)
        return ResultSet(
            target_dates_mjd=mjd,
            target_dates=dates,
            analog_dates_mjd=analog_mjd,
            analog_dates=mjd_to_dates(analog_mjd),
            analog_criteria=situation_major(av.read("analog_criteria"), n),
            analog_values_norm=situation_major(av.read("analog_values_norm"), n),
            analog_values_raw=situation_major(av.read("analog_values_raw"), n),
            target_values_norm=np.ravel(av.read("target_values_norm")),
            target_values_raw=np.ravel(av.read("target_values_raw")),
            scores=_scores(sc, n),
        )


def load_analog_dates(directory, station_id, period: str, level: int = 1) -> ResultSet:
    _check_args(directory, period, level)
    return read_dates_file(_require(result_path(directory, "dates", station_id, period, level)))


def load_analog_values(directory, station_id, period: str, level: int = 1) -> ResultSet:
    _check_args(directory, period, level)
    return read_values_file(_require(result_path(directory, "values", station_id, period, level)))


def load_scores(directory, station_id, period: str, level: int = 1) -> ResultSet:
    """Target dates and values with the forecast score of each situation."""
    _check_args(directory, period, level)
    path_values = _require(result_path(directory, "values", station_id, period, level))
    path_scores = _require(result_path(directory, "scores", station_id, period, level))

    with ResultFile(path_values) as av, ResultFile(path_scores) as sc:
        mjd, dates = _target_dates(av)
        return ResultSet(
            target_dates_mjd=mjd,
            target_dates=dates,
            target_values_norm=np.ravel(av.read("target_values_norm")),
            target_values_raw=np.ravel(av.read("target_values_raw")),
            scores=_scores(sc, mjd.size),
        )
