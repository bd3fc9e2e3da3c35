"""
Station metadata from the predictand DB and the wide per-station table that
collects optimized parameters of many runs.

Dynamic columns are addressed by a :class:`ColumnKey`
``(dataset, method, field, level)`` and rendered as
``<dataset>_<method>_<field>[_<level>]`` (e.g. ``JRA-55_4Z_anb_1``) only when
the table is exported.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, List, NamedTuple, Optional

import numpy as np
import pandas as pd
import xarray as xr

from .errors import DuplicateStationIdError, InvalidArgumentError, StationKeyError
from .ncfiles import ResultFile, situation_major
from .reports import ParsedReport

logger = logging.getLogger(__name__)

BASE_COLUMNS = ("id", "x", "y", "h", "p10")
P10_RETURN_PERIOD = 10.0
# position of the 10-year period in the producer's default list
# (2, 2.33, 5, 10, 20, 50, 100)
P10_INDEX = 3


def station_key(value) -> str:
    """Canonical text form of a station id (1, 1.0, '1' and b'1' all give '1')."""
    if isinstance(value, (bytes, np.bytes_)):
        value = value.decode("utf-8", errors="replace")
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    s = str(value).strip()
    try:
        f = float(s)
    except ValueError:
        return s
    if np.isfinite(f) and f.is_integer():
        return str(int(f))
    return s


class ColumnKey(NamedTuple):
    dataset: str
    method: str
    field: str
    level: Optional[int] = None

    @property
    def name(self) -> str:
        parts = [self.dataset, self.method, self.field]
        if self.level is not None:
            parts.append(str(self.level))
        return "_".join(parts)


# ----------------------------
# Station metadata
# ----------------------------

def _p10_index(nc: ResultFile) -> int:
    if nc.has("return_periods"):
        periods = np.ravel(nc.read("return_periods"))
        hits = np.flatnonzero(np.isclose(periods, P10_RETURN_PERIOD))
        if hits.size:
            return int(hits[0])
    return P10_INDEX


def load_station_table(predictand_db) -> pd.DataFrame:
    """Read ids, coordinates, heights and the 10-year daily precipitation."""
    with ResultFile(predictand_db) as nc:
        ids = np.ravel(nc.read("station_ids"))
        precip = nc.read("daily_precipitations_for_return_periods")
        # stations first, return periods second
        precip = situation_major(np.atleast_2d(precip), ids.size)
        stations = pd.DataFrame({
            "id": ids,
            "x": np.ravel(nc.read("station_x_coords")),
            "y": np.ravel(nc.read("station_y_coords")),
            "h": np.ravel(nc.read("station_heights")),
            "p10": precip[:, _p10_index(nc)],
        })
    logger.info(f"Loaded {len(stations)} stations from {os.fspath(predictand_db)}")
    return stations


# ----------------------------
# Wide table
# ----------------------------

class WideTable:
    """One row per station; dynamic columns created the first time they are written."""

    def __init__(self, stations: pd.DataFrame):
        self.stations = stations.reset_index(drop=True)
        self._rows: Dict[str, int] = {}
        for i, sid in enumerate(self.stations["id"]):
            key = station_key(sid)
            if key in self._rows:
                raise DuplicateStationIdError(f"station id {key} listed more than once")
            self._rows[key] = i
        self._columns: Dict[ColumnKey, Dict[str, float]] = {}

    @classmethod
    def seed(cls, stations) -> "WideTable":
        df = pd.DataFrame(stations)
        missing = [c for c in BASE_COLUMNS if c not in df.columns]
        if missing:
            raise InvalidArgumentError(f"station metadata lacks columns: {', '.join(missing)}")
        return cls(df.loc[:, list(BASE_COLUMNS)])

    def __len__(self) -> int:
        return len(self.stations)

    @property
    def column_keys(self) -> List[ColumnKey]:
        return list(self._columns)

    @property
    def column_names(self) -> List[str]:
        return list(BASE_COLUMNS) + [k.name for k in self._columns]

    def _check_station(self, station_id) -> str:
        key = station_key(station_id)
        if key not in self._rows:
            raise StationKeyError("station id not in the station table", station_id=key)
        return key

    def column(self, key: ColumnKey) -> Dict[str, float]:
        """Values of a dynamic column by station, created empty if absent."""
        return self._columns.setdefault(key, {})

    def set(self, key: ColumnKey, station_id, value) -> None:
        self.column(key)[self._check_station(station_id)] = value

    def get(self, key, station_id, default=np.nan):
        """Cell value; ``key`` is a ColumnKey or a rendered column name."""
        sid = self._check_station(station_id)
        if isinstance(key, str):
            key = next((k for k in self._columns if k.name == key), None)
            if key is None:
                return default
        return self._columns.get(key, {}).get(sid, default)

    def merge(self, dataset: str, method: str, report: ParsedReport) -> "WideTable":
        """Write every field of ``report`` into the row of its station.

        Re-merging the same report overwrites the same cells.
        """
        sid = self._check_station(report.station_id)
        for name, level, value in report.items():
            key = ColumnKey(dataset, method, name, level)
            logger.debug(f"Field: {key.name}")
            self.column(key)[sid] = value
        return self

    # ----------------------------
    # Export
    # ----------------------------

    def to_frame(self) -> pd.DataFrame:
        base = self.stations.copy()
        if not self._columns:
            return base
        keys = [station_key(sid) for sid in base["id"]]
        dynamic = pd.DataFrame(
            {k.name: [values.get(s, np.nan) for s in keys] for k, values in self._columns.items()},
            index=base.index,
        )
        return pd.concat([base, dynamic], axis=1)

    def to_dataset(self) -> xr.Dataset:
        ds = self.to_frame().set_index("id").to_xarray()
        return ds.rename({"id": "station"})
