"""Thin access layer over the netCDF files written by the AtmoSwing optimizer.

Variable names changed across producer versions, so each logical variable
maps to an ordered list of candidate names. Candidates are probed once when
the file is opened; a variable with no matching candidate only raises when
it is actually read.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional, Set, Tuple

import numpy as np
from netCDF4 import Dataset

from .errors import MissingVariableError, ResultFileNotFoundError

# logical name -> candidate names, probed in order
VARIABLE_ALIASES: Dict[str, Tuple[str, ...]] = {
    "analog_values_raw": ("analog_values_raw", "analog_values_gross"),
    "target_values_raw": ("target_values_raw", "target_values_gross"),
    "forecast_scores": ("forecast_scores", "scores"),
}


def candidates(name: str) -> Tuple[str, ...]:
    return VARIABLE_ALIASES.get(name, (name,))


def _as_array(data) -> np.ndarray:
    if np.ma.isMaskedArray(data) and data.dtype.kind == "f":
        return np.ma.filled(data, np.nan)
    return np.asarray(np.ma.getdata(data))


def situation_major(arr: np.ndarray, n_situations: Optional[int]) -> np.ndarray:
    """Return a 2-D array with the situation axis first.

    AtmoSwing stores (target_dates, analogs) but older files were written
    the other way round; the axis whose length equals the number of target
    situations is moved to the front. A square array (as many analogs as
    situations) is returned as stored, its orientation cannot be told from
    the shape.
    """
    if arr.ndim != 2 or n_situations is None:
        return arr
    if arr.shape[0] != n_situations and arr.shape[1] == n_situations:
        return arr.T
    return arr


class ResultFile:
    """Scoped handle on one netCDF file: ``with ResultFile(path) as nc: ...``"""

    def __init__(self, path):
        self.path = Path(path)
        self._nc: Optional[Dataset] = None
        self._resolved: Dict[str, Optional[str]] = {}

    def __enter__(self) -> "ResultFile":
        if not self.path.is_file():
            raise ResultFileNotFoundError("file not found", path=os.fspath(self.path))
        self._nc = Dataset(self.path, "r")
        names = self.variable_names()
        for logical, names_in_order in VARIABLE_ALIASES.items():
            self._resolved[logical] = next((v for v in names_in_order if v in names), None)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._nc is not None:
            self._nc.close()
            self._nc = None

    def variable_names(self) -> Set[str]:
        return set(self._nc.variables)

    def resolve(self, name: str) -> Optional[str]:
        """Stored name of logical variable ``name``, or None when absent."""
        if name in self._resolved:
            return self._resolved[name]
        return name if name in self.variable_names() else None

    def has(self, name: str) -> bool:
        return self.resolve(name) is not None

    def read(self, name: str) -> np.ndarray:
        stored = self.resolve(name)
        if stored is None:
            tried = ", ".join(candidates(name))
            raise MissingVariableError(f"no variable among: {tried}", path=os.fspath(self.path))
        return _as_array(self._nc.variables[stored][:])
