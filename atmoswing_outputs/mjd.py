"""Modified Julian Day numbers to calendar dates (UTC, day granularity).

The time of day is dropped by flooring the day number, so 59000.99 and
59000.0 both map to 2020-05-31.
"""

from __future__ import annotations

import datetime

import numpy as np

from .errors import InvalidArgumentError

MJD_EPOCH = np.datetime64("1858-11-17", "D")


def mjd_to_dates(values) -> np.ndarray:
    """Vectorised conversion; returns ``datetime64[D]`` with the input shape."""
    try:
        arr = np.ma.filled(np.ma.asarray(values, dtype=float), np.nan)
    except (TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"not a day number: {values!r}") from exc
    if not np.all(np.isfinite(arr)):
        raise InvalidArgumentError("day numbers must be finite")
    days = np.floor(arr).astype(np.int64)
    return MJD_EPOCH + days.astype("timedelta64[D]")


def mjd_to_date(value: float) -> datetime.date:
    out = mjd_to_dates(np.asarray([value], dtype=float))
    return out[0].astype(datetime.date)
