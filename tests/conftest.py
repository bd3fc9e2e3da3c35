from __future__ import annotations

from pathlib import Path
from typing import Dict, Sequence, Tuple

import numpy as np
import pytest
from netCDF4 import Dataset

RETURN_PERIODS = [2, 2.33, 5, 10, 20, 50, 100]
FIRST_MJD = 59000.0  # 2020-05-31


def write_nc(path: Path, dims: Dict[str, int], variables: Dict[str, Tuple[Sequence[str], np.ndarray]]):
    path.parent.mkdir(parents=True, exist_ok=True)
    with Dataset(path, "w") as nc:
        for name, size in dims.items():
            nc.createDimension(name, size)
        for name, (vdims, data) in variables.items():
            data = np.asarray(data)
            dtype = "i4" if data.dtype.kind in "iu" else "f8"
            var = nc.createVariable(name, dtype, tuple(vdims))
            var[:] = data
    return path


def write_results(directory: Path, station_id=1, period="calibration", level=1,
                  n=6, k=4, raw_name="raw", scores_name="forecast_scores",
                  analogs_first=False, with_raw=True):
    """AnalogValues/AnalogDates/Scores files of one station, period and level."""
    rng = np.random.default_rng(station_id * 10 + level)
    target = FIRST_MJD + np.arange(n, dtype=float)
    analog_dates = 50000.0 + rng.integers(0, 5000, size=(n, k)).astype(float) + 0.5
    criteria = np.sort(rng.random((n, k)), axis=1)
    norm = rng.random((n, k))
    raw = norm * 40.0

    def oriented(arr):
        if analogs_first:
            return ("analogs_nb", "target_dates"), arr.T
        return ("target_dates", "analogs_nb"), arr

    dims = {"target_dates": n, "analogs_nb": k}
    step = level - 1
    folder = directory / period

    values_vars = {
        "target_dates": (("target_dates",), target),
        "analog_criteria": oriented(criteria),
        "analog_values_norm": oriented(norm),
        "target_values_norm": (("target_dates",), norm[:, 0]),
    }
    if with_raw:
        values_vars[f"analog_values_{raw_name}"] = oriented(raw)
        values_vars[f"target_values_{raw_name}"] = (("target_dates",), raw[:, 0] + 1.0)
    write_nc(folder / f"AnalogValues_id_{station_id}_step_{step}.nc", dims, values_vars)
    write_nc(folder / f"AnalogDates_id_{station_id}_step_{step}.nc", dims, {
        "target_dates": (("target_dates",), target),
        "analog_dates": oriented(analog_dates),
    })
    write_nc(folder / f"Scores_id_{station_id}_step_{step}.nc", {"target_dates": n}, {
        scores_name: (("target_dates",), rng.random(n)),
    })
    return {
        "target": target, "analog_dates": analog_dates, "criteria": criteria,
        "norm": norm, "raw": raw,
    }


def write_predictand_db(path: Path, ids=(1, 2), with_periods=False, periods_first=False):
    ids = np.asarray(ids)
    n = ids.size
    # precipitation grows with the return period; p10 of station i is 10 * (i + 1)
    precip = np.array([[10.0 * (i + 1) * rp / 10.0 for rp in RETURN_PERIODS] for i in range(n)])
    if periods_first:
        precip_var = (("return_periods", "stations"), precip.T)
    else:
        precip_var = (("stations", "return_periods"), precip)
    variables = {
        "station_ids": (("stations",), ids),
        "station_x_coords": (("stations",), 600000.0 + 1000.0 * np.arange(n)),
        "station_y_coords": (("stations",), 200000.0 + 500.0 * np.arange(n)),
        "station_heights": (("stations",), 400.0 + 10.0 * np.arange(n)),
        "daily_precipitations_for_return_periods": precip_var,
    }
    if with_periods:
        variables["return_periods"] = (("return_periods",), np.array(RETURN_PERIODS))
    return write_nc(path, {"stations": n, "return_periods": len(RETURN_PERIODS)}, variables)


def make_report(station_id, levels=None, calib=0.8, valid=0.6, lower=False, header="AtmoSwing optimizer - best parameters"):
    """Report text in the producer's tab-separated layout.

    ``levels`` is a list of dicts with keys anb, xmin, ymin, xstep, ystep, xpts, ypts.
    """
    if levels is None:
        levels = [dict(anb=10, xmin=100, ymin=200, xstep=1.5, ystep=1.5, xpts=3, ypts=3)]
    kw = (dict(xmin="xMin", ymin="yMin", xstep="xStep", ystep="yStep", xpts="xPtsNb", ypts="yPtsNb")
          if lower else
          dict(xmin="Xmin", ymin="Ymin", xstep="Xstep", ystep="Ystep", xpts="Xptsnb", ypts="Yptsnb"))
    tokens = ["Station", str(station_id)]
    for i, lvl in enumerate(levels, start=1):
        tokens += ["Level", str(i), "Anb", str(lvl["anb"]), "Ptor", "1", "Data", "hgt_500hPa"]
        tokens += [kw["xmin"], str(lvl["xmin"]), kw["xpts"], str(lvl["xpts"]), kw["xstep"], str(lvl["xstep"])]
        tokens += [kw["ymin"], str(lvl["ymin"]), kw["ypts"], str(lvl["ypts"]), kw["ystep"], str(lvl["ystep"])]
    tokens += ["Calib", str(calib), "Valid", str(valid)]
    return header + "\n" + "\t".join(tokens) + "\n"


def write_report(root: Path, dataset, method, station_id, text=None, run="1"):
    path = root / dataset / method / run / "results" / f"{run}_station_{station_id}_best_parameters.txt"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text if text is not None else make_report(station_id))
    return path


@pytest.fixture
def results_dir(tmp_path):
    directory = tmp_path / "results"
    data = write_results(directory)
    return directory, data


@pytest.fixture
def predictand_db(tmp_path):
    return write_predictand_db(tmp_path / "predictand_db.nc")
