import numpy as np
import pytest

from atmoswing_outputs import MissingVariableError, ResultFileNotFoundError
from atmoswing_outputs.ncfiles import ResultFile, situation_major

from conftest import write_results


def test_missing_file(tmp_path):
    with pytest.raises(ResultFileNotFoundError) as info:
        with ResultFile(tmp_path / "nope.nc"):
            pass
    assert "nope.nc" in str(info.value)


def test_primary_alias_resolved(results_dir):
    directory, data = results_dir
    with ResultFile(directory / "calibration" / "AnalogValues_id_1_step_0.nc") as nc:
        assert nc.resolve("analog_values_raw") == "analog_values_raw"
        np.testing.assert_allclose(nc.read("analog_values_raw"), data["raw"])


def test_legacy_alias_resolved(tmp_path):
    data = write_results(tmp_path, raw_name="gross", scores_name="scores")
    with ResultFile(tmp_path / "calibration" / "AnalogValues_id_1_step_0.nc") as nc:
        assert nc.resolve("analog_values_raw") == "analog_values_gross"
        assert nc.resolve("target_values_raw") == "target_values_gross"
        np.testing.assert_allclose(nc.read("analog_values_raw"), data["raw"])
    with ResultFile(tmp_path / "calibration" / "Scores_id_1_step_0.nc") as nc:
        assert nc.resolve("forecast_scores") == "scores"


def test_unresolved_alias_fails_only_when_read(tmp_path):
    write_results(tmp_path, with_raw=False)
    with ResultFile(tmp_path / "calibration" / "AnalogValues_id_1_step_0.nc") as nc:
        assert nc.resolve("analog_values_raw") is None
        assert nc.read("analog_values_norm").shape == (6, 4)
        with pytest.raises(MissingVariableError) as info:
            nc.read("analog_values_raw")
    assert "analog_values_gross" in str(info.value)


def test_handle_released(results_dir):
    directory, _ = results_dir
    rf = ResultFile(directory / "calibration" / "AnalogDates_id_1_step_0.nc")
    with pytest.raises(MissingVariableError):
        with rf as nc:
            nc.read("not_there")
    assert rf._nc is None


def test_situation_major():
    arr = np.arange(12).reshape(4, 3)
    assert situation_major(arr, 3).shape == (3, 4)
    assert situation_major(arr, 4) is arr
    assert situation_major(np.arange(5), 5).shape == (5,)


def test_situation_major_keeps_square_array():
    arr = np.arange(9).reshape(3, 3)
    assert situation_major(arr, 3) is arr


def test_square_matrix_read_as_stored(tmp_path):
    data = write_results(tmp_path, n=4, k=4, analogs_first=True)
    with ResultFile(tmp_path / "calibration" / "AnalogValues_id_1_step_0.nc") as nc:
        stored = nc.read("analog_values_norm")
    np.testing.assert_allclose(situation_major(stored, 4), data["norm"].T)


def test_variable_names(results_dir):
    directory, _ = results_dir
    with ResultFile(directory / "calibration" / "AnalogDates_id_1_step_0.nc") as nc:
        assert nc.variable_names() == {"target_dates", "analog_dates"}
        assert nc.has("analog_dates")
        assert not nc.has("analog_criteria")
