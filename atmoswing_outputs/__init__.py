"""Tabulate the outputs of the AtmoSwing optimizer (analogue method)."""

from .batch import aggregate_parameter_reports, discover_reports
from .errors import (
    AtmoSwingOutputError,
    DuplicateStationIdError,
    InvalidArgumentError,
    MalformedReportError,
    MissingVariableError,
    ResultFileNotFoundError,
    StationKeyError,
)
from .mjd import mjd_to_date, mjd_to_dates
from .reports import ParsedReport, parse_report, read_report
from .results import (
    ResultSet,
    load_analog_dates,
    load_analog_results,
    load_analog_values,
    load_scores,
    read_dates_file,
    read_values_file,
)
from .stations import ColumnKey, WideTable, load_station_table

__version__ = "0.1.0"
