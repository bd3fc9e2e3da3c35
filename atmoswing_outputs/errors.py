"""Exception types raised while reading AtmoSwing optimizer outputs.

Every error derives from :class:`AtmoSwingOutputError` and from the closest
builtin, so ``except ValueError`` / ``except LookupError`` keep working for
callers that do not know this package.
"""

from __future__ import annotations

from typing import Optional


class AtmoSwingOutputError(Exception):
    """Base class. Optionally carries the offending path and station id."""

    def __init__(self, message: str, *, path: Optional[str] = None,
                 station_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.station_id = station_id

    def annotate(self, path=None, station_id=None) -> "AtmoSwingOutputError":
        """Attach context (only fills what is still unknown) and return self."""
        if path is not None and self.path is None:
            self.path = str(path)
        if station_id is not None and self.station_id is None:
            self.station_id = str(station_id)
        return self

    def __str__(self) -> str:
        parts = []
        if self.path:
            parts.append(self.path)
        if self.station_id is not None:
            parts.append(f"station {self.station_id}")
        if parts:
            return f"{': '.join(parts)}: {self.message}"
        return self.message


class InvalidArgumentError(AtmoSwingOutputError, ValueError):
    """Bad period string, non-directory path, non-finite day number..."""


class ResultFileNotFoundError(AtmoSwingOutputError, FileNotFoundError):
    """An expected output file is absent."""


class MissingVariableError(AtmoSwingOutputError, LookupError):
    """None of the known aliases of a variable exists in the file."""


class MalformedReportError(AtmoSwingOutputError, ValueError):
    """A parameters report lacks required tokens or is inconsistent."""


class DuplicateStationIdError(AtmoSwingOutputError, ValueError):
    """Station metadata lists the same id more than once."""


class StationKeyError(AtmoSwingOutputError, LookupError):
    """A report refers to a station id that is not in the table."""
