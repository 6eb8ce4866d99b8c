"""Exception taxonomy for track ingestion, distance computation and export.

All exceptions derive from :class:`X2sysError` so callers can catch the whole
family, and each also derives from the closest builtin (``OSError``,
``ValueError``, ``KeyError``) so generic handlers keep working.
"""

from __future__ import annotations

from typing import Optional


class X2sysError(Exception):
    """Base class for every error raised by this package."""

    pass


class FileOpenError(X2sysError, OSError):
    """A definition file, track file or output file could not be opened."""

    pass


class FileCloseError(X2sysError, OSError):
    """Closing (or atomically replacing) a file failed."""

    pass


class LegNotFoundError(FileOpenError):
    """The MGG path lookup found no file for the requested leg name."""

    pass


class SchemaParseError(X2sysError, ValueError):
    """
    Raised when a field-definition body is malformed.

    The message includes the definition source name and the 1-based line
    number of the offending line.
    """

    def __init__(self, message: str, source: str = "<string>", line_no: Optional[int] = None):
        self.source = source
        self.line_no = line_no
        where = source if line_no is None else f"{source}:{line_no}"
        super().__init__(f"{where}: {message}")


class RecordDecodeError(X2sysError, ValueError):
    """One record could not be decoded (short read, bad token count, bad number)."""

    def __init__(self, message: str, record_index: Optional[int] = None):
        self.record_index = record_index
        if record_index is not None:
            message = f"record {record_index}: {message}"
        super().__init__(message)


class UnknownColumnNameError(X2sysError, KeyError):
    """An output column name does not match any schema field."""

    def __str__(self) -> str:
        # KeyError repr()s its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class UnsupportedDistanceModeError(X2sysError, ValueError):
    """The requested distance mode is not planar, flat-earth or great-circle."""

    pass


__all__ = [
    "X2sysError",
    "FileOpenError",
    "FileCloseError",
    "LegNotFoundError",
    "SchemaParseError",
    "RecordDecodeError",
    "UnknownColumnNameError",
    "UnsupportedDistanceModeError",
]
