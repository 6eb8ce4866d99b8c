"""
export.writer
=============

Column selection and serialization of decoded tracks.

What this module provides
-------------------------
- `select_columns(schema, spec)`: resolve a comma-separated list of field
  names into a schema copy carrying the output order.  Unknown names raise
  `UnknownColumnNameError` before anything is written.
- `format_record(values, schema)`: one tab-separated ascii line, each value
  in its field's printf-style format, NaN written as the literal ``NaN``.
- `write_track(dest, schema, track, columns=None, binary=False)`: write every
  row of a Track as ascii lines or as raw float64 values.
- `format_crossover_record(out)` / `format_crossover_header(...)`: the fixed
  12-field crossover summary line and its ``>`` pair header.

Output guarantees
-----------------
- The column order is resolved once per write, never per row.
- When `dest` is a path, the file is written to ``<dest>.tmp`` and moved into
  place with `os.replace`; a failed selection never creates or truncates the
  target, and a write that fails for any reason removes the temporary file.
- Binary output is the selected columns as native-endian 8-byte floats, row
  after row, without separators.
"""

from __future__ import annotations

import logging
import math
import os
from pathlib import Path
from typing import IO, List, Optional, Sequence

import numpy as np

from x2sys_tracks.errors import FileCloseError, UnknownColumnNameError
from x2sys_tracks.ingest.fileio import open_file
from x2sys_tracks.models.catalog import SchemaCatalog
from x2sys_tracks.models.track import Track

__all__ = [
    "select_columns",
    "format_record",
    "write_track",
    "format_crossover_record",
    "format_crossover_header",
    "CROSSOVER_FORMAT",
]

logger = logging.getLogger(__name__)

# y x t1 t2 X1 X2 X3 M1 M2 M3 h1 h2
CROSSOVER_FORMAT = "%9.5f %9.5f %10.1f %10.1f %9.2f %9.2f %9.2f %8.1f %8.1f %8.1f %5.1f %5.1f\n"
# Positions of those twelve values in the crossover vector
_CROSSOVER_ORDER = (1, 0, 2, 3, 9, 11, 13, 8, 10, 12, 6, 7)


def select_columns(schema: SchemaCatalog, spec: Optional[str] = None) -> SchemaCatalog:
    """Schema copy whose ``out_order`` follows ``spec`` (all columns when None)."""
    return schema.with_output_columns(spec)


def format_record(values: Sequence[float], schema: SchemaCatalog) -> str:
    """
    Format one row (indexed like ``schema.fields``) as a tab-separated line.

    Only the columns in ``schema.out_order`` are written, in that order.
    """
    parts: List[str] = []
    for k in schema.out_order:
        v = float(values[k])
        parts.append("NaN" if math.isnan(v) else schema.fields[k].py_format % v)
    return "\t".join(parts) + "\n"


def _track_matrix(schema: SchemaCatalog, track: Track) -> np.ndarray:
    # Indexed like schema.fields; unselected columns stay NaN
    wanted = sorted(set(schema.out_order))
    missing = [schema.fields[k].name for k in wanted if schema.fields[k].name not in track.df.columns]
    if missing:
        raise UnknownColumnNameError(
            f"Track '{track.name}' has no column(s) {', '.join(missing)} required by schema '{schema.name}'"
        )
    data = np.full((track.n_rows, schema.n_fields), np.nan, dtype=np.float64)
    for k in wanted:
        data[:, k] = track.df[schema.fields[k].name].to_numpy(dtype=np.float64)
    return data


def _write_rows(fp: IO, schema: SchemaCatalog, data: np.ndarray, binary: bool) -> None:
    if binary:
        fp.write(np.ascontiguousarray(data[:, list(schema.out_order)], dtype=np.float64).tobytes())
        return
    for row in data:
        fp.write(format_record(row, schema))


def write_track(
    dest: str | Path | IO,
    schema: SchemaCatalog,
    track: Track,
    columns: Optional[str] = None,
    binary: bool = False,
) -> int:
    """
    Write all rows of ``track`` using ``schema`` formats.

    Parameters
    ----------
    dest:
        Output path, or an open stream (text stream for ascii, binary stream
        for ``binary=True``).
    schema:
        Schema describing the track's columns.
    track:
        Decoded track; must contain every schema field as a column.
    columns:
        Optional comma-separated field names selecting and ordering output.
    binary:
        Write raw float64 values instead of formatted text.

    Returns
    -------
    int
        Number of output columns.

    Raises
    ------
    UnknownColumnNameError
        If ``columns`` names a field the schema lacks, or the track lacks a
        schema field.  Raised before ``dest`` is opened.
    """
    selected = select_columns(schema, columns)
    data = _track_matrix(selected, track)

    if not isinstance(dest, (str, Path)):
        _write_rows(dest, selected, data, binary)
        return selected.n_out_columns

    path = Path(dest)
    tmp_path = path.with_name(path.name + ".tmp")
    mode = "wb" if binary else "w"
    kwargs = {} if binary else {"encoding": "ascii", "newline": ""}
    try:
        with open_file(tmp_path, mode, **kwargs) as fp:
            _write_rows(fp, selected, data, binary)
        try:
            os.replace(tmp_path, path)
        except OSError as e:
            raise FileCloseError(f"Could not move {tmp_path} to {path}: {e}") from e
    except BaseException:
        if tmp_path.exists():
            tmp_path.unlink()
        raise
    logger.debug("wrote %d rows x %d columns to %s", len(data), selected.n_out_columns, path)
    return selected.n_out_columns


def format_crossover_record(out: Sequence[float]) -> str:
    """
    Format a crossover vector as the 12-field summary line.

    ``out`` holds at least 14 values: x, y, t1, t2, two distances (not
    printed), h1, h2, then three (M, X) pairs at 8-9, 10-11 and 12-13.  The
    line is ``y x t1 t2 X1 X2 X3 M1 M2 M3 h1 h2``.
    """
    if len(out) < 14:
        raise ValueError(f"crossover vector needs 14 values, got {len(out)}")
    return CROSSOVER_FORMAT % tuple(float(out[i]) for i in _CROSSOVER_ORDER)


def format_crossover_header(name1: str, year1: int, name2: str, year2: int) -> str:
    """``> name1 year1 name2 year2`` line introducing one track pair."""
    return f"> {name1} {int(year1)} {name2} {int(year2)}\n"
