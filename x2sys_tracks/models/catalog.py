from __future__ import annotations

import enum
import re
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

import numpy as np

from x2sys_tracks.config import LonDomain
from x2sys_tracks.errors import UnknownColumnNameError


class FieldType(enum.Enum):
    """
    Physical encoding of one schema field.

    The value is the single-character type tag used in definition files.
    """

    ASCII_CARD = "A"
    ASCII_TOKEN = "a"
    INT8 = "c"
    UINT8 = "u"
    INT16 = "h"
    INT32 = "i"
    INT64 = "l"
    FLOAT32 = "f"
    FLOAT64 = "d"

    @property
    def is_ascii(self) -> bool:
        return self in (FieldType.ASCII_CARD, FieldType.ASCII_TOKEN)

    def dtype(self, byteorder: str = "=") -> Optional[np.dtype]:
        """numpy dtype of the raw binary value, or None for ascii encodings."""
        code = _BINARY_CODES.get(self)
        if code is None:
            return None
        dt = np.dtype(code)
        if dt.itemsize > 1:
            dt = dt.newbyteorder(byteorder)
        return dt

    @property
    def nbytes(self) -> int:
        dt = self.dtype()
        return 0 if dt is None else int(dt.itemsize)


# "l" is the platform C long (8 bytes on LP64, 4 on Windows)
_BINARY_CODES: Dict[FieldType, str] = {
    FieldType.INT8: "i1",
    FieldType.UINT8: "u1",
    FieldType.INT16: "i2",
    FieldType.INT32: "i4",
    FieldType.INT64: "l",
    FieldType.FLOAT32: "f4",
    FieldType.FLOAT64: "f8",
}


class RecordLayout(enum.Enum):
    """How one record is laid out on disk (decided once per schema)."""

    CARD = "card"  # one text line, fixed column slices
    TOKEN = "token"  # one text line, whitespace/comma separated tokens
    BINARY = "binary"  # fixed-width binary values in schema order


@dataclass(frozen=True)
class FieldDescriptor:
    """
    One column of a track definition.

    Notes
    - ``start_col``/``n_cols`` are only meaningful for ascii-card fields
      (0-based start column and width).
    - ``do_scale`` is False when (scale, offset) is exactly (1, 0).
    """
    name: str
    ftype: FieldType
    has_nan_proxy: bool = False
    nan_proxy: float = 0.0
    scale: float = 1.0
    offset: float = 0.0
    format: str = "%g"
    start_col: int = 0
    n_cols: int = 0

    @property
    def do_scale(self) -> bool:
        return not (self.scale == 1.0 and self.offset == 0.0)

    @property
    def stop_col(self) -> int:
        return self.start_col + self.n_cols - 1

    @property
    def py_format(self) -> str:
        return printf_to_python(self.format)


@dataclass(frozen=True)
class SchemaCatalog:
    """
    Parsed track definition: ordered fields plus file-level flags.

    Built once by :mod:`x2sys_tracks.ingest.definition` and never mutated;
    :meth:`with_output_columns` returns a new catalog.

    Notes
    - Role columns (x/lon, y/lat, t/time) are None when absent.
    - ``use_column``/``out_order`` describe the output column selection; by
      default every field is used, in schema order.
    """
    name: str
    fields: Tuple[FieldDescriptor, ...]
    ascii_in: bool = True
    skip: int = 0
    multi_segment: bool = False
    ms_flag: str = ">"
    geographic: bool = False
    lon_domain: LonDomain = LonDomain.POSITIVE
    x_col: Optional[int] = None
    y_col: Optional[int] = None
    t_col: Optional[int] = None
    use_column: Tuple[bool, ...] = ()
    out_order: Tuple[int, ...] = ()

    def __post_init__(self) -> None:
        n = len(self.fields)
        if not self.use_column:
            object.__setattr__(self, "use_column", (True,) * n)
        if not self.out_order:
            object.__setattr__(self, "out_order", tuple(range(n)))

    @property
    def n_fields(self) -> int:
        return len(self.fields)

    @property
    def n_out_columns(self) -> int:
        return len(self.out_order)

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    @property
    def layout(self) -> RecordLayout:
        types = {f.ftype for f in self.fields}
        if FieldType.ASCII_CARD in types:
            return RecordLayout.CARD
        if FieldType.ASCII_TOKEN in types:
            return RecordLayout.TOKEN
        return RecordLayout.BINARY

    @property
    def record_length(self) -> int:
        """Byte length of the binary part of one record."""
        return sum(f.ftype.nbytes for f in self.fields)

    @property
    def n_data_cols(self) -> int:
        """Selected columns that are not x, y or t."""
        roles = {self.x_col, self.y_col, self.t_col}
        return sum(
            1 for i in range(self.n_fields) if i not in roles and self.use_column[i]
        )

    @property
    def crossover_record_size(self) -> int:
        """Bytes per binary crossover record: 8 doubles plus one per data column."""
        return (8 + self.n_data_cols) * 8

    def index(self, name: str) -> int:
        """Index of the field called ``name`` (case-sensitive exact match)."""
        for i, f in enumerate(self.fields):
            if f.name == name:
                return i
        raise UnknownColumnNameError(f"Unknown column name {name!r} (schema '{self.name}' has: {', '.join(self.field_names)})")

    def with_output_columns(self, spec: Optional[str]) -> "SchemaCatalog":
        """
        Return a copy whose output selection follows ``spec``.

        ``spec`` is a comma-separated list of field names; None or "" keeps
        every column in schema order.  Every name is resolved before anything
        changes, so an unknown name or a selection naming no column at all
        leaves no partial selection behind.
        """
        if not spec:
            return replace(
                self,
                use_column=(True,) * self.n_fields,
                out_order=tuple(range(self.n_fields)),
            )
        order = [self.index(tok) for tok in spec.split(",") if tok != ""]
        if not order:
            raise UnknownColumnNameError(f"Column selection {spec!r} names no columns (schema '{self.name}')")
        use = [False] * self.n_fields
        for k in order:
            use[k] = True
        return replace(self, use_column=tuple(use), out_order=tuple(order))


_LENGTH_MODIFIER = re.compile(r"%([-+ #0]*\d*(?:\.\d+)?)(?:hh|h|ll|l|L|q|j|z|t)?([diouxXeEfFgG])")


def printf_to_python(fmt: str) -> str:
    """Drop C length modifiers (``%10.5lf`` -> ``%10.5f``) so ``fmt % value`` works."""
    return _LENGTH_MODIFIER.sub(r"%\1\2", fmt)
