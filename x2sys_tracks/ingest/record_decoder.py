from __future__ import annotations

import logging
import re
from typing import BinaryIO, List, Optional

import numpy as np

from x2sys_tracks.config import LonDomain, TrackReaderConfig
from x2sys_tracks.errors import RecordDecodeError
from x2sys_tracks.models.catalog import FieldType, RecordLayout, SchemaCatalog

logger = logging.getLogger(__name__)

_TOKEN_SPLIT = re.compile(r"[ ,\t\r\n]+")
_GEO_TEXT = re.compile(
    r"^([+-]?)(\d+(?:\.\d*)?)(?::(\d+(?:\.\d*)?))?(?::(\d+(?:\.\d*)?))?([WESNwesn]?)$"
)


def parse_geographic(text: str) -> float:
    """
    Parse ``ddd[:mm[:ss.s]][W|E|S|N]`` into decimal degrees.

    W and S (or a leading minus) give negative values.  Raises ValueError
    when ``text`` is not in that form.
    """
    m = _GEO_TEXT.match(text.strip())
    if not m:
        raise ValueError(f"not a geographic coordinate: {text!r}")
    sign, deg, minutes, seconds, hemi = m.groups()
    value = float(deg)
    if minutes is not None:
        value += float(minutes) / 60.0
    if seconds is not None:
        value += float(seconds) / 3600.0
    if sign == "-" or hemi.upper() in ("W", "S"):
        value = -value
    return value


class RecordDecoder:
    """
    Decode one record (one row) at a time from an open binary stream.

    The record layout is fixed by the schema:

    - CARD: one text line per record; ascii-card fields slice fixed columns
      (a blank or short slice is NaN), binary fields (if any) follow the
      line in the stream.
    - TOKEN: one text line per record split on whitespace/comma; tokens fill
      the fields in schema order and the count must match exactly.
    - BINARY: fixed-width values read in schema order.

    For text layouts, lines starting with ``#`` or the segment marker are
    header lines and are skipped (blank lines too).  When the schema is
    multi-segment, skipping a header line sets :attr:`ms_next`, which tells
    the caller that the decoded row starts a new segment.

    :meth:`decode` returns None on a clean end of input and raises
    :class:`RecordDecodeError` on a partial or malformed record.
    """

    def __init__(self, schema: SchemaCatalog, config: Optional[TrackReaderConfig] = None):
        self.schema = schema
        self.config = config or TrackReaderConfig()
        self.layout = schema.layout
        self.lon_domain: LonDomain = self.config.lon_domain if self.config.lon_domain is not None else schema.lon_domain

        self.ms_next = False
        self.nan_seen: List[bool] = [False] * schema.n_fields
        self.n_decoded = 0

        self._marker = schema.ms_flag.encode("ascii")
        self._geo_cols = set()
        if schema.geographic:
            self._geo_cols = {c for c in (schema.x_col, schema.y_col) if c is not None}

        # Binary part of the record as one structured dtype
        self._binary_idx = [i for i, f in enumerate(schema.fields) if not f.ftype.is_ascii]
        if self._binary_idx:
            self._binary_dtype: Optional[np.dtype] = np.dtype(
                [(f"f{i}", schema.fields[i].ftype.dtype(self.config.byteorder)) for i in self._binary_idx]
            )
            self._binary_size = int(self._binary_dtype.itemsize)
        else:
            self._binary_dtype = None
            self._binary_size = 0

        self._proxy_mask = np.array([f.has_nan_proxy for f in schema.fields], dtype=bool)
        self._proxy = np.array([f.nan_proxy for f in schema.fields], dtype=np.float64)
        self._scale_mask = np.array([f.do_scale for f in schema.fields], dtype=bool)
        self._scale = np.array([f.scale for f in schema.fields], dtype=np.float64)
        self._offset = np.array([f.offset for f in schema.fields], dtype=np.float64)

    # ------------------------------------------------------------------
    # public
    # ------------------------------------------------------------------

    def decode(self, fp: BinaryIO) -> Optional[np.ndarray]:
        """Decode the next record into a float64 row, or return None at end of input."""
        self.ms_next = False
        if self.layout is RecordLayout.BINARY:
            raw = self._decode_binary(fp, at_record_start=True)
        else:
            line = self._next_data_line(fp)
            if line is None:
                return None
            if self.layout is RecordLayout.CARD:
                raw = self._decode_card(line, fp)
            else:
                raw = self._decode_tokens(line)
        if raw is None:
            return None
        row = self.postprocess(raw)
        self.n_decoded += 1
        return row

    def postprocess(self, raw: np.ndarray) -> np.ndarray:
        """
        Apply NaN proxies, scale/offset and the longitude domain to one raw row.

        A raw value equal to its field's proxy becomes NaN and is not scaled.
        """
        row = np.array(raw, dtype=np.float64, copy=True)
        is_proxy = self._proxy_mask & (row == self._proxy)
        scale = self._scale_mask & ~is_proxy
        row[scale] = row[scale] * self._scale[scale] + self._offset[scale]
        row[is_proxy] = np.nan

        x = self.schema.x_col
        if x is not None and self.schema.geographic:
            row[x] = self.lon_domain.adjust(row[x])

        for i in np.flatnonzero(np.isnan(row)):
            self.nan_seen[i] = True
        return row

    # ------------------------------------------------------------------
    # text records
    # ------------------------------------------------------------------

    def _next_data_line(self, fp: BinaryIO) -> Optional[str]:
        while True:
            line = fp.readline()
            if not line:
                return None
            if line[:1] == b"#" or line[:1] == self._marker:
                if self.schema.multi_segment:
                    self.ms_next = True
                continue
            if not line.strip():
                continue
            return line.decode("ascii", errors="replace").rstrip("\r\n")

    def _scan(self, text: str, col: int) -> float:
        s = text.strip()
        try:
            return float(s)
        except ValueError:
            pass
        if col in self._geo_cols:
            try:
                return parse_geographic(s)
            except ValueError:
                pass
        raise RecordDecodeError(
            f"field '{self.schema.fields[col].name}': cannot parse {text!r} as a number",
            self.n_decoded,
        )

    def _decode_card(self, line: str, fp: BinaryIO) -> np.ndarray:
        raw = np.zeros(self.schema.n_fields, dtype=np.float64)
        for i, f in enumerate(self.schema.fields):
            if f.ftype is not FieldType.ASCII_CARD:
                continue
            chunk = line[f.start_col:f.start_col + f.n_cols]
            # blank or missing columns are an absent value
            raw[i] = self._scan(chunk, i) if chunk.strip() else np.nan
        if self._binary_idx:
            binary = self._decode_binary(fp, at_record_start=False)
            raw[self._binary_idx] = binary[self._binary_idx]
        return raw

    def _decode_tokens(self, line: str) -> np.ndarray:
        tokens = [t for t in _TOKEN_SPLIT.split(line) if t]
        if len(tokens) != self.schema.n_fields:
            raise RecordDecodeError(
                f"expected {self.schema.n_fields} tokens, found {len(tokens)}",
                self.n_decoded,
            )
        return np.array([self._scan(tok, i) for i, tok in enumerate(tokens)], dtype=np.float64)

    # ------------------------------------------------------------------
    # binary records
    # ------------------------------------------------------------------

    def _decode_binary(self, fp: BinaryIO, *, at_record_start: bool) -> Optional[np.ndarray]:
        buf = fp.read(self._binary_size)
        if not buf and at_record_start:
            return None
        if len(buf) != self._binary_size:
            raise RecordDecodeError(
                f"short read: got {len(buf)} of {self._binary_size} bytes",
                self.n_decoded,
            )
        rec = np.frombuffer(buf, dtype=self._binary_dtype, count=1)[0]
        raw = np.zeros(self.schema.n_fields, dtype=np.float64)
        for i in self._binary_idx:
            raw[i] = float(rec[f"f{i}"])
        return raw
