from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from x2sys_tracks.config import LonDomain, resolve_home
from x2sys_tracks.errors import FileOpenError, SchemaParseError
from x2sys_tracks.models.catalog import FieldDescriptor, FieldType, SchemaCatalog

logger = logging.getLogger(__name__)

_TYPE_TAGS: Dict[str, FieldType] = {t.value: t for t in FieldType}
_CARD_RANGE = re.compile(r"^(\d+)-(\d+)$")
_DIRECTIVES = ("SKIP", "BINARY", "GEO", "MULTISEG")

# Schema names that always describe geographic data, with their longitude domain.
_GEOGRAPHIC_NAMES: Dict[str, LonDomain] = {
    "gmt": LonDomain.POSITIVE,
    "mgd77": LonDomain.SIGNED,
}

_X_NAMES = ("x", "lon")
_Y_NAMES = ("y", "lat")
_T_NAMES = ("t", "time")


def _parse_float(tok: str, what: str, source: str, line_no: int) -> float:
    try:
        return float(tok)
    except ValueError:
        raise SchemaParseError(f"{what} is not a number: {tok!r}", source, line_no) from None


def _check_format(fmt: str, source: str, line_no: int) -> None:
    probe = FieldDescriptor(name="_", ftype=FieldType.FLOAT64, format=fmt).py_format
    try:
        probe % 1.0
    except (TypeError, ValueError):
        raise SchemaParseError(f"unusable output format {fmt!r}", source, line_no) from None


def _parse_field_line(tokens: List[str], source: str, line_no: int) -> FieldDescriptor:
    """
    Decode ``name type yes/no nan_proxy scale offset format [start-stop]``.

    The yes/no token answers "is every value valid?": ``y`` means the field
    has no NaN proxy, anything else enables it.
    """
    if len(tokens) not in (7, 8):
        raise SchemaParseError(
            f"expected 7 or 8 fields (name type yes/no nan_proxy scale offset format [start-stop]), got {len(tokens)}",
            source,
            line_no,
        )
    name, tag, yes_no, proxy_s, scale_s, offset_s, fmt = tokens[:7]

    if tag not in _TYPE_TAGS:
        raise SchemaParseError(
            f"unknown type tag {tag!r} for field '{name}' (expected one of {''.join(_TYPE_TAGS)})",
            source,
            line_no,
        )
    ftype = _TYPE_TAGS[tag]

    nan_proxy = _parse_float(proxy_s, "nan_proxy", source, line_no)
    scale = _parse_float(scale_s, "scale", source, line_no)
    offset = _parse_float(offset_s, "offset", source, line_no)
    _check_format(fmt, source, line_no)

    start_col = n_cols = 0
    if ftype is FieldType.ASCII_CARD:
        if len(tokens) != 8:
            raise SchemaParseError(f"ascii-card field '{name}' needs a start-stop column range", source, line_no)
        m = _CARD_RANGE.match(tokens[7])
        if not m:
            raise SchemaParseError(f"bad column range {tokens[7]!r} for field '{name}'", source, line_no)
        start_col, stop_col = int(m.group(1)), int(m.group(2))
        if stop_col < start_col:
            raise SchemaParseError(f"column range {tokens[7]!r} ends before it starts", source, line_no)
        n_cols = stop_col - start_col + 1

    return FieldDescriptor(
        name=name,
        ftype=ftype,
        has_nan_proxy=yes_no[:1].lower() != "y",
        nan_proxy=nan_proxy,
        scale=scale,
        offset=offset,
        format=fmt,
        start_col=start_col,
        n_cols=n_cols,
    )


def _first_role(fields: List[FieldDescriptor], names: Tuple[str, ...]) -> Optional[int]:
    for i, f in enumerate(fields):
        if f.name in names:
            return i
    return None


def parse_definition(text: str, name: str = "<string>", source: Optional[str] = None) -> SchemaCatalog:
    """
    Parse a field-definition body into a :class:`SchemaCatalog`.

    Grammar
    -------
    - ``#SKIP <n>``: header lines (ascii) or bytes (binary) to skip.
    - ``#BINARY``: file is not pure ascii.
    - ``#GEO``: x/y are longitude/latitude.
    - ``#MULTISEG [c]``: multi-segment file, marker character ``c`` (default ``>``).
    - other ``#`` lines and blank lines are comments.
    - data lines: ``name type yes/no nan_proxy scale offset format [start-stop]``.

    Malformed content raises :class:`SchemaParseError`; nothing is guessed.
    """
    src = source or name
    fields: List[FieldDescriptor] = []
    skip = 0
    ascii_in = True
    geographic = name in _GEOGRAPHIC_NAMES
    lon_domain = _GEOGRAPHIC_NAMES.get(name, LonDomain.POSITIVE)
    multi_segment = False
    ms_flag = ">"

    for line_no, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith("#"):
            parts = line[1:].split()
            keyword = parts[0] if parts else ""
            if keyword not in _DIRECTIVES:
                continue
            if keyword == "SKIP":
                if len(parts) != 2 or not parts[1].isdigit():
                    raise SchemaParseError("#SKIP needs one non-negative integer", src, line_no)
                skip = int(parts[1])
            elif keyword == "BINARY":
                ascii_in = False
            elif keyword == "GEO":
                geographic = True
            else:
                multi_segment = True
                if len(parts) > 2 or (len(parts) == 2 and len(parts[1]) != 1):
                    raise SchemaParseError("#MULTISEG takes at most one marker character", src, line_no)
                if len(parts) == 2:
                    ms_flag = parts[1]
            continue

        fd = _parse_field_line(line.split(), src, line_no)
        if any(f.name == fd.name for f in fields):
            raise SchemaParseError(f"duplicate field name '{fd.name}'", src, line_no)
        if not fd.ftype.is_ascii:
            ascii_in = False
        fields.append(fd)

    if not fields:
        raise SchemaParseError("definition declares no fields", src)

    types = {f.ftype for f in fields}
    if FieldType.ASCII_CARD in types and FieldType.ASCII_TOKEN in types:
        raise SchemaParseError("cannot mix ascii-card (A) and ascii-token (a) fields in one record", src)

    catalog = SchemaCatalog(
        name=name,
        fields=tuple(fields),
        ascii_in=ascii_in,
        skip=skip,
        multi_segment=multi_segment,
        ms_flag=ms_flag,
        geographic=geographic,
        lon_domain=lon_domain,
        x_col=_first_role(fields, _X_NAMES),
        y_col=_first_role(fields, _Y_NAMES),
        t_col=_first_role(fields, _T_NAMES),
    )
    logger.debug(
        "definition %s: %d fields, layout=%s, skip=%d, multiseg=%s",
        src,
        catalog.n_fields,
        catalog.layout.value,
        skip,
        multi_segment,
    )
    return catalog


def load_definition(path: str | Path, name: Optional[str] = None) -> SchemaCatalog:
    """Read and parse a definition file; ``name`` defaults to the file stem."""
    p = Path(path).expanduser()
    try:
        text = p.read_text(encoding="ascii", errors="replace")
    except OSError as e:
        raise FileOpenError(f"Could not open definition file {p}: {e}") from e
    return parse_definition(text, name=name or p.stem, source=str(p))


def load_named_definition(name: str, home: Optional[str | Path] = None) -> SchemaCatalog:
    """Load ``<home>/<name>.def``; ``home`` defaults to :func:`resolve_home`."""
    base = Path(home) if home is not None else resolve_home()
    return load_definition(base / f"{name}.def", name=name)
