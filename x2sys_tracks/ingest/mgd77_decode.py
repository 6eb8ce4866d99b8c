"""Fixed-column decoder for MGD77 data records.

An MGD77 data record is one 120-character line.  Columns used here
(1-based, inclusive; implied decimals in brackets):

    1        record type ('3' or '5')
    10-12    time zone correction, hours to add to local time for GMT
    13-16    year
    17-18    month
    19-20    day
    21-22    hour
    23-27    minutes [3]
    28-35    latitude [5]
    36-44    longitude [5]
    52-57    corrected depth, m [1]
    73-78    residual magnetic anomaly, nT [1]
    104-108  free-air anomaly, mGal [1]

Missing values are written as all nines.  Decoded records use the MGG
conventions: time in seconds since the start of the first record's year,
positions in micro-degrees, gravity in 0.1 mGal and -32000 for no data.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple

from x2sys_tracks.errors import RecordDecodeError

MGD77_RECORD_LENGTH = 120
MGD77_RECORD_TYPES = ("3", "5")
MGD77_NODATA = -32000

_TZ = slice(9, 12)
_YEAR = slice(12, 16)
_MONTH = slice(16, 18)
_DAY = slice(18, 20)
_HOUR = slice(20, 22)
_MIN = slice(22, 27)
_LAT = slice(27, 35)
_LON = slice(35, 44)
_DEPTH = slice(51, 57)
_MAG = slice(72, 78)
_FAA = slice(103, 108)


class Mgd77DecodeError(RecordDecodeError):
    """One MGD77 line could not be decoded."""

    pass


@dataclass
class Mgd77Clock:
    """Time origin shared by all records of one file (set by the first decoded record)."""
    first_year: Optional[int] = None


@dataclass(frozen=True)
class Mgd77Record:
    time: int
    lat: int
    lon: int
    gmt: Tuple[int, int, int]


def _text(line: str, sl: slice) -> str:
    return line[sl].strip()


def _is_missing(text: str, width: int) -> bool:
    # all nines, allowing one column for a sign
    digits = text.lstrip("+-")
    return digits == "" or (set(digits) == {"9"} and len(digits) >= max(width - 1, 2))


def _int(line: str, sl: slice, what: str, required: bool = True) -> Optional[int]:
    text = _text(line, sl)
    if _is_missing(text, sl.stop - sl.start):
        if required:
            raise Mgd77DecodeError(f"missing {what}")
        return None
    try:
        return int(text)
    except ValueError:
        raise Mgd77DecodeError(f"bad {what}: {text!r}") from None


def decode_mgd77_line(line: str, clock: Mgd77Clock) -> Mgd77Record:
    """
    Decode one MGD77 data line into an MGG-style record.

    ``clock`` carries the year of the first decoded record; it is set on the
    first successful call and reused afterwards.  Raises
    :class:`Mgd77DecodeError` for anything that is not a valid data record.
    """
    rec = line.rstrip("\r\n")
    if len(rec) != MGD77_RECORD_LENGTH:
        raise Mgd77DecodeError(f"record length {len(rec)} != {MGD77_RECORD_LENGTH}")
    if rec[0] not in MGD77_RECORD_TYPES:
        raise Mgd77DecodeError(f"not a data record (type {rec[0]!r})")

    tz = _int(rec, _TZ, "time zone", required=False) or 0
    year = _int(rec, _YEAR, "year")
    month = _int(rec, _MONTH, "month")
    day = _int(rec, _DAY, "day")
    hour = _int(rec, _HOUR, "hour")
    minutes_e3 = _int(rec, _MIN, "minutes")
    lat_e5 = _int(rec, _LAT, "latitude")
    lon_e5 = _int(rec, _LON, "longitude")

    try:
        local = datetime(year, month, day) + timedelta(hours=hour, minutes=minutes_e3 / 1000.0)
    except (ValueError, OverflowError) as e:
        raise Mgd77DecodeError(f"bad date/time: {e}") from None
    utc = local + timedelta(hours=tz)

    first_year = clock.first_year if clock.first_year is not None else year
    seconds = (utc - datetime(first_year, 1, 1)).total_seconds()

    depth_e1 = _int(rec, _DEPTH, "depth", required=False)
    mag_e1 = _int(rec, _MAG, "magnetic anomaly", required=False)
    faa_e1 = _int(rec, _FAA, "free-air anomaly", required=False)

    gmt = (
        MGD77_NODATA if faa_e1 is None else faa_e1,
        MGD77_NODATA if mag_e1 is None else int(round(mag_e1 * 0.1)),
        MGD77_NODATA if depth_e1 is None else int(round(depth_e1 * 0.1)),
    )

    clock.first_year = first_year
    return Mgd77Record(
        time=int(round(seconds)),
        lat=lat_e5 * 10,
        lon=lon_e5 * 10,
        gmt=gmt,
    )
