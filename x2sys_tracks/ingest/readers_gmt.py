from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Optional

import numpy as np
import pandas as pd

from x2sys_tracks.config import TrackReaderConfig
from x2sys_tracks.errors import RecordDecodeError
from x2sys_tracks.ingest.fileio import open_file
from x2sys_tracks.ingest.paths import MggPathResolver, strip_leg_suffix
from x2sys_tracks.models.track import Track

logger = logging.getLogger(__name__)

# Column names shared by both legacy readers
MGG_COLUMNS = ("time", "lon", "lat", "faa", "mag", "top")

MGG_NODATA = -32000
MDEG2DEG = 1.0e-6
MGG_AGENCY_LEN = 10


def mgg_header_dtype(byteorder: str = "=") -> np.dtype:
    """4-byte year, 4-byte row count, 10-byte agency code."""
    return np.dtype(
        [("year", f"{byteorder}i4"), ("n_rows", f"{byteorder}i4"), ("agency", f"S{MGG_AGENCY_LEN}")]
    )


def mgg_record_dtype(byteorder: str = "=") -> np.dtype:
    """18-byte record: time [s], lat and lon [micro-degrees], gravity/magnetics/topography."""
    return np.dtype(
        [
            ("time", f"{byteorder}i4"),
            ("lat", f"{byteorder}i4"),
            ("lon", f"{byteorder}i4"),
            ("gmt", f"{byteorder}i2", (3,)),
        ]
    )


def mgg_columns(time, lat_udeg, lon_udeg, gmt) -> dict:
    """
    Normalize raw MGG values into the six float columns.

    ``gmt`` is an (n, 3) array of gravity (0.1 mGal), magnetics (nT) and
    topography (m); MGG_NODATA becomes NaN and gravity is scaled to mGal.
    """
    g = np.asarray(gmt, dtype=np.int64).reshape(-1, 3)
    chans = np.where(g == MGG_NODATA, np.nan, g.astype(np.float64))
    return {
        "time": np.asarray(time, dtype=np.float64),
        "lon": np.asarray(lon_udeg, dtype=np.float64) * MDEG2DEG,
        "lat": np.asarray(lat_udeg, dtype=np.float64) * MDEG2DEG,
        "faa": 0.1 * chans[:, 0],
        "mag": chans[:, 1],
        "top": chans[:, 2],
    }


class GmtReader:
    """
    Reader for legacy MGG ``<leg>.gmt`` binary files.

    File layout: an 18-byte header (year, row count, agency) followed by
    exactly ``n_rows`` 18-byte records.  A short header or a short record
    block is fatal for the file: :class:`RecordDecodeError` is raised and no
    partial track is returned.
    """

    def __init__(self, resolver: Optional[MggPathResolver] = None, config: Optional[TrackReaderConfig] = None):
        self.resolver = resolver or MggPathResolver.from_gmt_home()
        self.config = config or TrackReaderConfig()

    def read(self, leg: str) -> Track:
        """Look up ``leg`` (with or without ``.gmt``) and read it."""
        name = strip_leg_suffix(Path(leg).name)
        path = self.resolver.find(leg)
        with open_file(path, "rb") as fp:
            return self.read_stream(fp, name=name, source_path=path)

    def read_stream(self, fp: BinaryIO, *, name: str = "<stream>", source_path: Optional[Path] = None) -> Track:
        bo = self.config.byteorder
        hdr_dtype = mgg_header_dtype(bo)
        hdr_buf = fp.read(hdr_dtype.itemsize)
        if len(hdr_buf) < 4:
            raise self._fail(f"Could not read leg year from {name}")
        if len(hdr_buf) < 8:
            raise self._fail(f"Could not read n_records from {name}")
        if len(hdr_buf) < hdr_dtype.itemsize:
            raise self._fail(f"Could not read agency from {name}")
        hdr = np.frombuffer(hdr_buf, dtype=hdr_dtype, count=1)[0]
        year = int(hdr["year"])
        n_rows = int(hdr["n_rows"])
        agency = bytes(hdr["agency"]).split(b"\0", 1)[0].decode("ascii", errors="replace").strip()
        if n_rows < 0:
            raise self._fail(f"Negative record count {n_rows} in {name}")

        rec_dtype = mgg_record_dtype(bo)
        need = n_rows * rec_dtype.itemsize
        body = fp.read(need)
        if len(body) < need:
            bad = len(body) // rec_dtype.itemsize
            raise self._fail(f"Could not read record {bad} from {name}", bad)
        if n_rows:
            rec = np.frombuffer(body, dtype=rec_dtype, count=n_rows)
        else:
            rec = np.zeros(0, dtype=rec_dtype)

        cols = mgg_columns(rec["time"], rec["lat"], rec["lon"], rec["gmt"])
        df = pd.DataFrame(cols, columns=list(MGG_COLUMNS))
        logger.debug("read %d MGG records from %s (year %d, agency %r)", n_rows, name, year, agency)

        return Track(
            name=name,
            df=df,
            segment=np.zeros(n_rows, dtype=np.int64),
            year=year,
            source_path=source_path,
            agency=agency,
            nan_columns=tuple(c for c in MGG_COLUMNS if np.isnan(cols[c]).any()),
        )

    @staticmethod
    def _fail(message: str, record_index: Optional[int] = None) -> RecordDecodeError:
        logger.error(message)
        return RecordDecodeError(message, record_index)
