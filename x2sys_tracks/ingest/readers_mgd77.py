from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, List, Optional

import numpy as np
import pandas as pd

from x2sys_tracks.config import TrackReaderConfig
from x2sys_tracks.errors import RecordDecodeError
from x2sys_tracks.ingest.fileio import open_file
from x2sys_tracks.ingest.growable import GrowableColumns
from x2sys_tracks.ingest.mgd77_decode import (
    MGD77_NODATA,
    MGD77_RECORD_LENGTH,
    MGD77_RECORD_TYPES,
    Mgd77Clock,
    Mgd77Record,
    decode_mgd77_line,
)
from x2sys_tracks.ingest.readers_gmt import MDEG2DEG, MGG_COLUMNS
from x2sys_tracks.models.track import Track

logger = logging.getLogger(__name__)

LineDecoder = Callable[[str, Mgd77Clock], Mgd77Record]


def _row(rec: Mgd77Record) -> List[float]:
    g = [np.nan if v == MGD77_NODATA else float(v) for v in rec.gmt]
    return [
        float(rec.time),
        rec.lon * MDEG2DEG,
        rec.lat * MDEG2DEG,
        0.1 * g[0],
        g[1],
        g[2],
    ]


class Mgd77Reader:
    """
    Reader for MGD77 fixed-width text files.

    Policy:
      - Only lines starting with a data record type ('3' or '5') are considered.
      - A data line of the wrong length is skipped with a warning.
      - A line the decoder rejects is skipped with a warning.
      - The track year is the first year seen by the decoder (0 if no record decoded).
    """

    def __init__(self, config: Optional[TrackReaderConfig] = None, decoder: Optional[LineDecoder] = None):
        self.config = config or TrackReaderConfig()
        self.decoder: LineDecoder = decoder or decode_mgd77_line

    def read(self, file_path: str | Path) -> Track:
        path = Path(file_path).expanduser()
        with open_file(path, "r", encoding="ascii", errors="replace") as fp:
            return self.read_lines(fp, name=path.name, source_path=path)

    def read_lines(
        self,
        lines: Iterable[str],
        *,
        name: str = "<stream>",
        source_path: Optional[Path] = None,
    ) -> Track:
        warnings: List[str] = []
        clock = Mgd77Clock()
        buf = GrowableColumns(len(MGG_COLUMNS), self.config.initial_capacity)

        for n_read, line in enumerate(lines, start=1):
            if line[:1] not in MGD77_RECORD_TYPES:
                continue
            rec_len = len(line.rstrip("\r\n"))
            if rec_len != MGD77_RECORD_LENGTH:
                self._skip(warnings, f"{name}: record # {n_read} has incorrect length ({rec_len}), skipped")
                continue
            try:
                rec = self.decoder(line, clock)
            except RecordDecodeError as e:
                self._skip(warnings, f"{name}: trouble decoding record # {n_read} (skipped): {e}")
                continue
            buf.append(_row(rec))

        if clock.first_year is None:
            self._skip(warnings, f"{name}: no MGD77 data records decoded; year set to 0")
        cols, seg = buf.trimmed()
        df = pd.DataFrame(dict(zip(MGG_COLUMNS, cols)), columns=list(MGG_COLUMNS))
        logger.debug("read %d MGD77 records from %s (%d skipped)", len(buf), name, len(warnings))

        return Track(
            name=name,
            df=df,
            segment=seg,
            year=clock.first_year or 0,
            source_path=source_path,
            nan_columns=tuple(c for c, v in zip(MGG_COLUMNS, cols) if np.isnan(v).any()),
            warnings=tuple(warnings),
        )

    @staticmethod
    def _skip(warnings: List[str], msg: str) -> None:
        logger.warning(msg)
        warnings.append(msg)
