from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, List, Optional

import pandas as pd

from x2sys_tracks.config import TrackReaderConfig
from x2sys_tracks.errors import RecordDecodeError
from x2sys_tracks.ingest.fileio import open_file
from x2sys_tracks.ingest.growable import GrowableColumns
from x2sys_tracks.ingest.paths import MggPathResolver
from x2sys_tracks.ingest.readers_gmt import GmtReader
from x2sys_tracks.ingest.readers_mgd77 import Mgd77Reader
from x2sys_tracks.ingest.record_decoder import RecordDecoder
from x2sys_tracks.models.catalog import SchemaCatalog
from x2sys_tracks.models.track import Track

logger = logging.getLogger(__name__)


class TrackReader:
    """
    Schema-driven reader for generic track files.

    Contract:
      - The file is opened in binary mode whatever the field encodings are.
      - The header is skipped as ``schema.skip`` lines (pure ascii schemas)
        or ``schema.skip`` bytes (anything else).
      - Records are decoded until end of input.  A record that fails to
        decode ends the read early; rows decoded so far are returned and the
        failure is recorded in ``Track.warnings``.
      - Multi-segment schemas number segments from 0; each run of header or
        marker lines starts a new segment.
    """

    def __init__(self, config: Optional[TrackReaderConfig] = None):
        self.config = config or TrackReaderConfig()

    def read(self, file_path: str | Path, schema: SchemaCatalog) -> Track:
        path = Path(file_path).expanduser()
        with open_file(path, "rb") as fp:
            return self.read_stream(fp, schema, name=path.name, source_path=path)

    def read_stream(
        self,
        fp: BinaryIO,
        schema: SchemaCatalog,
        *,
        name: str = "<stream>",
        source_path: Optional[Path] = None,
    ) -> Track:
        """Read every record from an already open binary stream."""
        warnings: List[str] = []
        self._skip_header(fp, schema)

        decoder = RecordDecoder(schema, self.config)
        buf = GrowableColumns(schema.n_fields, self.config.initial_capacity)
        segment = -1 if schema.multi_segment else 0

        while True:
            try:
                row = decoder.decode(fp)
            except RecordDecodeError as e:
                msg = f"stopped at record {len(buf)} of {name}: {e}"
                logger.warning(msg)
                warnings.append(msg)
                break
            if row is None:
                break
            if schema.multi_segment and (decoder.ms_next or segment < 0):
                segment += 1
            buf.append(row, segment)

        cols, seg = buf.trimmed()
        df = pd.DataFrame({f.name: c for f, c in zip(schema.fields, cols)}, columns=schema.field_names)
        logger.debug("read %d rows (%d segments) from %s", len(buf), segment + 1 if len(buf) else 0, name)

        return Track(
            name=name,
            df=df,
            segment=seg,
            year=0,
            source_path=source_path,
            nan_columns=tuple(f.name for f, seen in zip(schema.fields, decoder.nan_seen) if seen),
            warnings=tuple(warnings),
        )

    @staticmethod
    def _skip_header(fp: BinaryIO, schema: SchemaCatalog) -> None:
        if schema.skip <= 0:
            return
        if schema.ascii_in:
            for _ in range(schema.skip):
                fp.readline()
        else:
            fp.seek(schema.skip, 1)


def read_file(
    file_path: str | Path,
    schema: SchemaCatalog,
    config: Optional[TrackReaderConfig] = None,
    resolver: Optional[MggPathResolver] = None,
) -> Track:
    """
    Read one track with the reader registered for ``schema.name``.

    ``gmt`` uses the compact-binary MGG reader (``file_path`` is a leg name
    looked up through ``resolver``), ``mgd77`` the fixed-width text reader,
    and every other schema the generic :class:`TrackReader`.
    """
    if schema.name == "gmt":
        return GmtReader(resolver=resolver, config=config).read(str(file_path))
    if schema.name == "mgd77":
        return Mgd77Reader(config=config).read(file_path)
    return TrackReader(config).read(file_path, schema)
