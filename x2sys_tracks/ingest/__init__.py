"""Ingest package - definition parsing and track file readers.

This package handles:
- Parsing field-definition files into SchemaCatalog objects
- Decoding records of generic track files (ascii-card, ascii-token, binary)
- Reading legacy MGG (*.gmt) binary legs and MGD77 text files

Key classes:
- RecordDecoder: decodes one record according to a SchemaCatalog
- TrackReader: reads a whole generic track file into a Track
- GmtReader / Mgd77Reader: legacy readers producing the 6-column MGG model

Design principle:
- Every reader returns a Track with float64 columns and per-row segment ids
- Diagnostics are logged and also kept in Track.warnings
"""
from .definition import load_definition, load_named_definition, parse_definition
from .paths import MggPathResolver
from .readers_gmt import MGG_COLUMNS, GmtReader
from .readers_mgd77 import Mgd77Reader
from .readers_track import TrackReader, read_file
from .record_decoder import RecordDecoder

__all__ = [
    "load_definition",
    "load_named_definition",
    "parse_definition",
    "MggPathResolver",
    "MGG_COLUMNS",
    "GmtReader",
    "Mgd77Reader",
    "TrackReader",
    "read_file",
    "RecordDecoder",
]
