"""x2sys-tracks -- schema-driven ingestion of geophysical track files.

This package provides tools for:
- Parsing x2sys field-definition (*.def) files into SchemaCatalog objects
- Reading generic track files whose layout the schema describes
  (fixed-column ascii, delimited ascii, binary primitives)
- Reading legacy MGG (*.gmt) binary legs and MGD77 text files
- Computing cumulative along-track distances (planar, flat-earth, great-circle)
- Writing selected columns as formatted text or raw binary, and the
  crossover summary line format

Key principles:
- Every reader returns a Track: float64 columns plus per-row segment ids
- NaN proxies become NaN before any scale/offset is applied
- Fatal problems raise exceptions from x2sys_tracks.errors; recoverable ones
  are logged and kept in Track.warnings

Main subpackages:
- analysis: Along-track distances and dummy times
- export: Column selection and output formatting
- ingest: Definition parsing, record decoding and file readers
- models: Data models (FieldDescriptor, SchemaCatalog, Track)
"""

__all__ = []
