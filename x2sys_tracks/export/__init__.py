"""Export package - column selection and track serialization."""

from .writer import (
    CROSSOVER_FORMAT,
    format_crossover_header,
    format_crossover_record,
    format_record,
    select_columns,
    write_track,
)

__all__ = [
    "CROSSOVER_FORMAT",
    "format_crossover_header",
    "format_crossover_record",
    "format_record",
    "select_columns",
    "write_track",
]
