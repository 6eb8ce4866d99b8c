from .catalog import FieldDescriptor, FieldType, RecordLayout, SchemaCatalog
from .track import Track

__all__ = [
    "FieldDescriptor",
    "FieldType",
    "RecordLayout",
    "SchemaCatalog",
    "Track",
]
