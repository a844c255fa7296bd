"""Schema readers: metadata sources for the exporters.

Usage:
    from schema_export.readers import SchemaIntrospector, DocumentReader
"""

from schema_export.readers.base import SchemaReader, TableInfo
from schema_export.readers.document import DocumentReader
from schema_export.readers.introspector import SchemaIntrospector, normalize_url

__all__ = [
    "SchemaReader",
    "TableInfo",
    "DocumentReader",
    "SchemaIntrospector",
    "normalize_url",
]
