"""Exporters: DDL script, JSON document and plain record.

Usage:
    from schema_export.export import DdlExporter, StructuredExporter
"""

from schema_export.export.ddl import (
    DdlDocument,
    DdlExporter,
    export_ddl,
    fetch_tables,
    render_ddl,
)
from schema_export.export.structured import (
    DOCUMENT_VERSION,
    StructuredExporter,
    tables_from_json,
    tables_from_record,
    to_json,
    to_record,
)

__all__ = [
    "DdlDocument",
    "DdlExporter",
    "export_ddl",
    "fetch_tables",
    "render_ddl",
    "DOCUMENT_VERSION",
    "StructuredExporter",
    "tables_from_json",
    "tables_from_record",
    "to_json",
    "to_record",
]
