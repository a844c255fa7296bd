"""schema-export: Export database table schemas as DDL or JSON.

Reads table metadata through a schema reader (live database via
SQLAlchemy, or a previously exported document), orders tables by
foreign-key dependency and renders a transaction-wrapped DDL script for
MySQL, PostgreSQL or SQLite, or a versioned JSON document.

Usage:
    from schema_export import SchemaIntrospector, DdlExporter, StructuredExporter
    from schema_export import Table, Column, ForeignKey, resolve_order
    from schema_export import load_export_config, get_active_profile
"""

__version__ = "0.1.0"

# Schema model
from schema_export.schema.models import (
    Column,
    ColumnDefault,
    DefaultKind,
    ExportRequest,
    ForeignKey,
    Index,
    LogicalType,
    Table,
)
from schema_export.schema.resolver import ResolvedOrder, resolve_order

# Dialects
from schema_export.dialects import Dialect, available_engines, get_dialect

# Exporters
from schema_export.export.ddl import DdlDocument, DdlExporter, export_ddl
from schema_export.export.structured import (
    StructuredExporter,
    tables_from_json,
    tables_from_record,
    to_json,
    to_record,
)

# Readers
from schema_export.readers.base import SchemaReader
from schema_export.readers.document import DocumentReader
from schema_export.readers.introspector import SchemaIntrospector

# Config
from schema_export.config.loader import load_export_config
from schema_export.config.models import DatabaseProfile, ExportConfig

# Factory
from schema_export.factory import (
    ProfileNotFoundError,
    create_reader,
    get_active_profile,
    get_exporter,
    resolve_url,
)

# Errors
from schema_export.exceptions import (
    ConfigError,
    DialectError,
    InvalidSchemaError,
    ReaderError,
    SchemaExportError,
    UnknownTableError,
)

__all__ = [
    # Schema model
    "Column",
    "ColumnDefault",
    "DefaultKind",
    "ExportRequest",
    "ForeignKey",
    "Index",
    "LogicalType",
    "Table",
    "ResolvedOrder",
    "resolve_order",
    # Dialects
    "Dialect",
    "available_engines",
    "get_dialect",
    # Exporters
    "DdlDocument",
    "DdlExporter",
    "export_ddl",
    "StructuredExporter",
    "tables_from_json",
    "tables_from_record",
    "to_json",
    "to_record",
    # Readers
    "SchemaReader",
    "DocumentReader",
    "SchemaIntrospector",
    # Config
    "load_export_config",
    "DatabaseProfile",
    "ExportConfig",
    # Factory
    "ProfileNotFoundError",
    "create_reader",
    "get_active_profile",
    "get_exporter",
    "resolve_url",
    # Errors
    "SchemaExportError",
    "UnknownTableError",
    "InvalidSchemaError",
    "DialectError",
    "ReaderError",
    "ConfigError",
]
