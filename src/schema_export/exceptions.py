"""Exception classes for schema-export.

Every failure the export pipeline can raise derives from
``SchemaExportError`` so callers can catch the whole family at once.
Exports are all-or-nothing: none of these are downgraded to partial
output.

Usage:
    from schema_export.exceptions import UnknownTableError

    try:
        document = exporter.export(request)
    except UnknownTableError as e:
        print(f"No such table: {e.table}")
"""

__all__ = [
    "SchemaExportError",
    "UnknownTableError",
    "InvalidSchemaError",
    "DialectError",
    "ReaderError",
    "ConfigError",
]


class SchemaExportError(Exception):
    """Base exception for schema-export."""


class UnknownTableError(SchemaExportError):
    """A requested table could not be resolved through the schema reader."""

    def __init__(self, table: str, message: str | None = None):
        self.table = table
        super().__init__(message or f"Unknown table: '{table}'")


class InvalidSchemaError(SchemaExportError):
    """Structurally invalid schema input (duplicate names, malformed keys)."""


class DialectError(SchemaExportError):
    """The active dialect has no rendering rule for a type or feature."""


class ReaderError(SchemaExportError):
    """Failure reported by (or raised inside) a schema reader."""


class ConfigError(SchemaExportError):
    """Error in configuration."""
