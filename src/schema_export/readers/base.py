"""Schema reader protocol definition.

Defines the ``SchemaReader`` Protocol that every metadata source must
implement. The export pipeline trusts readers to return accurate
metadata; it never issues or parses introspection queries itself.

All methods are synchronous and return ``None`` when the reader cannot
answer (unknown table, unknown field, driver failure it chose to
swallow). Exceptions raised by a reader are wrapped in ``ReaderError``
by the exporter without being interpreted.

Usage:
    from schema_export.readers.base import SchemaReader

    def describe(reader: SchemaReader) -> None:
        for info in reader.tables() or []:
            columns = reader.columns(info["name"])
            print(info["name"], [c.name for c in columns or []])
"""

from typing import Literal, Protocol, TypedDict, runtime_checkable

from schema_export.schema.models import Column, ForeignKey, Index


class TableInfo(TypedDict):
    """One entry of ``SchemaReader.tables()``."""

    name: str
    type: Literal["table", "view"]


@runtime_checkable
class SchemaReader(Protocol):
    """Metadata source interface that all readers must implement.

    ``engine`` identifies the database engine the metadata came from
    (``"mysql"``, ``"postgres"``, ``"sqlite"``); the DDL exporter selects
    its default dialect from it.
    """

    @property
    def engine(self) -> str:
        """Engine identifier of the originating database."""
        ...

    def tables(self) -> list[TableInfo] | None:
        """List tables (and views) visible to the reader.

        Returns:
            List of ``{"name": ..., "type": "table" | "view"}`` dicts, or
            ``None`` if the listing failed.
        """
        ...

    def columns(
        self, table: str, fields: list[str] | None = None
    ) -> list[Column] | None:
        """Get the ordered columns of a table.

        Args:
            table: Table name.
            fields: Optional column names. When given, exactly those
                columns are returned in that order.

        Returns:
            Columns in table order (or ``fields`` order), or ``None`` if
            the table is unknown or a named field does not exist.

        Example:
            cols = reader.columns("users", ["email", "id"])
            # [Column(name="email", ...), Column(name="id", ...)]
        """
        ...

    def indexes(self, table: str) -> list[Index] | None:
        """Get the secondary indexes of a table (primary key excluded)."""
        ...

    def foreign_keys(self, table: str) -> list[ForeignKey] | None:
        """Get the foreign keys declared on a table."""
        ...

    def field_type(self, raw_type_name: str) -> str | None:
        """Map a raw driver type name to a logical type name.

        Returns:
            Logical type (e.g. ``"string"``, ``"integer"``) or ``None`` if
            the raw type has no mapping.

        Example:
            reader.field_type("character varying")  # 'string'
        """
        ...
