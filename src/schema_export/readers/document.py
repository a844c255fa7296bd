"""Schema reader over an exported document.

Serves metadata from tables already in memory -- typically a JSON
document written by ``to_json`` -- so a schema exported from one engine
can be re-emitted as DDL for another without a live connection.

Usage:
    from schema_export.readers.document import DocumentReader
    from schema_export.export.ddl import DdlExporter

    reader = DocumentReader.from_file("schema.json", engine="mysql")
    sql = DdlExporter(reader, dialect="postgres").export(["users"]).to_sql()
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from schema_export.exceptions import InvalidSchemaError
from schema_export.export.structured import tables_from_json, tables_from_record
from schema_export.readers.base import TableInfo
from schema_export.schema.models import Column, ForeignKey, Index, LogicalType, Table

_LOGICAL_TYPES = frozenset(t.value for t in LogicalType)


class DocumentReader:
    """In-memory ``SchemaReader`` over a list of tables.

    Args:
        tables: Tables to serve, in listing order.
        engine: Engine the metadata is attributed to.
    """

    def __init__(self, tables: Sequence[Table], engine: str) -> None:
        self._engine = engine
        self._tables: dict[str, Table] = {}
        for table in tables:
            if table.name in self._tables:
                raise InvalidSchemaError(f"Duplicate table name: '{table.name}'")
            self._tables[table.name] = table

    @classmethod
    def from_record(cls, record: dict[str, Any], engine: str) -> "DocumentReader":
        return cls(tables_from_record(record), engine)

    @classmethod
    def from_json(cls, text: str, engine: str) -> "DocumentReader":
        return cls(tables_from_json(text), engine)

    @classmethod
    def from_file(cls, path: str | Path, engine: str) -> "DocumentReader":
        """Load a JSON document from disk.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidSchemaError: If the document is malformed.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Schema document not found: {path}")
        return cls.from_json(path.read_text(), engine)

    @property
    def engine(self) -> str:
        return self._engine

    def tables(self) -> list[TableInfo]:
        return [{"name": name, "type": "table"} for name in self._tables]

    def columns(self, table: str, fields: list[str] | None = None) -> list[Column] | None:
        found = self._tables.get(table)
        if found is None:
            return None
        if fields is None:
            return list(found.columns)
        selected = []
        for name in fields:
            col = found.get_column(name)
            if col is None:
                return None
            selected.append(col)
        return selected

    def indexes(self, table: str) -> list[Index] | None:
        found = self._tables.get(table)
        return list(found.indexes) if found is not None else None

    def foreign_keys(self, table: str) -> list[ForeignKey] | None:
        found = self._tables.get(table)
        return list(found.foreign_keys) if found is not None else None

    def field_type(self, raw_type_name: str) -> str | None:
        # Documents already carry logical types
        name = raw_type_name.strip().lower()
        return name if name in _LOGICAL_TYPES else None
