"""Structured export: normalized schema -> record / JSON document.

No dialect and no dependency ordering: tables appear in the order the
caller requested them. The record is the same tree the JSON document
serializes::

    {
        "version": "1.0",
        "generated": "2024-05-01T12:00:00+00:00",
        "tables": {
            "users": {"columns": [...], "indexes": [...], "foreignKeys": [...]}
        }
    }

Every model field is written, ``None`` included, so
``tables_from_record(to_record(tables)) == tables``.

Usage:
    from schema_export.export.structured import to_json, tables_from_json

    text = to_json(tables, pretty_print=True)
    assert tables_from_json(text) == tables
"""

import json
from collections.abc import Sequence
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from schema_export.exceptions import InvalidSchemaError
from schema_export.export.ddl import as_request, fetch_tables
from schema_export.schema.models import ExportRequest, Table

if TYPE_CHECKING:
    from schema_export.readers.base import SchemaReader

DOCUMENT_VERSION = "1.0"


def _table_to_dict(table: Table) -> dict[str, Any]:
    data = table.model_dump(mode="json", by_alias=True)
    return {
        "columns": data["columns"],
        "indexes": data["indexes"],
        "foreignKeys": data["foreignKeys"],
    }


def to_record(
    tables: Sequence[Table], generated_at: datetime | None = None
) -> dict[str, Any]:
    """Convert tables to the document tree as plain Python values.

    Args:
        tables: Tables in the order they should appear.
        generated_at: Timestamp written to ``generated``; defaults to now
            (UTC). Pass a fixed value for reproducible output.

    Raises:
        InvalidSchemaError: Two tables share a name.
    """
    if generated_at is None:
        generated_at = datetime.now(timezone.utc)

    body: dict[str, Any] = {}
    for table in tables:
        if table.name in body:
            raise InvalidSchemaError(f"Duplicate table name: '{table.name}'")
        body[table.name] = _table_to_dict(table)

    return {
        "version": DOCUMENT_VERSION,
        "generated": generated_at.isoformat(),
        "tables": body,
    }


def to_json(
    tables: Sequence[Table],
    pretty_print: bool = False,
    generated_at: datetime | None = None,
) -> str:
    """Serialize tables as a JSON document.

    ``pretty_print`` only changes whitespace. Identical input (including
    ``generated_at``) always yields byte-identical output.
    """
    record = to_record(tables, generated_at=generated_at)
    if pretty_print:
        return json.dumps(record, indent=2, ensure_ascii=False)
    return json.dumps(record, separators=(",", ":"), ensure_ascii=False)


def tables_from_record(record: dict[str, Any]) -> list[Table]:
    """Rebuild tables from a record produced by ``to_record``.

    Raises:
        InvalidSchemaError: Unsupported version or malformed tree.
    """
    version = record.get("version")
    if version != DOCUMENT_VERSION:
        raise InvalidSchemaError(f"Unsupported document version: {version!r}")

    body = record.get("tables")
    if not isinstance(body, dict):
        raise InvalidSchemaError("Document has no 'tables' mapping")

    tables = []
    for name, data in body.items():
        try:
            tables.append(
                Table(
                    name=name,
                    columns=data.get("columns", []),
                    indexes=data.get("indexes", []),
                    foreign_keys=data.get("foreignKeys", []),
                )
            )
        except (ValidationError, AttributeError) as e:
            raise InvalidSchemaError(f"Invalid table '{name}' in document: {e}") from e
    return tables


def tables_from_json(text: str) -> list[Table]:
    """Parse a JSON document produced by ``to_json``."""
    try:
        record = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidSchemaError(f"Document is not valid JSON: {e}") from e
    if not isinstance(record, dict):
        raise InvalidSchemaError("Document root must be an object")
    return tables_from_record(record)


class StructuredExporter:
    """Export tables from a schema reader as a record or JSON document.

    Example:
        exporter = StructuredExporter(reader)
        text = exporter.to_json(["users", "orders"], pretty_print=True)
    """

    def __init__(self, reader: "SchemaReader") -> None:
        self._reader = reader

    def fetch(self, tables: ExportRequest | Sequence[str]) -> list[Table]:
        return fetch_tables(self._reader, as_request(tables))

    def to_record(
        self,
        tables: ExportRequest | Sequence[str],
        generated_at: datetime | None = None,
    ) -> dict[str, Any]:
        return to_record(self.fetch(tables), generated_at=generated_at)

    def to_json(
        self,
        tables: ExportRequest | Sequence[str],
        pretty_print: bool = False,
        generated_at: datetime | None = None,
    ) -> str:
        return to_json(self.fetch(tables), pretty_print=pretty_print, generated_at=generated_at)
