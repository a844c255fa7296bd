"""Tests for the structured (record / JSON) exporter."""

import json
from datetime import datetime, timezone

import pytest

from schema_export.exceptions import InvalidSchemaError, UnknownTableError
from schema_export.export.ddl import DdlExporter
from schema_export.export.structured import (
    DOCUMENT_VERSION,
    StructuredExporter,
    tables_from_json,
    tables_from_record,
    to_json,
    to_record,
)
from schema_export.readers.document import DocumentReader
from schema_export.schema.models import Column, ColumnDefault, ForeignKey, Index, Table

GENERATED = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _sample_tables() -> list[Table]:
    users = Table(
        name="users",
        columns=(
            Column(name="id", type="integer", primary_key=True, auto_increment=True),
            Column(name="email", type="string", length=255, nullable=False),
            Column(name="created_at", type="timestamp", default=ColumnDefault.expression("CURRENT_TIMESTAMP")),
            Column(name="is_admin", type="boolean", default=ColumnDefault.literal(False)),
        ),
        indexes=(Index(name="ix_users_email", columns=("email",), unique=True),),
    )
    orders = Table(
        name="orders",
        columns=(
            Column(name="id", type="integer", primary_key=True),
            Column(name="user_id", type="integer"),
            Column(
                name="total",
                type="decimal",
                precision=20,
                scale=2,
                default=ColumnDefault.literal("12345678901234567.89"),
            ),
        ),
        foreign_keys=(
            ForeignKey(
                name="fk_orders_user",
                columns=("user_id",),
                referenced_table="users",
                referenced_columns=("id",),
                on_delete="CASCADE",
            ),
        ),
    )
    return [orders, users]


# ============================================================================
# Test: Record shape
# ============================================================================


class TestToRecord:
    """The record tree written by to_record()."""

    def test_envelope(self) -> None:
        """Version, timestamp and tables mapping."""
        record = to_record(_sample_tables(), generated_at=GENERATED)
        assert record["version"] == DOCUMENT_VERSION == "1.0"
        assert record["generated"] == "2024-05-01T12:00:00+00:00"
        assert set(record["tables"]) == {"orders", "users"}

    def test_caller_order_kept(self) -> None:
        """Tables appear in the order given, not dependency order."""
        record = to_record(_sample_tables(), generated_at=GENERATED)
        assert list(record["tables"]) == ["orders", "users"]

    def test_camel_case_keys(self) -> None:
        """Table bodies use camelCase keys."""
        body = to_record(_sample_tables(), generated_at=GENERATED)["tables"]["orders"]
        assert list(body) == ["columns", "indexes", "foreignKeys"]
        fk = body["foreignKeys"][0]
        assert fk["referencedTable"] == "users"
        assert fk["referencedColumns"] == ["id"]
        assert body["columns"][0]["primaryKey"] is True

    def test_default_serialized(self) -> None:
        """Defaults keep their kind and typed value."""
        columns = to_record(_sample_tables(), generated_at=GENERATED)["tables"]["users"]["columns"]
        assert columns[2]["default"] == {"kind": "expression", "value": "CURRENT_TIMESTAMP"}
        assert columns[3]["default"] == {"kind": "literal", "value": False}
        assert columns[1]["default"] is None

    def test_generated_defaults_to_now(self) -> None:
        """Without generated_at the timestamp is the current UTC time."""
        record = to_record([])
        assert datetime.fromisoformat(record["generated"]).tzinfo is not None

    def test_duplicate_names_rejected(self) -> None:
        """Two tables with one name cannot share a mapping key."""
        users = _sample_tables()[1]
        with pytest.raises(InvalidSchemaError, match="Duplicate table name"):
            to_record([users, users], generated_at=GENERATED)


# ============================================================================
# Test: JSON
# ============================================================================


class TestToJson:
    """JSON serialization."""

    def test_compact_by_default(self) -> None:
        """Compact output has no whitespace between tokens."""
        text = to_json(_sample_tables(), generated_at=GENERATED)
        assert "\n" not in text
        assert '"version":"1.0"' in text

    def test_pretty_print(self) -> None:
        """Pretty output is indented and parses to the same tree."""
        compact = to_json(_sample_tables(), generated_at=GENERATED)
        pretty = to_json(_sample_tables(), pretty_print=True, generated_at=GENERATED)
        assert '\n  "version": "1.0"' in pretty
        assert json.loads(pretty) == json.loads(compact)

    def test_idempotent(self) -> None:
        """Identical input gives byte-identical output."""
        assert to_json(_sample_tables(), generated_at=GENERATED) == to_json(
            _sample_tables(), generated_at=GENERATED
        )

    def test_non_ascii_kept(self) -> None:
        """Non-ASCII comments are written as-is."""
        table = Table(name="t", columns=(Column(name="c", type="text", comment="prénom"),))
        assert "prénom" in to_json([table], generated_at=GENERATED)


# ============================================================================
# Test: Reading documents back
# ============================================================================


class TestFromDocument:
    """tables_from_record() / tables_from_json()."""

    def test_round_trip(self) -> None:
        """A document rebuilds the exact tables it was written from."""
        tables = _sample_tables()
        assert tables_from_json(to_json(tables, generated_at=GENERATED)) == tables

    def test_decimal_default_exact(self) -> None:
        """A decimal default keeps every digit through JSON."""
        text = to_json(_sample_tables(), generated_at=GENERATED)
        total = json.loads(text)["tables"]["orders"]["columns"][2]
        assert total["default"] == {"kind": "literal", "value": "12345678901234567.89"}
        reread = tables_from_json(text)[0].get_column("total")
        assert reread.default == ColumnDefault.literal("12345678901234567.89")

    def test_wrong_version(self) -> None:
        """Unknown document versions are rejected."""
        record = to_record(_sample_tables(), generated_at=GENERATED)
        record["version"] = "2.0"
        with pytest.raises(InvalidSchemaError, match="Unsupported document version"):
            tables_from_record(record)

    def test_missing_tables(self) -> None:
        """A document without a tables mapping is rejected."""
        with pytest.raises(InvalidSchemaError, match="no 'tables' mapping"):
            tables_from_record({"version": "1.0", "generated": "x"})

    def test_malformed_table(self) -> None:
        """Invalid table bodies are reported with the table name."""
        record = {"version": "1.0", "tables": {"users": {"columns": [{"name": "id"}]}}}
        with pytest.raises(InvalidSchemaError, match="Invalid table 'users'"):
            tables_from_record(record)

    def test_invalid_json(self) -> None:
        """Text that is not JSON is rejected."""
        with pytest.raises(InvalidSchemaError, match="not valid JSON"):
            tables_from_json("{not json")

    def test_non_object_root(self) -> None:
        """The document root must be an object."""
        with pytest.raises(InvalidSchemaError, match="root must be an object"):
            tables_from_json("[]")


# ============================================================================
# Test: StructuredExporter
# ============================================================================


class TestStructuredExporter:
    """Exporter over a schema reader."""

    def test_to_json_via_reader(self) -> None:
        """Tables are fetched from the reader in request order."""
        reader = DocumentReader(_sample_tables(), engine="postgres")
        text = StructuredExporter(reader).to_json(["users", "orders"], generated_at=GENERATED)
        assert list(json.loads(text)["tables"]) == ["users", "orders"]

    def test_unknown_table(self) -> None:
        """Missing tables fail the whole export."""
        reader = DocumentReader(_sample_tables(), engine="postgres")
        with pytest.raises(UnknownTableError):
            StructuredExporter(reader).to_record(["users", "missing"])

    def test_document_reexported_as_identical_ddl(self) -> None:
        """DDL from a re-read document matches DDL from the original tables."""
        tables = _sample_tables()
        direct = DdlExporter(DocumentReader(tables, engine="mysql")).export(["users", "orders"])

        record = to_record(tables, generated_at=GENERATED)
        reread = DdlExporter(DocumentReader.from_record(record, engine="mysql")).export(
            ["users", "orders"]
        )
        assert reread.to_sql() == direct.to_sql()
