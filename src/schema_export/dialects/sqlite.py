"""SQLite dialect."""

from typing import ClassVar

from schema_export.dialects.base import BARE_DEFAULT_KEYWORDS, INTEGER_TYPES, SqlDialect
from schema_export.exceptions import DialectError
from schema_export.schema.models import Column, Table


class SQLiteDialect(SqlDialect):
    """SQLite DDL rules.

    SQLite cannot add a constraint to an existing table, so every foreign
    key is declared inside CREATE TABLE. SQLite does not check that the
    referenced table exists at creation time, which makes this safe for
    cyclic schemas too.

    ``AUTOINCREMENT`` is only valid on a single-column ``INTEGER PRIMARY
    KEY``; anything else is a ``DialectError``.
    """

    name: ClassVar[str] = "sqlite"
    supports_alter_foreign_key: ClassVar[bool] = False
    true_literal: ClassVar[str] = "1"
    false_literal: ClassVar[str] = "0"

    TYPE_MAP: ClassVar[dict[str, str]] = {
        "string": "VARCHAR",
        "char": "CHAR",
        "text": "TEXT",
        "integer": "INTEGER",
        "smallinteger": "INTEGER",
        "tinyinteger": "INTEGER",
        "biginteger": "INTEGER",
        "float": "REAL",
        "decimal": "NUMERIC",
        "boolean": "BOOLEAN",
        "date": "DATE",
        "datetime": "DATETIME",
        "timestamp": "TIMESTAMP",
        "time": "TIME",
        "binary": "BLOB",
        "uuid": "CHAR(36)",
        "json": "TEXT",
    }
    LENGTH_TYPES: ClassVar[dict[str, int | None]] = {"string": None, "char": None}
    PRECISION_TYPES: ClassVar[frozenset[str]] = frozenset({"decimal"})

    __slots__ = ()

    def render_enum_storage(self, column: Column) -> str:
        return "TEXT"

    def render_expression(self, sql: str) -> str:
        if sql.strip().upper() in BARE_DEFAULT_KEYWORDS:
            return sql
        return f"({sql})"

    def render_auto_increment(self, table: Table, column: Column) -> str | None:
        if not column.auto_increment:
            return None
        if table.primary_key_columns != [column.name] or column.type not in INTEGER_TYPES:
            raise DialectError(
                f"sqlite: AUTOINCREMENT on '{table.name}.{column.name}' requires "
                f"a single-column INTEGER PRIMARY KEY"
            )
        # Rendered together with the inline primary key
        return None

    def render_inline_primary_key(self, table: Table, column: Column) -> str | None:
        clause = super().render_inline_primary_key(table, column)
        if clause and column.auto_increment:
            return f"{clause} AUTOINCREMENT"
        return clause

    def session_prologue(self) -> list[str]:
        return ["PRAGMA defer_foreign_keys = ON"]
