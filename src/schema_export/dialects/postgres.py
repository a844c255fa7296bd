"""PostgreSQL dialect."""

from typing import ClassVar

from schema_export.dialects.base import INTEGER_TYPES, SqlDialect
from schema_export.exceptions import DialectError
from schema_export.schema.models import Column, Table


class PostgresDialect(SqlDialect):
    """PostgreSQL DDL rules.

    - Double-quote quoting
    - Sequence-backed ``GENERATED BY DEFAULT AS IDENTITY`` for auto increment
    - Enums stored as ``VARCHAR`` with a CHECK constraint over the values
    - ``DROP TABLE ... CASCADE`` so drops never trip over foreign keys.
      CASCADE also removes foreign keys and views outside the export that
      depend on a dropped table; they are not recreated.
    """

    name: ClassVar[str] = "postgres"

    TYPE_MAP: ClassVar[dict[str, str]] = {
        "string": "VARCHAR",
        "char": "CHAR",
        "text": "TEXT",
        "integer": "INTEGER",
        "smallinteger": "SMALLINT",
        "tinyinteger": "SMALLINT",
        "biginteger": "BIGINT",
        "float": "DOUBLE PRECISION",
        "decimal": "NUMERIC",
        "boolean": "BOOLEAN",
        "date": "DATE",
        "datetime": "TIMESTAMP",
        "timestamp": "TIMESTAMPTZ",
        "time": "TIME",
        "binary": "BYTEA",
        "uuid": "UUID",
        "json": "JSONB",
    }
    LENGTH_TYPES: ClassVar[dict[str, int | None]] = {"string": None, "char": None}
    PRECISION_TYPES: ClassVar[frozenset[str]] = frozenset({"decimal"})

    __slots__ = ()

    def render_enum_storage(self, column: Column) -> str:
        length = column.length or max(len(v) for v in column.enum_values or ("",))
        return f"VARCHAR({max(length, 1)})"

    def render_auto_increment(self, table: Table, column: Column) -> str | None:
        if not column.auto_increment:
            return None
        if column.type not in INTEGER_TYPES:
            raise DialectError(
                f"postgres: identity column '{table.name}.{column.name}' "
                f"must be an integer type, not '{column.type}'"
            )
        return "GENERATED BY DEFAULT AS IDENTITY"

    def render_drop_table(self, name: str) -> str:
        return f"DROP TABLE IF EXISTS {self.quote_identifier(name)} CASCADE"
