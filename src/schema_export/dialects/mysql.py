"""MySQL / MariaDB dialect."""

from typing import ClassVar

from schema_export.dialects.base import SqlDialect
from schema_export.exceptions import DialectError
from schema_export.schema.models import Column, ForeignKey, Index, LogicalType, Table

BARE_EXPRESSIONS = frozenset(
    {"CURRENT_TIMESTAMP", "NOW()", "LOCALTIME", "LOCALTIMESTAMP", "NULL", "TRUE", "FALSE"}
)


class MySQLDialect(SqlDialect):
    """MySQL DDL rules.

    - Backtick quoting, backslashes escaped in string literals
    - ``AUTO_INCREMENT`` keyword, primary key always table-level
    - Native ``ENUM(...)`` type
    - InnoDB tables; foreign-key checks are switched off for the script so
      drops work in any order
    - Indexes declared as ``KEY``/``UNIQUE KEY`` inside CREATE TABLE, ahead
      of the foreign keys, so InnoDB reuses them instead of adding its own
      index under the constraint name
    """

    name: ClassVar[str] = "mysql"
    quote_char: ClassVar[str] = "`"
    native_enum: ClassVar[bool] = True
    inline_indexes: ClassVar[bool] = True
    true_literal: ClassVar[str] = "1"
    false_literal: ClassVar[str] = "0"

    TYPE_MAP: ClassVar[dict[str, str]] = {
        "string": "VARCHAR",
        "char": "CHAR",
        "text": "TEXT",
        "integer": "INT",
        "smallinteger": "SMALLINT",
        "tinyinteger": "TINYINT",
        "biginteger": "BIGINT",
        "float": "FLOAT",
        "decimal": "DECIMAL",
        "boolean": "BOOLEAN",
        "date": "DATE",
        "datetime": "DATETIME",
        "timestamp": "TIMESTAMP",
        "time": "TIME",
        "binary": "BLOB",
        "uuid": "CHAR(36)",
        "json": "JSON",
    }
    LENGTH_TYPES: ClassVar[dict[str, int | None]] = {"string": 255, "char": None}
    PRECISION_TYPES: ClassVar[frozenset[str]] = frozenset({"decimal", "float"})

    __slots__ = ()

    def render_column_type(self, column: Column) -> str:
        if column.type == LogicalType.BINARY.value and column.length:
            return f"VARBINARY({column.length})"
        return super().render_column_type(column)

    def render_string_literal(self, value: str) -> str:
        return "'" + value.replace("\\", "\\\\").replace("'", "''") + "'"

    def render_expression(self, sql: str) -> str:
        # MySQL 8 requires parentheses around any other expression default
        if sql.strip().upper() in BARE_EXPRESSIONS:
            return sql
        return f"({sql})"

    def render_auto_increment(self, table: Table, column: Column) -> str | None:
        return "AUTO_INCREMENT" if column.auto_increment else None

    def inline_primary_key(self, table: Table) -> bool:
        return False

    def render_comment(self, column: Column) -> str | None:
        if column.comment is None:
            return None
        return f"COMMENT {self.render_string_literal(column.comment)}"

    def render_references(self, fk: ForeignKey) -> str:
        if not fk.referenced_columns:
            raise DialectError(
                f"mysql: foreign key to '{fk.referenced_table}' must name referenced columns"
            )
        return super().render_references(fk)

    def render_inline_index(self, table: Table, index: Index) -> str:
        unique = "UNIQUE " if index.unique else ""
        return f"{unique}KEY {self.quote_identifier(index.name)} ({self._quote_list(index.columns)})"

    def table_options(self) -> str:
        return "ENGINE=InnoDB"

    def begin_transaction(self) -> str:
        return "START TRANSACTION"

    def session_prologue(self) -> list[str]:
        return ["SET FOREIGN_KEY_CHECKS = 0"]

    def session_epilogue(self) -> list[str]:
        return ["SET FOREIGN_KEY_CHECKS = 1"]
