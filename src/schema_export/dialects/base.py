"""Dialect protocol and shared DDL rendering.

``Dialect`` is the capability the DDL exporter renders through. The three
shipped variants (MySQL, PostgreSQL, SQLite) share ``SqlDialect`` for
clause assembly and override only engine syntax: quoting, the type map,
auto-increment and enum handling, and transaction framing.

Dialect instances carry no state; every setting is a class attribute, so
one instance can be shared by any number of concurrent exports.
"""

from collections.abc import Sequence
from decimal import Decimal, InvalidOperation
from typing import ClassVar, Protocol, runtime_checkable

from schema_export.exceptions import DialectError
from schema_export.schema.models import Column, DefaultKind, ForeignKey, Index, LogicalType, Table

# Longest identifier accepted by PostgreSQL; MySQL allows 64, SQLite more
MAX_IDENTIFIER_LENGTH = 63

REFERENTIAL_ACTIONS = frozenset({"CASCADE", "SET NULL", "SET DEFAULT", "RESTRICT", "NO ACTION"})

INTEGER_TYPES = frozenset(
    {
        LogicalType.INTEGER.value,
        LogicalType.SMALLINTEGER.value,
        LogicalType.TINYINTEGER.value,
        LogicalType.BIGINTEGER.value,
    }
)

# Expression defaults every engine accepts without parentheses
BARE_DEFAULT_KEYWORDS = frozenset(
    {"CURRENT_TIMESTAMP", "CURRENT_DATE", "CURRENT_TIME", "NULL", "TRUE", "FALSE"}
)


@runtime_checkable
class Dialect(Protocol):
    """Formatting rules for one database engine."""

    name: str
    statement_terminator: str
    inline_foreign_keys: bool
    inline_indexes: bool
    supports_alter_foreign_key: bool

    def quote_identifier(self, name: str) -> str: ...

    def render_column_type(self, column: Column) -> str: ...

    def render_default(self, column: Column) -> str | None: ...

    def render_auto_increment(self, table: Table, column: Column) -> str | None: ...

    def render_primary_key(self, table: Table) -> str | None: ...

    def render_enum(self, column: Column) -> str: ...

    def render_column(self, table: Table, column: Column) -> str: ...

    def render_index(self, table: Table, index: Index) -> str: ...

    def render_foreign_key(self, table: Table, fk: ForeignKey) -> str: ...

    def render_add_foreign_key(self, table: Table, fk: ForeignKey) -> str: ...

    def render_drop_table(self, name: str) -> str: ...

    def render_create_table(self, table: Table, inline_fks: Sequence[ForeignKey]) -> str: ...

    def begin_transaction(self) -> str: ...

    def commit_transaction(self) -> str: ...

    def session_prologue(self) -> list[str]: ...

    def session_epilogue(self) -> list[str]: ...


def foreign_key_name(table: Table, fk: ForeignKey) -> str:
    """Constraint name for a foreign key, generated when the reader gave none.

    Example:
        >>> foreign_key_name(orders, ForeignKey(columns=("user_id",), ...))
        'fk_orders_user_id'
    """
    if fk.name:
        return fk.name
    name = "_".join(["fk", table.name, *fk.columns])
    return name[:MAX_IDENTIFIER_LENGTH]


class SqlDialect:
    """Shared clause assembly for SQL dialects.

    Subclasses set the class attributes and override the hooks whose
    syntax differs between engines.
    """

    name: ClassVar[str] = ""
    quote_char: ClassVar[str] = '"'
    statement_terminator: ClassVar[str] = ";"
    inline_foreign_keys: ClassVar[bool] = True
    # Indexes declared inside CREATE TABLE instead of CREATE INDEX
    inline_indexes: ClassVar[bool] = False
    supports_alter_foreign_key: ClassVar[bool] = True
    native_enum: ClassVar[bool] = False
    true_literal: ClassVar[str] = "TRUE"
    false_literal: ClassVar[str] = "FALSE"

    # Logical type -> SQL type name
    TYPE_MAP: ClassVar[dict[str, str]] = {}
    # Types that take ``(length)``, with the length used when none is given
    LENGTH_TYPES: ClassVar[dict[str, int | None]] = {}
    # Types that take ``(precision[,scale])``
    PRECISION_TYPES: ClassVar[frozenset[str]] = frozenset()

    __slots__ = ()

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other)

    def __hash__(self) -> int:
        return hash(type(self))

    # ------------------------------------------------------------------
    # Identifiers and literals
    # ------------------------------------------------------------------

    def quote_identifier(self, name: str) -> str:
        """Quote an identifier, doubling any embedded quote character."""
        q = self.quote_char
        return f"{q}{name.replace(q, q + q)}{q}"

    def _quote_list(self, names: Sequence[str]) -> str:
        return ", ".join(self.quote_identifier(n) for n in names)

    def render_string_literal(self, value: str) -> str:
        return "'" + value.replace("'", "''") + "'"

    def render_literal(self, value: str | int | float | bool) -> str:
        # bool before int: bool is an int subclass
        if isinstance(value, bool):
            return self.true_literal if value else self.false_literal
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return repr(value)
        return self.render_string_literal(value)

    def render_decimal_literal(self, value: str) -> str:
        """Exact numeric literal, written bare so no digits are lost."""
        try:
            number = Decimal(value.strip())
        except InvalidOperation as e:
            raise DialectError(f"{self.name}: '{value}' is not a decimal literal") from e
        if not number.is_finite():
            raise DialectError(f"{self.name}: '{value}' is not a decimal literal")
        return str(number)

    def render_expression(self, sql: str) -> str:
        return sql

    # ------------------------------------------------------------------
    # Column clauses
    # ------------------------------------------------------------------

    def _base_type(self, column: Column) -> str:
        base = self.TYPE_MAP.get(column.type)
        if base is None:
            raise DialectError(
                f"{self.name}: no rendering rule for type '{column.type}' "
                f"(column '{column.name}')"
            )
        return base

    def render_column_type(self, column: Column) -> str:
        """Render the SQL type of a column.

        Length applies only to ``LENGTH_TYPES`` and precision/scale only
        to ``PRECISION_TYPES``; elsewhere they are ignored.
        """
        if column.type == LogicalType.ENUM.value:
            return self.render_enum_storage(column)

        base = self._base_type(column)

        if column.type in self.LENGTH_TYPES:
            length = column.length or self.LENGTH_TYPES[column.type]
            return f"{base}({length})" if length else base

        if column.type in self.PRECISION_TYPES and column.precision is not None:
            if column.scale is not None:
                return f"{base}({column.precision},{column.scale})"
            return f"{base}({column.precision})"

        return base

    def render_enum_storage(self, column: Column) -> str:
        """Type used to store an enum column (the enum clause itself for native enums)."""
        if self.native_enum:
            return self.render_enum(column)
        raise DialectError(f"{self.name}: enum storage type not defined")

    def render_enum(self, column: Column) -> str:
        """Enum clause: native type, or a CHECK constraint over the values."""
        values = ", ".join(self.render_string_literal(v) for v in column.enum_values or ())
        if self.native_enum:
            return f"ENUM({values})"
        return f"CHECK ({self.quote_identifier(column.name)} IN ({values}))"

    def render_default(self, column: Column) -> str | None:
        """Render ``DEFAULT ...``; ``None`` when the column has no default."""
        default = column.default
        if default is None:
            return None
        if default.kind is DefaultKind.NULL:
            return "DEFAULT NULL"
        if default.kind is DefaultKind.EXPRESSION:
            return f"DEFAULT {self.render_expression(str(default.value))}"
        if column.type == LogicalType.DECIMAL.value and isinstance(default.value, str):
            return f"DEFAULT {self.render_decimal_literal(default.value)}"
        return f"DEFAULT {self.render_literal(default.value)}"

    def render_auto_increment(self, table: Table, column: Column) -> str | None:
        return None

    def inline_primary_key(self, table: Table) -> bool:
        """True if a single-column primary key is declared on the column."""
        return len(table.primary_key_columns) == 1

    def render_primary_key(self, table: Table) -> str | None:
        """Table-level ``PRIMARY KEY (...)``, unless declared inline."""
        pk = table.primary_key_columns
        if not pk or self.inline_primary_key(table):
            return None
        return f"PRIMARY KEY ({self._quote_list(pk)})"

    def render_inline_primary_key(self, table: Table, column: Column) -> str | None:
        if column.primary_key and self.inline_primary_key(table):
            return "PRIMARY KEY"
        return None

    def render_comment(self, column: Column) -> str | None:
        return None

    def render_column(self, table: Table, column: Column) -> str:
        """Full column clause for CREATE TABLE."""
        parts = [self.quote_identifier(column.name), self.render_column_type(column)]
        if not column.nullable or column.primary_key:
            parts.append("NOT NULL")
        default = self.render_default(column)
        if default:
            parts.append(default)
        auto_increment = self.render_auto_increment(table, column)
        if auto_increment:
            parts.append(auto_increment)
        inline_pk = self.render_inline_primary_key(table, column)
        if inline_pk:
            parts.append(inline_pk)
        if column.type == LogicalType.ENUM.value and not self.native_enum:
            parts.append(self.render_enum(column))
        comment = self.render_comment(column)
        if comment:
            parts.append(comment)
        return " ".join(parts)

    # ------------------------------------------------------------------
    # Constraints and statements
    # ------------------------------------------------------------------

    def _render_action(self, keyword: str, action: str | None) -> str | None:
        if action is None:
            return None
        normalized = " ".join(action.upper().split())
        if normalized not in REFERENTIAL_ACTIONS:
            raise DialectError(f"{self.name}: unsupported {keyword} action '{action}'")
        return f"{keyword} {normalized}"

    def render_references(self, fk: ForeignKey) -> str:
        target = self.quote_identifier(fk.referenced_table)
        if fk.referenced_columns:
            return f"REFERENCES {target} ({self._quote_list(fk.referenced_columns)})"
        return f"REFERENCES {target}"

    def render_foreign_key(self, table: Table, fk: ForeignKey) -> str:
        """``CONSTRAINT name FOREIGN KEY (...) REFERENCES ...`` clause."""
        parts = [
            f"CONSTRAINT {self.quote_identifier(foreign_key_name(table, fk))}",
            f"FOREIGN KEY ({self._quote_list(fk.columns)})",
            self.render_references(fk),
        ]
        for keyword, action in (("ON DELETE", fk.on_delete), ("ON UPDATE", fk.on_update)):
            rendered = self._render_action(keyword, action)
            if rendered:
                parts.append(rendered)
        return " ".join(parts)

    def render_add_foreign_key(self, table: Table, fk: ForeignKey) -> str:
        if not self.supports_alter_foreign_key:
            raise DialectError(f"{self.name}: ALTER TABLE ADD FOREIGN KEY is not supported")
        return f"ALTER TABLE {self.quote_identifier(table.name)} ADD {self.render_foreign_key(table, fk)}"

    def render_index(self, table: Table, index: Index) -> str:
        unique = "UNIQUE " if index.unique else ""
        return (
            f"CREATE {unique}INDEX {self.quote_identifier(index.name)} "
            f"ON {self.quote_identifier(table.name)} ({self._quote_list(index.columns)})"
        )

    def render_inline_index(self, table: Table, index: Index) -> str:
        raise DialectError(f"{self.name}: indexes cannot be declared inside CREATE TABLE")

    def render_drop_table(self, name: str) -> str:
        return f"DROP TABLE IF EXISTS {self.quote_identifier(name)}"

    def table_options(self) -> str:
        return ""

    def render_create_table(self, table: Table, inline_fks: Sequence[ForeignKey]) -> str:
        """``CREATE TABLE`` with columns, primary key, inline indexes and foreign keys."""
        clauses = [self.render_column(table, col) for col in table.columns]
        pk = self.render_primary_key(table)
        if pk:
            clauses.append(pk)
        if self.inline_indexes:
            clauses.extend(self.render_inline_index(table, index) for index in table.indexes)
        clauses.extend(self.render_foreign_key(table, fk) for fk in inline_fks)

        body = ",\n".join(f"    {clause}" for clause in clauses)
        sql = f"CREATE TABLE {self.quote_identifier(table.name)} (\n{body}\n)"
        options = self.table_options()
        return f"{sql} {options}" if options else sql

    def begin_transaction(self) -> str:
        return "BEGIN"

    def commit_transaction(self) -> str:
        return "COMMIT"

    def session_prologue(self) -> list[str]:
        return []

    def session_epilogue(self) -> list[str]:
        return []
