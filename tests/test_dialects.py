"""Tests for SQL dialect rendering and selection."""

import pytest

from schema_export.dialects import (
    DIALECTS,
    Dialect,
    MySQLDialect,
    PostgresDialect,
    SQLiteDialect,
    available_engines,
    get_dialect,
    normalize_engine,
)
from schema_export.dialects.base import foreign_key_name
from schema_export.exceptions import DialectError
from schema_export.schema.models import Column, ColumnDefault, ForeignKey, Index, Table


def _users() -> Table:
    return Table(
        name="users",
        columns=(
            Column(name="id", type="integer", primary_key=True, auto_increment=True, nullable=False),
            Column(name="email", type="string", length=255, nullable=False),
            Column(
                name="status",
                type="enum",
                enum_values=("active", "disabled"),
                default=ColumnDefault.literal("active"),
            ),
        ),
        indexes=(Index(name="ix_users_email", columns=("email",), unique=True),),
    )


def _order_items() -> Table:
    return Table(
        name="order_items",
        columns=(
            Column(name="order_id", type="integer", primary_key=True),
            Column(name="line_no", type="integer", primary_key=True),
        ),
    )


# ============================================================================
# Test: Selection
# ============================================================================


class TestDialectSelection:
    """get_dialect() and engine aliases."""

    def test_available_engines(self) -> None:
        """Three dialects ship."""
        assert available_engines() == ["mysql", "postgres", "sqlite"]

    @pytest.mark.parametrize(
        ("engine", "expected"),
        [
            ("mysql", MySQLDialect),
            ("MariaDB", MySQLDialect),
            ("postgresql", PostgresDialect),
            ("pgsql", PostgresDialect),
            ("sqlite3", SQLiteDialect),
        ],
    )
    def test_aliases(self, engine: str, expected: type) -> None:
        """Aliases resolve to their canonical dialect."""
        assert isinstance(get_dialect(engine), expected)

    def test_instances_shared(self) -> None:
        """Repeated lookups return the same cached instance."""
        assert get_dialect("postgres") is get_dialect("postgresql")

    def test_unknown_engine(self) -> None:
        """An unknown engine is a DialectError naming the choices."""
        with pytest.raises(DialectError, match="No dialect for engine 'oracle'"):
            get_dialect("oracle")

    def test_normalize_engine(self) -> None:
        """normalize_engine lowercases and maps aliases."""
        assert normalize_engine(" PostgreSQL ") == "postgres"
        assert normalize_engine("mysql") == "mysql"

    def test_dialects_satisfy_protocol(self) -> None:
        """Every shipped dialect is a Dialect."""
        for cls in DIALECTS.values():
            assert isinstance(cls(), Dialect)


# ============================================================================
# Test: Identifiers and literals
# ============================================================================


class TestQuoting:
    """Identifier quoting and literal escaping."""

    def test_postgres_reserved_word(self) -> None:
        """Reserved words are quoted."""
        assert get_dialect("postgres").quote_identifier("order") == '"order"'

    def test_mysql_backticks(self) -> None:
        """MySQL quotes with backticks."""
        assert get_dialect("mysql").quote_identifier("order") == "`order`"

    def test_embedded_quote_doubled(self) -> None:
        """An embedded quote character is doubled, not double-wrapped."""
        assert get_dialect("postgres").quote_identifier('we"ird') == '"we""ird"'
        assert get_dialect("mysql").quote_identifier("we`ird") == "`we``ird`"

    def test_string_literal_escaping(self) -> None:
        """Single quotes are doubled; MySQL also escapes backslashes."""
        assert get_dialect("postgres").render_string_literal("it's") == "'it''s'"
        assert get_dialect("mysql").render_string_literal("a\\b") == "'a\\\\b'"

    def test_boolean_literals(self) -> None:
        """Booleans render per dialect, never as Python reprs."""
        assert get_dialect("postgres").render_literal(True) == "TRUE"
        assert get_dialect("mysql").render_literal(False) == "0"
        assert get_dialect("sqlite").render_literal(True) == "1"

    def test_numeric_literals(self) -> None:
        """Numbers render bare."""
        dialect = get_dialect("postgres")
        assert dialect.render_literal(0) == "0"
        assert dialect.render_literal(2.5) == "2.5"


# ============================================================================
# Test: Column types
# ============================================================================


class TestColumnTypes:
    """Logical type mapping, length and precision."""

    def test_string_length(self) -> None:
        """Length is rendered for string types."""
        col = Column(name="email", type="string", length=120)
        assert get_dialect("postgres").render_column_type(col) == "VARCHAR(120)"
        assert get_dialect("mysql").render_column_type(col) == "VARCHAR(120)"

    def test_mysql_default_varchar_length(self) -> None:
        """MySQL needs a VARCHAR length; 255 is used when none is given."""
        col = Column(name="email", type="string")
        assert get_dialect("mysql").render_column_type(col) == "VARCHAR(255)"
        assert get_dialect("postgres").render_column_type(col) == "VARCHAR"

    def test_decimal_precision(self) -> None:
        """Precision and scale apply to decimals."""
        col = Column(name="total", type="decimal", precision=10, scale=2)
        assert get_dialect("postgres").render_column_type(col) == "NUMERIC(10,2)"
        assert get_dialect("mysql").render_column_type(col) == "DECIMAL(10,2)"

    def test_length_ignored_for_integers(self) -> None:
        """Length on a non-length type is ignored."""
        col = Column(name="n", type="integer", length=11)
        assert get_dialect("postgres").render_column_type(col) == "INTEGER"

    @pytest.mark.parametrize(
        ("logical", "postgres", "mysql", "sqlite"),
        [
            ("boolean", "BOOLEAN", "BOOLEAN", "BOOLEAN"),
            ("biginteger", "BIGINT", "BIGINT", "INTEGER"),
            ("datetime", "TIMESTAMP", "DATETIME", "DATETIME"),
            ("timestamp", "TIMESTAMPTZ", "TIMESTAMP", "TIMESTAMP"),
            ("json", "JSONB", "JSON", "TEXT"),
            ("uuid", "UUID", "CHAR(36)", "CHAR(36)"),
            ("binary", "BYTEA", "BLOB", "BLOB"),
            ("float", "DOUBLE PRECISION", "FLOAT", "REAL"),
        ],
    )
    def test_type_map(self, logical: str, postgres: str, mysql: str, sqlite: str) -> None:
        """Each logical type has a rendering in every dialect."""
        col = Column(name="c", type=logical)
        assert get_dialect("postgres").render_column_type(col) == postgres
        assert get_dialect("mysql").render_column_type(col) == mysql
        assert get_dialect("sqlite").render_column_type(col) == sqlite

    def test_mysql_varbinary(self) -> None:
        """Binary with a length becomes VARBINARY on MySQL."""
        col = Column(name="digest", type="binary", length=32)
        assert get_dialect("mysql").render_column_type(col) == "VARBINARY(32)"

    def test_unknown_type(self) -> None:
        """A type with no rule is a DialectError."""
        col = Column(name="geom", type="geometry")
        with pytest.raises(DialectError, match="no rendering rule for type 'geometry'"):
            get_dialect("postgres").render_column_type(col)


# ============================================================================
# Test: Enums, defaults, keys
# ============================================================================


class TestColumnClauses:
    """Enum, default, auto-increment and primary-key rendering."""

    def test_mysql_native_enum(self) -> None:
        """MySQL renders an inline ENUM type."""
        table = _users()
        sql = get_dialect("mysql").render_column(table, table.get_column("status"))
        assert sql == "`status` ENUM('active', 'disabled') DEFAULT 'active'"

    def test_postgres_enum_check(self) -> None:
        """PostgreSQL stores enums as VARCHAR with a CHECK constraint."""
        table = _users()
        sql = get_dialect("postgres").render_column(table, table.get_column("status"))
        assert sql == (
            "\"status\" VARCHAR(8) DEFAULT 'active' "
            "CHECK (\"status\" IN ('active', 'disabled'))"
        )

    def test_sqlite_enum_check(self) -> None:
        """SQLite stores enums as TEXT with a CHECK constraint."""
        table = _users()
        sql = get_dialect("sqlite").render_column(table, table.get_column("status"))
        assert sql.startswith('"status" TEXT')
        assert "CHECK (\"status\" IN ('active', 'disabled'))" in sql

    def test_default_kinds(self) -> None:
        """Literal, expression and NULL defaults render differently."""
        dialect = get_dialect("postgres")
        assert dialect.render_default(Column(name="c", type="text")) is None
        assert (
            dialect.render_default(Column(name="c", type="text", default=ColumnDefault.null()))
            == "DEFAULT NULL"
        )
        assert (
            dialect.render_default(
                Column(name="c", type="timestamp", default=ColumnDefault.expression("now()"))
            )
            == "DEFAULT now()"
        )
        assert (
            dialect.render_default(Column(name="c", type="integer", default=ColumnDefault.literal(0)))
            == "DEFAULT 0"
        )

    @pytest.mark.parametrize("engine", ["postgres", "mysql", "sqlite"])
    def test_decimal_default_exact(self, engine: str) -> None:
        """Decimal defaults held as text render bare with every digit."""
        col = Column(
            name="balance",
            type="decimal",
            precision=20,
            scale=2,
            default=ColumnDefault.literal("12345678901234567.89"),
        )
        assert get_dialect(engine).render_default(col) == "DEFAULT 12345678901234567.89"

    def test_decimal_default_not_numeric(self) -> None:
        """A decimal default that is not a number is a DialectError."""
        col = Column(name="balance", type="decimal", default=ColumnDefault.literal("lots"))
        with pytest.raises(DialectError, match="not a decimal literal"):
            get_dialect("postgres").render_default(col)

    def test_mysql_expression_default_parenthesized(self) -> None:
        """MySQL wraps non-keyword expression defaults in parentheses."""
        dialect = get_dialect("mysql")
        ts = Column(name="c", type="timestamp", default=ColumnDefault.expression("CURRENT_TIMESTAMP"))
        uid = Column(name="c", type="uuid", default=ColumnDefault.expression("UUID()"))
        assert dialect.render_default(ts) == "DEFAULT CURRENT_TIMESTAMP"
        assert dialect.render_default(uid) == "DEFAULT (UUID())"

    def test_postgres_identity(self) -> None:
        """PostgreSQL auto-increment is an identity column."""
        table = _users()
        sql = get_dialect("postgres").render_column(table, table.get_column("id"))
        assert sql == '"id" INTEGER NOT NULL GENERATED BY DEFAULT AS IDENTITY PRIMARY KEY'

    def test_postgres_identity_requires_integer(self) -> None:
        """Auto-increment on a non-integer column cannot be rendered."""
        table = Table(
            name="t",
            columns=(Column(name="id", type="uuid", primary_key=True, auto_increment=True),),
        )
        with pytest.raises(DialectError, match="must be an integer type"):
            get_dialect("postgres").render_column(table, table.columns[0])

    def test_mysql_auto_increment(self) -> None:
        """MySQL declares the primary key at table level."""
        table = _users()
        dialect = get_dialect("mysql")
        assert dialect.render_column(table, table.get_column("id")) == (
            "`id` INT NOT NULL AUTO_INCREMENT"
        )
        assert dialect.render_primary_key(table) == "PRIMARY KEY (`id`)"

    def test_sqlite_autoincrement(self) -> None:
        """SQLite AUTOINCREMENT follows the inline primary key."""
        table = _users()
        sql = get_dialect("sqlite").render_column(table, table.get_column("id"))
        assert sql == '"id" INTEGER NOT NULL PRIMARY KEY AUTOINCREMENT'

    def test_sqlite_autoincrement_needs_sole_integer_pk(self) -> None:
        """AUTOINCREMENT on a composite key is rejected."""
        table = Table(
            name="t",
            columns=(
                Column(name="a", type="integer", primary_key=True, auto_increment=True),
                Column(name="b", type="integer", primary_key=True),
            ),
        )
        with pytest.raises(DialectError, match="single-column INTEGER PRIMARY KEY"):
            get_dialect("sqlite").render_column(table, table.columns[0])

    def test_composite_primary_key(self) -> None:
        """Composite keys are declared at table level."""
        table = _order_items()
        assert get_dialect("postgres").render_primary_key(table) == (
            'PRIMARY KEY ("order_id", "line_no")'
        )
        assert get_dialect("postgres").render_inline_primary_key(table, table.columns[0]) is None

    def test_mysql_comment(self) -> None:
        """MySQL keeps column comments; others drop them."""
        table = Table(
            name="t",
            columns=(Column(name="c", type="text", comment="it's here"),),
        )
        assert get_dialect("mysql").render_column(table, table.columns[0]) == (
            "`c` TEXT COMMENT 'it''s here'"
        )
        assert get_dialect("postgres").render_column(table, table.columns[0]) == '"c" TEXT'


# ============================================================================
# Test: Statements
# ============================================================================


class TestStatements:
    """Foreign key, index, drop and create statements."""

    def _fk(self, **overrides) -> ForeignKey:
        fields = {
            "name": "fk_orders_user",
            "columns": ("user_id",),
            "referenced_table": "users",
            "referenced_columns": ("id",),
            "on_delete": "cascade",
        }
        fields.update(overrides)
        return ForeignKey(**fields)

    def _orders(self) -> Table:
        return Table(
            name="orders",
            columns=(
                Column(name="id", type="integer", primary_key=True),
                Column(name="user_id", type="integer", nullable=False),
            ),
        )

    def test_foreign_key_clause(self) -> None:
        """Constraint name, columns, target and normalized action."""
        sql = get_dialect("postgres").render_foreign_key(self._orders(), self._fk())
        assert sql == (
            'CONSTRAINT "fk_orders_user" FOREIGN KEY ("user_id") '
            'REFERENCES "users" ("id") ON DELETE CASCADE'
        )

    def test_generated_constraint_name(self) -> None:
        """Unnamed keys get fk_<table>_<columns>."""
        assert foreign_key_name(self._orders(), self._fk(name=None)) == "fk_orders_user_id"

    def test_generated_name_truncated(self) -> None:
        """Generated names fit the identifier limit."""
        fk = self._fk(name=None, columns=("x" * 80,))
        assert len(foreign_key_name(self._orders(), fk)) == 63

    def test_unknown_action(self) -> None:
        """Referential actions are validated."""
        with pytest.raises(DialectError, match="unsupported ON DELETE action"):
            get_dialect("postgres").render_foreign_key(self._orders(), self._fk(on_delete="EXPLODE"))

    def test_alter_add_foreign_key(self) -> None:
        """Deferred keys render as ALTER TABLE ... ADD CONSTRAINT."""
        sql = get_dialect("mysql").render_add_foreign_key(self._orders(), self._fk(on_delete=None))
        assert sql == (
            "ALTER TABLE `orders` ADD CONSTRAINT `fk_orders_user` "
            "FOREIGN KEY (`user_id`) REFERENCES `users` (`id`)"
        )

    def test_sqlite_cannot_alter_foreign_key(self) -> None:
        """SQLite has no ALTER TABLE ADD FOREIGN KEY."""
        with pytest.raises(DialectError, match="not supported"):
            get_dialect("sqlite").render_add_foreign_key(self._orders(), self._fk())

    def test_mysql_requires_referenced_columns(self) -> None:
        """MySQL foreign keys must name the referenced columns."""
        with pytest.raises(DialectError, match="must name referenced columns"):
            get_dialect("mysql").render_foreign_key(
                self._orders(), self._fk(referenced_columns=())
            )

    def test_index(self) -> None:
        """Unique indexes render CREATE UNIQUE INDEX."""
        table = _users()
        assert get_dialect("postgres").render_index(table, table.indexes[0]) == (
            'CREATE UNIQUE INDEX "ix_users_email" ON "users" ("email")'
        )

    def test_drop_table(self) -> None:
        """PostgreSQL drops cascade, and the dialect documents the side effect."""
        assert get_dialect("postgres").render_drop_table("users") == (
            'DROP TABLE IF EXISTS "users" CASCADE'
        )
        assert "outside the export" in type(get_dialect("postgres")).__doc__
        assert get_dialect("sqlite").render_drop_table("users") == 'DROP TABLE IF EXISTS "users"'

    def test_create_table_layout(self) -> None:
        """Columns, then the table-level key, then inline foreign keys."""
        sql = get_dialect("mysql").render_create_table(self._orders(), [self._fk()])
        assert sql == (
            "CREATE TABLE `orders` (\n"
            "    `id` INT NOT NULL,\n"
            "    `user_id` INT NOT NULL,\n"
            "    PRIMARY KEY (`id`),\n"
            "    CONSTRAINT `fk_orders_user` FOREIGN KEY (`user_id`) "
            "REFERENCES `users` (`id`) ON DELETE CASCADE\n"
            ") ENGINE=InnoDB"
        )

    def test_mysql_inline_index(self) -> None:
        """MySQL renders indexes as KEY clauses; other dialects do not inline them."""
        table = _users()
        assert get_dialect("mysql").inline_indexes is True
        assert get_dialect("mysql").render_inline_index(table, table.indexes[0]) == (
            "UNIQUE KEY `ix_users_email` (`email`)"
        )
        assert get_dialect("postgres").inline_indexes is False
        assert get_dialect("sqlite").inline_indexes is False
        with pytest.raises(DialectError):
            get_dialect("postgres").render_inline_index(table, table.indexes[0])

    def test_transaction_framing(self) -> None:
        """MySQL uses START TRANSACTION and toggles FK checks."""
        mysql = get_dialect("mysql")
        assert mysql.begin_transaction() == "START TRANSACTION"
        assert mysql.session_prologue() == ["SET FOREIGN_KEY_CHECKS = 0"]
        assert mysql.session_epilogue() == ["SET FOREIGN_KEY_CHECKS = 1"]
        assert get_dialect("postgres").session_prologue() == []
        assert get_dialect("sqlite").session_prologue() == ["PRAGMA defer_foreign_keys = ON"]
