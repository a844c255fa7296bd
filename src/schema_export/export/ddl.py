"""DDL export: normalized schema -> executable SQL script.

Fetches table metadata through a ``SchemaReader``, orders tables by
foreign-key dependency and renders each statement through a ``Dialect``.
The script shape is fixed::

    BEGIN;
    <session prologue>;     -- dialect specific, may be empty
    DROP TABLE IF EXISTS ...;   -- dependents first
    CREATE TABLE ...;           -- dependencies first
    CREATE INDEX ...;           -- right after its table
    ALTER TABLE ... ADD CONSTRAINT ... FOREIGN KEY ...;
    <session epilogue>;
    COMMIT;

Every step below is a pure function over the schema model. Nothing is
returned until the whole script has been rendered, so a failure never
leaves partial output.

Usage:
    from schema_export.export.ddl import DdlExporter

    exporter = DdlExporter(reader)
    document = exporter.export(["order_items", "orders", "users"])
    print(document.to_sql())
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError

from schema_export.dialects import Dialect, get_dialect
from schema_export.dialects.base import foreign_key_name
from schema_export.exceptions import (
    InvalidSchemaError,
    ReaderError,
    SchemaExportError,
    UnknownTableError,
)
from schema_export.schema.models import ExportRequest, ForeignKey, Table
from schema_export.schema.resolver import ResolvedOrder, resolve_order

if TYPE_CHECKING:
    from schema_export.readers.base import SchemaReader

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ------------------------------------------------------------------
# Result
# ------------------------------------------------------------------


@dataclass(frozen=True)
class DdlDocument:
    """A rendered DDL script.

    Attributes:
        statements: Statements in document order, without terminators.
        dialect: Name of the dialect that rendered them.
        create_order: Table creation order.
        drop_order: Table drop order.
        deferred_foreign_keys: ``table.constraint`` for every foreign key
            emitted as ALTER TABLE rather than inline.
    """

    statements: list[str]
    dialect: str
    terminator: str = ";"
    create_order: list[str] = field(default_factory=list)
    drop_order: list[str] = field(default_factory=list)
    deferred_foreign_keys: list[str] = field(default_factory=list)

    def to_sql(self) -> str:
        """Join statements, each closed by the dialect's terminator."""
        return "\n\n".join(f"{stmt}{self.terminator}" for stmt in self.statements) + "\n"

    def __str__(self) -> str:
        return self.to_sql()


# ------------------------------------------------------------------
# Fetching
# ------------------------------------------------------------------


def as_request(tables: ExportRequest | Sequence[str]) -> ExportRequest:
    """Coerce a list of names into an ``ExportRequest``."""
    if isinstance(tables, ExportRequest):
        return tables
    try:
        return ExportRequest(tables=tuple(tables))
    except ValidationError as e:
        raise InvalidSchemaError(f"Invalid export request: {e}") from e


def _call_reader(method: Callable[..., T], *args: Any) -> T:
    """Call a reader method, wrapping foreign exceptions in ``ReaderError``."""
    try:
        return method(*args)
    except SchemaExportError:
        raise
    except Exception as e:
        name = getattr(method, "__name__", "reader call")
        raise ReaderError(f"Schema reader failed in {name}(): {e}") from e


def fetch_tables(reader: "SchemaReader", request: ExportRequest) -> list[Table]:
    """Build the schema model for every requested table.

    Reader calls are made sequentially, in request order. Every requested
    name is checked against ``reader.tables()`` before any table metadata
    is read.

    Raises:
        UnknownTableError: A name is not listed by the reader, is a view,
            or the reader returned no columns for it.
        ReaderError: The reader failed or returned ``None`` for the
            listing, indexes or foreign keys.
        InvalidSchemaError: The reader's metadata violates a model
            invariant (duplicate column, index over a missing column).
    """
    listing = _call_reader(reader.tables)
    if listing is None:
        raise ReaderError("Schema reader could not list tables")

    kinds = {info["name"]: info.get("type", "table") for info in listing}
    for name in request.tables:
        if name not in kinds:
            raise UnknownTableError(name)
        if kinds[name] != "table":
            raise UnknownTableError(name, f"'{name}' is a {kinds[name]}, not a table")

    tables: list[Table] = []
    for name in request.tables:
        columns = _call_reader(reader.columns, name)
        if columns is None:
            raise UnknownTableError(name, f"Schema reader returned no columns for '{name}'")
        indexes = _call_reader(reader.indexes, name)
        if indexes is None:
            raise ReaderError(f"Schema reader returned no index list for '{name}'")
        foreign_keys = _call_reader(reader.foreign_keys, name)
        if foreign_keys is None:
            raise ReaderError(f"Schema reader returned no foreign key list for '{name}'")

        try:
            tables.append(
                Table(
                    name=name,
                    columns=tuple(columns),
                    indexes=tuple(indexes),
                    foreign_keys=tuple(foreign_keys),
                )
            )
        except ValidationError as e:
            raise InvalidSchemaError(f"Invalid metadata for table '{name}': {e}") from e

    return tables


# ------------------------------------------------------------------
# Rendering steps
# ------------------------------------------------------------------


def split_foreign_keys(
    table: Table, order: ResolvedOrder, dialect: Dialect
) -> tuple[list[ForeignKey], list[ForeignKey]]:
    """Split a table's foreign keys into (inline, deferred).

    Cycle-breaking and external keys are deferred to ALTER TABLE. A
    dialect that cannot ALTER TABLE ADD FOREIGN KEY inlines every key; a
    dialect that never inlines defers every key.
    """
    inline: list[ForeignKey] = []
    deferred: list[ForeignKey] = []
    for position, fk in enumerate(table.foreign_keys):
        if not dialect.supports_alter_foreign_key:
            inline.append(fk)
        elif not dialect.inline_foreign_keys:
            deferred.append(fk)
        elif order.is_deferred(table.name, position) or order.is_external(table.name, position):
            deferred.append(fk)
        else:
            inline.append(fk)
    return inline, deferred


def drop_statements(order: ResolvedOrder, dialect: Dialect) -> list[str]:
    return [dialect.render_drop_table(name) for name in order.drop_order]


def index_statements(table: Table, dialect: Dialect) -> list[str]:
    """Standalone index statements for a table (none if declared in CREATE TABLE)."""
    if dialect.inline_indexes:
        return []
    return [dialect.render_index(table, index) for index in table.indexes]


def create_statements(
    tables: dict[str, Table], order: ResolvedOrder, dialect: Dialect
) -> list[str]:
    """CREATE TABLE for each table, each followed by its own indexes.

    A table's unique indexes exist before any later table declares an
    inline foreign key against them.
    """
    statements = []
    for name in order.create_order:
        table = tables[name]
        inline, _ = split_foreign_keys(table, order, dialect)
        statements.append(dialect.render_create_table(table, inline))
        statements.extend(index_statements(table, dialect))
    return statements


def foreign_key_statements(
    tables: dict[str, Table], order: ResolvedOrder, dialect: Dialect
) -> list[tuple[str, str]]:
    """Deferred foreign keys as (``table.constraint``, ALTER TABLE statement)."""
    statements = []
    for name in order.create_order:
        table = tables[name]
        _, deferred = split_foreign_keys(table, order, dialect)
        for fk in deferred:
            label = f"{name}.{foreign_key_name(table, fk)}"
            statements.append((label, dialect.render_add_foreign_key(table, fk)))
    return statements


def render_ddl(tables: Sequence[Table], dialect: Dialect) -> DdlDocument:
    """Render a complete, transaction-wrapped DDL script.

    Args:
        tables: Tables to export, in caller order.
        dialect: Dialect to render with.

    Returns:
        ``DdlDocument`` holding the statements in document order.

    Raises:
        InvalidSchemaError: Duplicate table names or malformed foreign keys.
        DialectError: A type or feature has no rendering rule.
    """
    order = resolve_order(tables)
    by_name = {table.name: table for table in tables}

    fk_statements = foreign_key_statements(by_name, order, dialect)

    statements = [dialect.begin_transaction()]
    statements.extend(dialect.session_prologue())
    statements.extend(drop_statements(order, dialect))
    statements.extend(create_statements(by_name, order, dialect))
    statements.extend(sql for _, sql in fk_statements)
    statements.extend(dialect.session_epilogue())
    statements.append(dialect.commit_transaction())

    logger.debug(
        "Rendered %d tables for %s (%d deferred foreign keys, %d cycles)",
        len(tables),
        dialect.name,
        len(fk_statements),
        len(order.cycles),
    )

    return DdlDocument(
        statements=statements,
        dialect=dialect.name,
        terminator=dialect.statement_terminator,
        create_order=list(order.create_order),
        drop_order=list(order.drop_order),
        deferred_foreign_keys=[label for label, _ in fk_statements],
    )


# ------------------------------------------------------------------
# Exporter
# ------------------------------------------------------------------


class DdlExporter:
    """Export tables from a schema reader as a DDL script.

    The dialect is chosen once, at construction: either the one given, or
    the dialect for ``reader.engine``.

    Args:
        reader: Metadata source.
        dialect: ``Dialect`` instance or engine name; defaults to the
            reader's engine.

    Example:
        exporter = DdlExporter(reader, dialect="postgres")
        sql = exporter.export(["users", "orders"]).to_sql()
    """

    def __init__(self, reader: "SchemaReader", dialect: Dialect | str | None = None) -> None:
        self._reader = reader
        if dialect is None:
            dialect = reader.engine
        self._dialect = get_dialect(dialect) if isinstance(dialect, str) else dialect

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    def export(self, tables: ExportRequest | Sequence[str]) -> DdlDocument:
        """Fetch, order and render the requested tables."""
        request = as_request(tables)
        return render_ddl(fetch_tables(self._reader, request), self._dialect)

    def export_tables(self, tables: Sequence[Table]) -> DdlDocument:
        """Render already-built tables (no reader calls)."""
        return render_ddl(tables, self._dialect)


def export_ddl(
    tables: ExportRequest | Sequence[str],
    reader: "SchemaReader",
    engine: str | None = None,
) -> str:
    """Convenience wrapper: export tables and return the SQL text."""
    return DdlExporter(reader, dialect=engine).export(tables).to_sql()
