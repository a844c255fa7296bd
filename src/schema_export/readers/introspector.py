"""Live database introspection via SQLAlchemy's inspector.

Reads table metadata from a running database and maps it onto the
normalized schema model:
- Tables and views
- Columns (logical type, length/precision, nullability, defaults,
  primary key, auto increment, enum values, comments)
- Secondary indexes and unique constraints
- Foreign keys with referential actions

Works with any engine SQLAlchemy can reflect. PostgreSQL URLs are routed
through psycopg (v3).

Usage:
    with SchemaIntrospector(database_url) as introspector:
        for info in introspector.tables():
            print(info["name"], introspector.columns(info["name"]))
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine, Inspector, make_url
from sqlalchemy.exc import NoSuchTableError

from schema_export.dialects import normalize_engine
from schema_export.readers.base import TableInfo
from schema_export.schema.models import (
    Column,
    ColumnDefault,
    ForeignKey,
    Index,
    LogicalType,
)

logger = logging.getLogger(__name__)

# Reflected type name (lowercased, "_" -> " ") -> logical type
TYPE_MAP: dict[str, str] = {
    "varchar": "string",
    "character varying": "string",
    "nvarchar": "string",
    "string": "string",
    "char": "char",
    "character": "char",
    "nchar": "char",
    "text": "text",
    "tinytext": "text",
    "mediumtext": "text",
    "longtext": "text",
    "clob": "text",
    "integer": "integer",
    "int": "integer",
    "mediumint": "integer",
    "smallint": "smallinteger",
    "small integer": "smallinteger",
    "tinyint": "tinyinteger",
    "bigint": "biginteger",
    "big integer": "biginteger",
    "float": "float",
    "real": "float",
    "double": "float",
    "double precision": "float",
    "numeric": "decimal",
    "decimal": "decimal",
    "boolean": "boolean",
    "bool": "boolean",
    "date": "date",
    "datetime": "datetime",
    "timestamp without time zone": "datetime",
    "timestamp": "timestamp",
    "timestamptz": "timestamp",
    "timestamp with time zone": "timestamp",
    "time": "time",
    "time without time zone": "time",
    "blob": "binary",
    "tinyblob": "binary",
    "mediumblob": "binary",
    "longblob": "binary",
    "bytea": "binary",
    "binary": "binary",
    "varbinary": "binary",
    "large binary": "binary",
    "uuid": "uuid",
    "json": "json",
    "jsonb": "json",
    "enum": "enum",
}

_LENGTH_TYPES = frozenset({"string", "char", "binary"})
_PRECISION_TYPES = frozenset({"decimal", "float"})
_INTEGER_TYPES = frozenset({"integer", "smallinteger", "tinyinteger", "biginteger"})

_QUOTED = re.compile(r"^'(?P<body>(?:[^']|'')*)'(?:::[\w\s\".\[\]]+)?$")
_NUMBER = re.compile(r"^\(?(?P<num>-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?)\)?(?:::[\w\s]+)?$")


class SchemaIntrospector:
    """``SchemaReader`` over a live database.

    Metadata is read through one SQLAlchemy ``Inspector`` per ``with``
    block, so repeated calls inside a block see one consistent snapshot.

    Usage:
        with SchemaIntrospector("postgresql://user:pw@host/db") as introspector:
            cols = introspector.columns("users", ["id", "email"])

    Args:
        database_url: SQLAlchemy database URL. Ignored when ``bind`` is given.
        bind: Existing engine to reflect through; it is not disposed on exit.
        excluded_tables: Table names hidden from ``tables()``.
        connect_timeout: Connection timeout in seconds.
        schema: Database schema to read (default: the connection's default).
        engine: Engine reported to exporters, which picks the default DDL
            dialect (default: the connection's backend).
    """

    # Tables to exclude from introspection (system tables)
    EXCLUDED_TABLES_DEFAULT = frozenset(
        {
            "schema_migrations",
            "pg_stat_statements",
            "spatial_ref_sys",
            "sqlite_sequence",
        }
    )

    def __init__(
        self,
        database_url: str | None = None,
        *,
        bind: Engine | None = None,
        excluded_tables: set[str] | frozenset[str] | None = None,
        connect_timeout: int = 10,
        schema: str | None = None,
        engine: str | None = None,
    ):
        if database_url is None and bind is None:
            raise ValueError("SchemaIntrospector needs a database_url or an engine")
        self._database_url = database_url
        self._bind = bind
        self._owns_engine = bind is None
        self._connect_timeout = connect_timeout
        self._schema = schema
        self._engine_name = normalize_engine(engine) if engine else None
        self._excluded = frozenset(
            self.EXCLUDED_TABLES_DEFAULT if excluded_tables is None else excluded_tables
        )
        self._sa_engine: Engine | None = bind
        self._inspector: Inspector | None = None

    def __enter__(self) -> "SchemaIntrospector":
        """Context manager entry - creates the engine and inspector."""
        if self._sa_engine is None:
            self._sa_engine = create_engine(
                normalize_url(self._database_url),
                connect_args=self._connect_args(),
            )
        self._inspector = inspect(self._sa_engine)
        logger.debug("Introspecting %s", self._sa_engine.url.render_as_string())
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - disposes an engine this introspector created."""
        self._inspector = None
        if self._owns_engine and self._sa_engine is not None:
            self._sa_engine.dispose()
            self._sa_engine = None

    def _connect_args(self) -> dict[str, Any]:
        backend = make_url(normalize_url(self._database_url)).get_backend_name()
        if backend == "sqlite":
            return {"timeout": self._connect_timeout}
        return {"connect_timeout": self._connect_timeout}

    def _require_inspector(self) -> Inspector:
        if self._inspector is None:
            raise RuntimeError("Introspector not connected. Use with statement.")
        return self._inspector

    # ------------------------------------------------------------------
    # SchemaReader
    # ------------------------------------------------------------------

    @property
    def engine(self) -> str:
        return self._engine_name or self._backend

    @property
    def _backend(self) -> str:
        if self._sa_engine is None:
            return normalize_engine(make_url(normalize_url(self._database_url)).get_backend_name())
        return normalize_engine(self._sa_engine.dialect.name)

    def tables(self) -> list[TableInfo]:
        inspector = self._require_inspector()
        listing: list[TableInfo] = [
            {"name": name, "type": "table"}
            for name in inspector.get_table_names(schema=self._schema)
            if name not in self._excluded
        ]
        listing.extend(
            {"name": name, "type": "view"}
            for name in inspector.get_view_names(schema=self._schema)
            if name not in self._excluded
        )
        return listing

    def columns(self, table: str, fields: list[str] | None = None) -> list[Column] | None:
        inspector = self._require_inspector()
        try:
            reflected = inspector.get_columns(table, schema=self._schema)
            pk = inspector.get_pk_constraint(table, schema=self._schema)
        except NoSuchTableError:
            return None

        pk_columns = set(pk.get("constrained_columns") or [])
        columns = {col["name"]: self._build_column(col, pk_columns) for col in reflected}

        if fields is None:
            return list(columns.values())
        if any(name not in columns for name in fields):
            return None
        return [columns[name] for name in fields]

    def indexes(self, table: str) -> list[Index] | None:
        inspector = self._require_inspector()
        try:
            reflected = inspector.get_indexes(table, schema=self._schema)
            uniques = inspector.get_unique_constraints(table, schema=self._schema)
        except NoSuchTableError:
            return None

        indexes: list[Index] = []
        for idx in reflected:
            column_names = idx.get("column_names") or []
            if not column_names or any(name is None for name in column_names):
                logger.debug("Skipping expression index %s on %s", idx.get("name"), table)
                continue
            indexes.append(
                Index(
                    name=idx["name"],
                    columns=tuple(column_names),
                    unique=bool(idx.get("unique")),
                )
            )

        # Unique constraints not already backed by a reflected index
        covered = {(index.columns, index.unique) for index in indexes}
        names = {index.name for index in indexes}
        for uq in uniques:
            columns = tuple(uq.get("column_names") or [])
            if not columns or (columns, True) in covered:
                continue
            name = uq.get("name") or f"uq_{table}_{'_'.join(columns)}"
            if name in names:
                continue
            indexes.append(Index(name=name, columns=columns, unique=True))
        return indexes

    def foreign_keys(self, table: str) -> list[ForeignKey] | None:
        inspector = self._require_inspector()
        try:
            reflected = inspector.get_foreign_keys(table, schema=self._schema)
        except NoSuchTableError:
            return None

        foreign_keys = []
        for fk in reflected:
            options = fk.get("options") or {}
            foreign_keys.append(
                ForeignKey(
                    name=fk.get("name"),
                    columns=tuple(fk["constrained_columns"]),
                    referenced_table=fk["referred_table"],
                    referenced_columns=tuple(fk.get("referred_columns") or ()),
                    on_delete=_action(options.get("ondelete")),
                    on_update=_action(options.get("onupdate")),
                )
            )
        return foreign_keys

    def field_type(self, raw_type_name: str) -> str | None:
        return TYPE_MAP.get(_normalize_data_type(raw_type_name))

    # ------------------------------------------------------------------
    # Column mapping
    # ------------------------------------------------------------------

    def _logical_type(self, sa_type: Any) -> str:
        raw = getattr(sa_type, "__visit_name__", type(sa_type).__name__)
        if getattr(sa_type, "enums", None):
            return LogicalType.ENUM.value

        logical = self.field_type(raw)
        if logical is None:
            logger.warning("No logical type for reflected type %r", str(sa_type))
            return _normalize_data_type(raw)

        if logical == "timestamp" and getattr(sa_type, "timezone", None) is False:
            if self._backend == "postgres":
                return "datetime"
        if logical == "tinyinteger" and getattr(sa_type, "display_width", None) == 1:
            return "boolean"
        return logical

    def _build_column(self, col: dict[str, Any], pk_columns: set[str]) -> Column:
        sa_type = col["type"]
        logical = self._logical_type(sa_type)

        length = getattr(sa_type, "length", None) if logical in _LENGTH_TYPES else None
        precision = scale = None
        if logical in _PRECISION_TYPES:
            precision = getattr(sa_type, "precision", None)
            scale = getattr(sa_type, "scale", None)

        default, serial = _parse_default(col.get("default"), logical)
        auto_increment = (
            serial
            or col.get("autoincrement") is True
            or bool(col.get("identity"))
        ) and logical in _INTEGER_TYPES

        enums = getattr(sa_type, "enums", None)
        return Column(
            name=col["name"],
            type=logical,
            length=length if isinstance(length, int) else None,
            precision=precision if isinstance(precision, int) else None,
            scale=scale if isinstance(scale, int) else None,
            nullable=bool(col.get("nullable", True)) and col["name"] not in pk_columns,
            default=default,
            primary_key=col["name"] in pk_columns,
            auto_increment=auto_increment,
            enum_values=tuple(enums) if enums else None,
            comment=col.get("comment"),
        )


def normalize_url(database_url: str | None) -> str:
    """Route bare PostgreSQL URLs through the psycopg (v3) driver.

    Example:
        >>> normalize_url("postgres://u@h/db")
        'postgresql+psycopg://u@h/db'
    """
    if database_url is None:
        raise ValueError("No database URL configured")
    for scheme in ("postgres://", "postgresql://"):
        if database_url.startswith(scheme):
            return "postgresql+psycopg://" + database_url[len(scheme):]
    return database_url


def _normalize_data_type(data_type: str) -> str:
    """Lowercase a raw type name and drop any ``(...)`` suffix."""
    name = re.sub(r"\(.*\)", "", data_type).strip().lower()
    return name.replace("_", " ")


def _action(value: str | None) -> str | None:
    if not value:
        return None
    return value.upper()


def _parse_default(raw: str | None, logical: str) -> tuple[ColumnDefault | None, bool]:
    """Parse a reflected server default.

    Returns:
        ``(default, is_serial)``. A ``nextval(...)`` default marks an
        auto-increment column and yields no default.
    """
    if raw is None:
        return None, False
    text = raw.strip()
    upper = text.upper()

    if upper == "NULL" or upper.startswith("NULL::"):
        return ColumnDefault.null(), False
    if upper.startswith("NEXTVAL("):
        return None, True

    quoted = _QUOTED.match(text)
    if quoted:
        return _coerce_literal(quoted.group("body").replace("''", "'"), logical), False

    number = _NUMBER.match(text)
    if number:
        return _coerce_literal(number.group("num"), logical), False

    if upper in ("TRUE", "FALSE"):
        return ColumnDefault.literal(upper == "TRUE"), False

    return ColumnDefault.expression(text), False


def _coerce_literal(value: str, logical: str) -> ColumnDefault:
    """Type a literal default by its column's logical type.

    Some engines report numeric defaults quoted (``'0'``), others bare.
    """
    if logical == "boolean":
        lowered = value.lower()
        if lowered in ("1", "true", "t"):
            return ColumnDefault.literal(True)
        if lowered in ("0", "false", "f"):
            return ColumnDefault.literal(False)
    if logical in _INTEGER_TYPES:
        try:
            return ColumnDefault.literal(int(value))
        except ValueError:
            pass
    if logical == "decimal":
        # Exact digits as text, never a float
        try:
            return ColumnDefault.literal(str(Decimal(value)))
        except InvalidOperation:
            return ColumnDefault.literal(value)
    if logical == "float":
        try:
            return ColumnDefault.literal(float(value))
        except ValueError:
            pass
    if logical in _LENGTH_TYPES or logical in ("text", "enum", "uuid", "json"):
        return ColumnDefault.literal(value)
    try:
        return ColumnDefault.literal(int(value))
    except ValueError:
        pass
    try:
        return ColumnDefault.literal(float(value))
    except ValueError:
        return ColumnDefault.literal(value)
