"""Pydantic models for the normalized schema.

This module contains the engine-independent schema model:
- Column-level models: LogicalType, DefaultKind, ColumnDefault, Column
- Table-level models: Index, ForeignKey, Table
- Request model: ExportRequest

All models are frozen value snapshots. Field aliases are camelCase so the
structured exporter can dump them directly (``primaryKey``,
``foreignKeys``); both spellings are accepted on input.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


_MODEL_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
)


# ============================================================================
# Column Models
# ============================================================================


class LogicalType(str, Enum):
    """Engine-independent column types understood by every dialect."""

    STRING = "string"
    CHAR = "char"
    TEXT = "text"
    INTEGER = "integer"
    SMALLINTEGER = "smallinteger"
    TINYINTEGER = "tinyinteger"
    BIGINTEGER = "biginteger"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    TIME = "time"
    BINARY = "binary"
    UUID = "uuid"
    JSON = "json"
    ENUM = "enum"


class DefaultKind(str, Enum):
    """How a column default is expressed."""

    LITERAL = "literal"
    EXPRESSION = "expression"
    NULL = "null"


class ColumnDefault(BaseModel):
    """A dialect-agnostic column default.

    ``Column.default = None`` means the column has no default at all;
    ``ColumnDefault.null()`` is an explicit ``DEFAULT NULL``. Literals for
    decimal columns are held as their exact text (``"0.10"``).

    Example:
        >>> ColumnDefault.literal("active").value
        'active'
        >>> ColumnDefault.expression("CURRENT_TIMESTAMP").kind
        <DefaultKind.EXPRESSION: 'expression'>
    """

    model_config = _MODEL_CONFIG

    kind: DefaultKind
    value: str | int | float | bool | None = None

    @classmethod
    def literal(cls, value: str | int | float | bool) -> "ColumnDefault":
        return cls(kind=DefaultKind.LITERAL, value=value)

    @classmethod
    def expression(cls, sql: str) -> "ColumnDefault":
        return cls(kind=DefaultKind.EXPRESSION, value=sql)

    @classmethod
    def null(cls) -> "ColumnDefault":
        return cls(kind=DefaultKind.NULL)

    @model_validator(mode="after")
    def check_value(self) -> "ColumnDefault":
        if self.kind is DefaultKind.NULL and self.value is not None:
            raise ValueError("a NULL default carries no value")
        if self.kind is DefaultKind.EXPRESSION and (
            not isinstance(self.value, str) or not self.value.strip()
        ):
            raise ValueError("an expression default needs a non-empty SQL string")
        if self.kind is DefaultKind.LITERAL and self.value is None:
            raise ValueError("a literal default needs a value; use ColumnDefault.null()")
        return self


class Column(BaseModel):
    """Normalized column definition.

    Example:
        >>> col = Column(name="id", type="integer", primary_key=True)
        >>> col.nullable
        True
    """

    model_config = _MODEL_CONFIG

    name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    nullable: bool = True
    default: ColumnDefault | None = None
    primary_key: bool = False
    auto_increment: bool = False
    enum_values: tuple[str, ...] | None = None
    comment: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        if isinstance(value, LogicalType):
            return value.value
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def check_enum(self) -> "Column":
        if self.enum_values is not None and self.type != LogicalType.ENUM.value:
            raise ValueError(
                f"Column '{self.name}' has enum values but type '{self.type}'"
            )
        if self.type == LogicalType.ENUM.value and not self.enum_values:
            raise ValueError(f"Enum column '{self.name}' needs enum values")
        return self


# ============================================================================
# Table Models
# ============================================================================


class Index(BaseModel):
    """Index over one or more columns of a table."""

    model_config = _MODEL_CONFIG

    name: str = Field(min_length=1)
    columns: tuple[str, ...]
    unique: bool = False


class ForeignKey(BaseModel):
    """Foreign key from ``columns`` to ``referenced_table.referenced_columns``.

    ``name`` is the constraint name when the reader knows it. An empty
    column list is representable here and rejected by the resolver.
    """

    model_config = _MODEL_CONFIG

    name: str | None = None
    columns: tuple[str, ...]
    referenced_table: str
    referenced_columns: tuple[str, ...]
    on_delete: str | None = None
    on_update: str | None = None

    def is_self_reference(self, table_name: str) -> bool:
        """True if this key points back at its own table."""
        return self.referenced_table == table_name


class Table(BaseModel):
    """Normalized table: ordered columns, indexes and foreign keys."""

    model_config = _MODEL_CONFIG

    name: str = Field(min_length=1)
    columns: tuple[Column, ...]
    indexes: tuple[Index, ...] = ()
    foreign_keys: tuple[ForeignKey, ...] = ()

    @model_validator(mode="after")
    def check_references(self) -> "Table":
        seen: set[str] = set()
        for col in self.columns:
            if col.name in seen:
                raise ValueError(
                    f"Duplicate column '{col.name}' in table '{self.name}'"
                )
            seen.add(col.name)

        for index in self.indexes:
            missing = [c for c in index.columns if c not in seen]
            if missing:
                raise ValueError(
                    f"Index '{index.name}' on '{self.name}' references "
                    f"unknown column(s): {', '.join(missing)}"
                )
        return self

    @property
    def column_names(self) -> list[str]:
        return [col.name for col in self.columns]

    @property
    def primary_key_columns(self) -> list[str]:
        """Primary-key column names in column order."""
        return [col.name for col in self.columns if col.primary_key]

    def get_column(self, name: str) -> Column | None:
        """Get a column by name."""
        for col in self.columns:
            if col.name == name:
                return col
        return None


# ============================================================================
# Export Request
# ============================================================================


class ExportRequest(BaseModel):
    """Table names requested for one export, in caller order.

    The order carries no meaning for correctness but is kept verbatim so
    output is deterministic where no dependency constraint applies.
    """

    model_config = _MODEL_CONFIG

    tables: tuple[str, ...]

    @field_validator("tables")
    @classmethod
    def check_names(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        seen: set[str] = set()
        for name in value:
            if not name:
                raise ValueError("Table names must be non-empty")
            if name in seen:
                raise ValueError(f"Table '{name}' requested more than once")
            seen.add(name)
        return value
