"""Normalized schema model and foreign-key dependency ordering.

Usage:
    from schema_export.schema import Column, Table, resolve_order
"""

from schema_export.schema.models import (
    Column,
    ColumnDefault,
    DefaultKind,
    ExportRequest,
    ForeignKey,
    Index,
    LogicalType,
    Table,
)
from schema_export.schema.resolver import ResolvedOrder, resolve_order

__all__ = [
    "Column",
    "ColumnDefault",
    "DefaultKind",
    "ExportRequest",
    "ForeignKey",
    "Index",
    "LogicalType",
    "Table",
    "ResolvedOrder",
    "resolve_order",
]
