"""Foreign-key dependency ordering for table creation and drops.

Orders a set of tables so that every referenced table is created before
the tables that reference it. Pure logic -- no I/O.

Cycle policy: tables are visited depth-first, roots in input order and
dependencies in foreign-key declaration order. When a foreign key of the
table being visited points at a table still on the DFS stack, that key
closes a cycle and is *deferred*: it places no ordering constraint and is
emitted later as ``ALTER TABLE ... ADD FOREIGN KEY``. Self-references and
references to tables outside the set never constrain ordering.

Usage:
    from schema_export.schema.resolver import resolve_order

    order = resolve_order(tables)
    order.create_order   # parents first
    order.drop_order     # children first
    order.is_deferred("orders", 0)
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from schema_export.exceptions import InvalidSchemaError
from schema_export.schema.models import Table

logger = logging.getLogger(__name__)

# (table name, position of the foreign key in Table.foreign_keys)
ForeignKeyRef = tuple[str, int]


@dataclass(frozen=True)
class ResolvedOrder:
    """Result of dependency resolution.

    Attributes:
        create_order: Table names, referenced tables first.
        drop_order: Exact reverse of ``create_order``.
        deferred: Foreign keys that close a cycle and must be added after
            every table exists.
        external: Foreign keys whose referenced table is not in the set.
        cycles: Each detected cycle as a list of table names, in the order
            the DFS walked it.
    """

    create_order: list[str]
    drop_order: list[str]
    deferred: frozenset[ForeignKeyRef] = frozenset()
    external: frozenset[ForeignKeyRef] = frozenset()
    cycles: list[list[str]] = field(default_factory=list)

    def is_deferred(self, table: str, position: int) -> bool:
        """True if the foreign key breaks a cycle."""
        return (table, position) in self.deferred

    def is_external(self, table: str, position: int) -> bool:
        """True if the foreign key targets a table outside the set."""
        return (table, position) in self.external

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)


def _check_tables(tables: Sequence[Table]) -> None:
    """Reject structurally invalid input before ordering."""
    seen: set[str] = set()
    for table in tables:
        if not table.name:
            raise InvalidSchemaError("Table name must be non-empty")
        if table.name in seen:
            raise InvalidSchemaError(f"Duplicate table name: '{table.name}'")
        seen.add(table.name)

        for position, fk in enumerate(table.foreign_keys):
            label = fk.name or f"#{position}"
            if not fk.columns:
                raise InvalidSchemaError(
                    f"Foreign key {label} on '{table.name}' has no columns"
                )
            if not fk.referenced_table:
                raise InvalidSchemaError(
                    f"Foreign key {label} on '{table.name}' has no referenced table"
                )
            if fk.referenced_columns and len(fk.referenced_columns) != len(fk.columns):
                raise InvalidSchemaError(
                    f"Foreign key {label} on '{table.name}' maps "
                    f"{len(fk.columns)} column(s) to "
                    f"{len(fk.referenced_columns)} referenced column(s)"
                )


def resolve_order(tables: Sequence[Table]) -> ResolvedOrder:
    """Topologically sort tables by foreign-key dependency.

    Returns every table exactly once. For each foreign key whose target is
    in the set and which is not deferred, the target precedes the
    referencing table.

    Args:
        tables: Tables to order, in caller order (used for tie-breaking).

    Returns:
        ``ResolvedOrder`` with create/drop order and the deferred keys.

    Raises:
        InvalidSchemaError: Duplicate table names or malformed foreign keys.

    Example:
        >>> order = resolve_order([order_items, orders, users])
        >>> order.create_order
        ['users', 'orders', 'order_items']
    """
    _check_tables(tables)

    by_name = {table.name: table for table in tables}

    sorted_tables: list[str] = []
    visited: set[str] = set()
    deferred: set[ForeignKeyRef] = set()
    external: set[ForeignKeyRef] = set()
    cycles: list[list[str]] = []

    for root in tables:
        if root.name in visited:
            continue

        # DFS path, and for each table on it the iterator over its
        # remaining foreign keys. Iterative: chain depth is not bounded by
        # the recursion limit.
        path: list[str] = [root.name]
        on_path: set[str] = {root.name}
        pending = [enumerate(root.foreign_keys)]

        while pending:
            name = path[-1]
            for position, fk in pending[-1]:
                target = fk.referenced_table
                if fk.is_self_reference(name):
                    continue
                if target not in by_name:
                    external.add((name, position))
                    continue
                if target in visited:
                    continue
                if target in on_path:
                    # Back-edge: this key closes the cycle
                    cycle = path[path.index(target):]
                    cycles.append(list(cycle))
                    deferred.add((name, position))
                    logger.debug(
                        "Cycle %s: deferring foreign key #%d of '%s' -> '%s'",
                        " -> ".join(cycle + [target]),
                        position,
                        name,
                        target,
                    )
                    continue
                path.append(target)
                on_path.add(target)
                pending.append(enumerate(by_name[target].foreign_keys))
                break
            else:
                pending.pop()
                path.pop()
                on_path.discard(name)
                visited.add(name)
                sorted_tables.append(name)

    return ResolvedOrder(
        create_order=sorted_tables,
        drop_order=list(reversed(sorted_tables)),
        deferred=frozenset(deferred),
        external=frozenset(external),
        cycles=cycles,
    )
