"""SQL dialects and dialect selection.

Selection is a plain mapping from engine identifier to dialect class.
Instances are created lazily and cached for the life of the process;
dialects are stateless, so the cached instance is shared freely across
threads.

Usage:
    from schema_export.dialects import get_dialect

    dialect = get_dialect("postgresql")
    dialect.quote_identifier("order")  # '"order"'
"""

from functools import lru_cache

from schema_export.dialects.base import Dialect, SqlDialect, foreign_key_name
from schema_export.dialects.mysql import MySQLDialect
from schema_export.dialects.postgres import PostgresDialect
from schema_export.dialects.sqlite import SQLiteDialect
from schema_export.exceptions import DialectError

DIALECTS: dict[str, type[SqlDialect]] = {
    "mysql": MySQLDialect,
    "postgres": PostgresDialect,
    "sqlite": SQLiteDialect,
}

ENGINE_ALIASES: dict[str, str] = {
    "mariadb": "mysql",
    "postgresql": "postgres",
    "pgsql": "postgres",
    "sqlite3": "sqlite",
}


def normalize_engine(engine: str) -> str:
    """Map an engine identifier or alias to its canonical name."""
    key = engine.strip().lower()
    return ENGINE_ALIASES.get(key, key)


@lru_cache
def _cached_dialect(engine: str) -> Dialect:
    return DIALECTS[engine]()


def get_dialect(engine: str) -> Dialect:
    """Get the (shared) dialect for an engine.

    Args:
        engine: Engine identifier, e.g. ``"mysql"``, ``"postgresql"``.

    Returns:
        Cached ``Dialect`` instance.

    Raises:
        DialectError: If no dialect exists for the engine.
    """
    canonical = normalize_engine(engine)
    if canonical not in DIALECTS:
        raise DialectError(
            f"No dialect for engine '{engine}'. "
            f"Available: {', '.join(available_engines())}"
        )
    return _cached_dialect(canonical)


def available_engines() -> list[str]:
    return list(DIALECTS)


__all__ = [
    "Dialect",
    "SqlDialect",
    "MySQLDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "DIALECTS",
    "available_engines",
    "foreign_key_name",
    "get_dialect",
    "normalize_engine",
]
