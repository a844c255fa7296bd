"""Reader and exporter factory.

Resolves a connection profile from schema-export.toml and builds the
matching schema reader and exporter.

Profile selection:
1. Explicit profile name (``--profile`` on the CLI)
2. ``{env_prefix}DB_PROFILE`` environment variable
3. Raise ProfileNotFoundError
"""

import logging
import os
from pathlib import Path
from urllib.parse import quote

from schema_export.config.loader import load_export_config
from schema_export.config.models import DatabaseProfile
from schema_export.exceptions import ConfigError
from schema_export.export.ddl import DdlExporter
from schema_export.export.structured import StructuredExporter
from schema_export.readers.base import SchemaReader
from schema_export.readers.introspector import SchemaIntrospector

logger = logging.getLogger(__name__)


# ============================================================================
# Profile Resolution
# ============================================================================


class ProfileNotFoundError(ConfigError):
    """Raised when no database profile is configured."""

    pass


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from the environment.

    Args:
        env_prefix: Prefix for the variable name, e.g. ``"APP_"`` reads
            ``APP_DB_PROFILE``.

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    env_var = f"{env_prefix}DB_PROFILE"
    env_profile = os.environ.get(env_var)
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Set {env_var}=<name> or pass --profile <name>."
    )


def get_active_profile(
    profile_name: str | None = None,
    env_prefix: str = "",
    config_path: Path | None = None,
) -> tuple[str, DatabaseProfile]:
    """Get active profile name and configuration.

    Returns:
        Tuple of (profile_name, DatabaseProfile)

    Raises:
        ProfileNotFoundError: If no profile is configured or the name is
            not in the config file
        FileNotFoundError: If the config file doesn't exist
    """
    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix)
    config = load_export_config(config_path)

    if profile_name not in config.profiles:
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in config.\n"
            f"Available profiles: {', '.join(config.profiles.keys()) or '(none)'}"
        )

    return profile_name, config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with password substituted
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


# ============================================================================
# Reader / Exporter Factory
# ============================================================================


def create_reader(
    profile: DatabaseProfile,
    excluded_tables: list[str] | set[str] | None = None,
    connect_timeout: int = 10,
) -> SchemaIntrospector:
    """Create an introspector for a profile (not yet connected).

    Use the result as a context manager::

        with create_reader(profile) as reader:
            print(reader.tables())

    The reader reports the profile's ``engine``, which selects the
    default DDL dialect.

    Args:
        profile: Database profile from config
        excluded_tables: Extra table names to hide, on top of the
            introspector's defaults
        connect_timeout: Connection timeout in seconds
    """
    excluded = set(SchemaIntrospector.EXCLUDED_TABLES_DEFAULT)
    if excluded_tables:
        excluded.update(excluded_tables)
    return SchemaIntrospector(
        resolve_url(profile),
        excluded_tables=excluded,
        connect_timeout=connect_timeout,
        engine=profile.engine,
    )


def get_exporter(
    reader: SchemaReader,
    format: str = "sql",
    engine: str | None = None,
) -> DdlExporter | StructuredExporter:
    """Get the exporter for an output format.

    Args:
        reader: Metadata source
        format: ``"sql"`` for a DDL script; ``"json"`` or ``"record"`` for
            the structured document
        engine: Target dialect for ``"sql"`` (default: the reader's engine)

    Raises:
        ValueError: If the format is unknown
    """
    if format == "sql":
        logger.debug("Using DDL exporter (engine=%s)", engine or reader.engine)
        return DdlExporter(reader, dialect=engine)
    if format in ("json", "record"):
        return StructuredExporter(reader)
    raise ValueError(f"Unknown export format '{format}'. Use sql, json or record.")
