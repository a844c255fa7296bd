"""TOML configuration loader for schema-export."""

import tomllib
from pathlib import Path

from pydantic import ValidationError

from schema_export.config.models import DatabaseProfile, ExportConfig, ExportSettings
from schema_export.exceptions import ConfigError

CONFIG_FILENAME = "schema-export.toml"


def load_export_config(config_path: Path | None = None) -> ExportConfig:
    """Load export configuration from TOML file.

    Args:
        config_path: Path to the config file (default: ./schema-export.toml)

    Returns:
        ExportConfig with all profiles and export defaults

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigError: If the file is not valid TOML or a value is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(
            f"Export config not found: {config_path}\n"
            f"Create {CONFIG_FILENAME} with at least one [profiles.<name>] table."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    try:
        # Parse profiles
        profiles = {}
        for name, profile_data in data.get("profiles", {}).items():
            profiles[name] = DatabaseProfile(**profile_data)

        # Parse export settings
        export = ExportSettings(**data.get("export", {}))
    except (ValidationError, TypeError) as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e

    return ExportConfig(profiles=profiles, export=export)
