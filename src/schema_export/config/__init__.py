"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from schema_export.config import load_export_config, DatabaseProfile, ExportConfig
"""

from schema_export.config.loader import load_export_config
from schema_export.config.models import DatabaseProfile, ExportConfig, ExportSettings

__all__ = ["load_export_config", "DatabaseProfile", "ExportConfig", "ExportSettings"]
