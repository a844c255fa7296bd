"""Pydantic models for schema-export configuration."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from schema_export.dialects import normalize_engine


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from schema-export.toml."""

    url: str
    engine: str | None = None  # Inferred from the URL scheme when omitted
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution

    @model_validator(mode="after")
    def infer_engine(self) -> "DatabaseProfile":
        if self.engine is None:
            scheme = self.url.split(":", 1)[0]
            self.engine = normalize_engine(scheme.split("+", 1)[0])
        else:
            self.engine = normalize_engine(self.engine)
        return self


class ExportSettings(BaseModel):
    """Defaults for the ``export`` command ([export] table)."""

    format: Literal["sql", "json"] = "sql"
    pretty: bool = False
    excluded_tables: list[str] = Field(default_factory=list)


class ExportConfig(BaseModel):
    """Complete configuration from schema-export.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    export: ExportSettings = Field(default_factory=ExportSettings)
