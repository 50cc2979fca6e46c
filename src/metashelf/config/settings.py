"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. Environment variables (METASHELF_ prefix)
  2. YAML config file (if specified)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

BUILTIN_PROVIDERS_DIR = Path(__file__).resolve().parent.parent / "plugins"


class ServerSettings(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=3000, description="Server port")
    workers: int = Field(default=1, description="Number of worker processes")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")


class CacheSettings(BaseModel):
    """Search / lookup cache configuration."""

    enabled: bool = Field(default=True, description="Whether results are cached at all")
    db_path: str = Field(default="./data/cache.db", description="SQLite file path, or ':memory:'")


class ProviderSettings(BaseModel):
    """Provider plugin loading configuration."""

    directory: Path = Field(default=BUILTIN_PROVIDERS_DIR, description="Directory holding provider plugins")
    disabled: list[str] = Field(default_factory=list, description="Provider ids that are never registered")
    reject_duplicate_ids: bool = Field(
        default=False,
        description="Fail a plugin whose id is already registered instead of overriding it",
    )

    @field_validator("disabled", mode="before")
    @classmethod
    def _parse_disabled(cls, v: Any) -> list[str]:
        """Accept a list or a comma-separated string (``disabled: librivox, example``)."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return list(v)


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the METASHELF_ prefix.
    Nested settings use double underscores: METASHELF_SERVER__PORT=9090

    Example:
        METASHELF_SERVER__PORT=9090
        METASHELF_CACHE__DB_PATH=/var/lib/metashelf/cache.db
        METASHELF_PROVIDERS__DISABLED='["librivox"]'
    """

    model_config = {
        "env_prefix": "METASHELF_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    app_name: str = Field(default="metashelf", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    server: ServerSettings = Field(default_factory=ServerSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are used as defaults; environment variables
        still take precedence.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        # Init kwargs outrank env vars in pydantic-settings, so fold env values in on top
        env_values = cls().model_dump(exclude_unset=True)
        return cls(**_merge(data, env_values))


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged
