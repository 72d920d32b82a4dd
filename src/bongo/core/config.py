"""
Runtime configuration for bongo tooling.

Configuration via environment variables:

- ``BONGO_CONNECTION_STRING`` — MongoDB connection URI (default: ``mongodb://localhost:27017``)
- ``BONGO_DATABASE`` — database name (default: ``bongo``)
- ``BONGO_LOG_LEVEL`` — log level name (default: ``INFO``)
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CONNECTION_STRING = "mongodb://localhost:27017"
DEFAULT_DATABASE = "bongo"
DEFAULT_LOG_LEVEL = "INFO"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class BongoConfig(BaseModel):
    """Connection and logging settings for the index tooling."""

    connection_string: str = Field(
        default=DEFAULT_CONNECTION_STRING, description="MongoDB connection URI"
    )
    database: str = Field(default=DEFAULT_DATABASE, description="Database name")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, description="Log level name")

    model_config = ConfigDict(frozen=True)

    @field_validator("database")
    @classmethod
    def validate_database(cls, v: str) -> str:
        """Reject names MongoDB would refuse."""
        if not v or any(ch in v for ch in '/\\. "$'):
            raise ValueError(f"Invalid database name '{v}'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level '{v}' (valid: {', '.join(_LOG_LEVELS)})")
        return level

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> BongoConfig:
        """Build a config from ``BONGO_*`` environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            connection_string=env.get("BONGO_CONNECTION_STRING", DEFAULT_CONNECTION_STRING),
            database=env.get("BONGO_DATABASE", DEFAULT_DATABASE),
            log_level=env.get("BONGO_LOG_LEVEL", DEFAULT_LOG_LEVEL),
        )

    def with_overrides(self, **overrides: str | None) -> BongoConfig:
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if not values:
            return self
        return self.model_validate({**self.model_dump(), **values})
