"""
trafficlog_sdk.tier0_core.config
─────────────────────────────────
Typed filter configuration with env layering. Reads from .env → environment
variables. All fields are typed via Pydantic and frozen, so a config can be
shared by any number of filters and compared when filters are merged.

Filters take a config explicitly; ``get_config()`` is only the default used
when none is given.

Minimal stack: pydantic-settings + python-dotenv
Configure via: TRAFFICLOG_* environment variables
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from trafficlog_sdk.tier0_core.errors import ConfigurationError

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_LOG_FORMATS = frozenset({"json", "console"})


class FilterConfig(BaseSettings):
    """
    Process-wide JSON and path settings for body filters.
    All env vars are prefixed with TRAFFICLOG_.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRAFFICLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ── JSON backend ──────────────────────────────────────────────────────────
    ensure_ascii: bool = Field(default=False)
    compact: bool = Field(default=True)
    allow_nan: bool = Field(default=False)

    # ── Paths ─────────────────────────────────────────────────────────────────
    max_path_length: int = Field(default=1024)

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @field_validator("max_path_length")
    @classmethod
    def validate_max_path_length(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_path_length must be positive, got {v}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if v.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}, got {v!r}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in _LOG_FORMATS:
            raise ValueError(f"log_format must be one of {sorted(_LOG_FORMATS)}, got {v!r}")
        return v.lower()

    @property
    def separators(self) -> tuple[str, str]:
        return (",", ":") if self.compact else (", ", ": ")


@lru_cache(maxsize=1)
def get_config() -> FilterConfig:
    """
    Return the default filter config. Cached after first call.
    Call _reset_config() in tests to pick up new env vars.
    """
    try:
        return FilterConfig()
    except PydanticValidationError as exc:
        raise ConfigurationError(
            user_message="Invalid TRAFFICLOG_* configuration.",
            detail=str(exc),
        ) from exc


def _reset_config() -> None:
    """For tests: clear the config cache."""
    get_config.cache_clear()


__all__ = ["FilterConfig", "get_config"]
