"""Runtime configuration with validation."""

from functools import lru_cache

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError

# Hard cap enforced by the rewrite service; larger requests are rejected.
SERVICE_MAX_SEGMENTS = 60


class Settings(BaseSettings):
    """
    Pipeline settings.

    Every field can be set from the environment with the ``REDRAFT_``
    prefix (e.g. ``REDRAFT_MAX_BATCH_SIZE=20``) or from a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDRAFT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Rewrite service
    rewrite_api_url: str = Field(
        default="http://127.0.0.1:8787/api/rewrite",
        description="Endpoint that accepts {\"segments\": [...]} and rewrites them"
    )
    # Forwarded as a Bearer token when non-empty. Leave empty for a local service.
    rewrite_api_token: str = Field(
        default="",
        description="Optional bearer token for the rewrite service"
    )
    request_timeout: float = Field(
        default=90.0,
        gt=0,
        description="Per-request timeout in seconds (large batches take a while)"
    )

    # Batching and concurrency
    max_batch_size: int = Field(
        default=40,
        ge=1,
        le=SERVICE_MAX_SEGMENTS,
        description="Segments per request to the rewrite service"
    )
    max_concurrency: int = Field(
        default=5,
        ge=1,
        description="Maximum number of in-flight requests"
    )

    # Circuit breaker (0 = disabled)
    breaker_failure_threshold: int = Field(
        default=0,
        ge=0,
        description="Consecutive failures before requests fail fast (0 disables)"
    )
    breaker_cooldown_seconds: float = Field(
        default=60.0,
        ge=0,
        description="Seconds an open circuit waits before allowing a probe"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: str = Field(
        default="text",
        description="Log output format: 'json' for structured, 'text' for human-readable"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the standard Python logging levels."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in ("json", "text"):
            raise ValueError("Invalid log format. Must be 'json' or 'text'")
        return v_lower

    @field_validator("rewrite_api_url")
    @classmethod
    def validate_rewrite_api_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("rewrite_api_url must be an http(s) URL")
        return v


def load_settings(**overrides) -> Settings:
    """Build settings from the environment plus explicit overrides.

    Raises:
        ConfigurationError: if any value fails validation.
    """
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, read once from the environment."""
    return Settings()
