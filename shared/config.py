"""
Shared configuration management for the Music Access Gateway.
"""

from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_RATE_LIMIT_PER_MIN = 30
MIN_RATE_LIMIT_PER_MIN = 1
MAX_RATE_LIMIT_PER_MIN = 1000


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="GATEWAY_",
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Observability
    enable_metrics: bool = Field(default=True)


class GatewayConfig(BaseConfig):
    """Settings for the gateway process."""

    service_name: str = "gateway"
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Method-config provider and link resolver (TuneHub)
    music_parser_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("MUSIC_PARSER_KEY", "GATEWAY_MUSIC_PARSER_KEY", "music_parser_key"),
    )
    tunehub_base_url: str = Field(default="https://tunehub.sayqz.com/api")
    provider_timeout_seconds: float = Field(default=10.0)

    # Music backends
    upstream_timeout_seconds: float = Field(default=10.0)

    # Rate limiting
    rate_limit_max_per_min: int = Field(
        default=DEFAULT_RATE_LIMIT_PER_MIN,
        validation_alias=AliasChoices(
            "RATE_LIMIT_MAX_PER_MIN", "GATEWAY_RATE_LIMIT_MAX_PER_MIN", "rate_limit_max_per_min"
        ),
    )
    rate_limit_cleanup_interval: int = Field(default=100, ge=1)
    trusted_proxy_header: str = Field(default="CF-Connecting-IP")

    # Static assets
    static_dir: str = Field(default="public")

    @field_validator("rate_limit_max_per_min", mode="before")
    @classmethod
    def _clamp_rate_limit(cls, value: Any) -> int:
        """Clamp the per-minute budget, falling back to the default when unparsable."""
        try:
            parsed = int(str(value).strip())
        except (TypeError, ValueError):
            return DEFAULT_RATE_LIMIT_PER_MIN
        return min(MAX_RATE_LIMIT_PER_MIN, max(MIN_RATE_LIMIT_PER_MIN, parsed))

    @field_validator("music_parser_key", mode="before")
    @classmethod
    def _blank_key_is_missing(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        value = str(value).strip()
        return value or None


def get_config(**overrides: Any) -> GatewayConfig:
    """Get configuration for the gateway, applying explicit overrides."""
    return GatewayConfig(**overrides)
