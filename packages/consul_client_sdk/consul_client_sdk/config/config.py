"""Centralized configuration for the Consul Client SDK.

Every value can be overridden with an environment variable using the prefix
CONSUL_CLIENT_ (e.g. CONSUL_CLIENT_ADDRESS, CONSUL_CLIENT_TOKEN,
CONSUL_CLIENT_LOGGING__LEVEL).
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from consul_client_sdk.logging import LoggingConfig


class ClientConfig(BaseSettings):
    """Connection and behaviour settings for ``ConsulClient``."""

    model_config = SettingsConfigDict(
        env_prefix="CONSUL_CLIENT_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    address: str = Field(
        default="http://127.0.0.1:8500", description="Base URL of the Consul HTTP API"
    )

    token: str | None = Field(default=None, description="ACL token sent with every request")

    timeout: float = Field(
        default=10.0, gt=0, le=600, description="Request timeout in seconds for non-blocking calls"
    )

    default_wait: float = Field(
        default=60.0, ge=1, le=600, description="Wait duration in seconds used by watch commands"
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str | None) -> str | None:
        """Treat an empty token as no token."""
        if v is not None and not v.strip():
            return None
        return v

    @property
    def default_wait_time(self) -> timedelta:
        """Get the default wait duration as timedelta."""
        return timedelta(seconds=self.default_wait)


@lru_cache(maxsize=1)
def get_config() -> ClientConfig:
    """Get the singleton configuration instance.

    Returns:
        ClientConfig: The configuration instance
    """
    return ClientConfig()


def reload_config() -> ClientConfig:
    """Reload configuration from environment.

    Returns:
        ClientConfig: The new configuration instance
    """
    get_config.cache_clear()
    return get_config()
