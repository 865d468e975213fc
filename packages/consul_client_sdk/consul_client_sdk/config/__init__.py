"""Configuration package for Consul Client SDK."""

from .config import ClientConfig, get_config, reload_config

__all__ = ["ClientConfig", "get_config", "reload_config"]
