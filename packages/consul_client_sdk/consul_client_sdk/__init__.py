"""Consul Client SDK: async agent, catalog and KV client with blocking queries."""

from __future__ import annotations

from .clients import ConsulClient, HttpxTransport, Transport, TransportResponse, watch
from .config import ClientConfig, get_config
from .exceptions import (
    ApplicationError,
    ConsulClientError,
    DecodeFailure,
    InvalidRequestError,
    QueryError,
    TransportFailure,
)
from .models import (
    AgentService,
    AgentServiceCheck,
    CatalogService,
    ExecResult,
    KVPair,
    QueryMeta,
    QueryOptions,
)

__version__ = "0.1.0"

__all__ = [
    "AgentService",
    "AgentServiceCheck",
    "ApplicationError",
    "CatalogService",
    "ClientConfig",
    "ConsulClient",
    "ConsulClientError",
    "DecodeFailure",
    "ExecResult",
    "HttpxTransport",
    "InvalidRequestError",
    "KVPair",
    "QueryError",
    "QueryMeta",
    "QueryOptions",
    "Transport",
    "TransportFailure",
    "TransportResponse",
    "get_config",
    "watch",
]
