"""Client implementations for Consul SDK."""

from __future__ import annotations

from .consul_client import ConsulClient
from .request_builder import RequestBuilder, RequestDescriptor, encode_query
from .transport import HttpxTransport, Transport, TransportResponse
from .watch import watch

__all__ = [
    "ConsulClient",
    "HttpxTransport",
    "RequestBuilder",
    "RequestDescriptor",
    "Transport",
    "TransportResponse",
    "encode_query",
    "watch",
]
