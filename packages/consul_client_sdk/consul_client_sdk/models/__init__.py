"""Shared data models for Consul Client SDK."""

from __future__ import annotations

from .agent_models import AgentService, AgentServiceCheck
from .catalog_models import CatalogService
from .kv_models import KVPair
from .query_models import (
    INDEX_HEADER,
    ExecResult,
    QueryMeta,
    QueryOptions,
    format_wait,
    parse_index,
)

__all__ = [
    "INDEX_HEADER",
    "AgentService",
    "AgentServiceCheck",
    "CatalogService",
    "ExecResult",
    "KVPair",
    "QueryMeta",
    "QueryOptions",
    "format_wait",
    "parse_index",
]
