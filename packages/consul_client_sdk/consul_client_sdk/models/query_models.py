"""Blocking-query options and response metadata.

A watch is built by feeding ``QueryMeta.last_index`` from one response back in
as ``QueryOptions.wait_index`` on the next call. ``wait_index == 0`` always
means "return immediately".
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

INDEX_HEADER = "X-Consul-Index"

MAX_INDEX = 2**64 - 1

_INDEX_PATTERN = re.compile(r"\+?[0-9]+", re.ASCII)


@dataclass(frozen=True)
class QueryOptions:
    """Per-call consistency and filter options for a read.

    Attributes:
        wait_index: Index to block on; 0 disables blocking
        wait_time: Maximum time the server may hold the request open
        datacenter: Datacenter to query instead of the agent's own
        tag: Tag filter applied by the server
    """

    wait_index: int = 0
    wait_time: timedelta | None = None
    datacenter: str | None = None
    tag: str | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.wait_index <= MAX_INDEX:
            raise ValueError(f"wait_index must be an unsigned 64-bit value, got {self.wait_index}")
        if self.wait_time is not None:
            if self.wait_time < timedelta(0):
                raise ValueError("wait_time must not be negative")
            # The wait is sent in whole seconds and "0s" means the server default.
            if timedelta(0) < self.wait_time < timedelta(seconds=1):
                raise ValueError(
                    f"wait_time must be 0 or at least 1 second, got {self.wait_time}"
                )

    @property
    def is_blocking(self) -> bool:
        """Whether the server is asked to hold the request open."""
        return self.wait_index != 0

    def to_params(self) -> list[tuple[str, str]]:
        """Render the options as query parameters.

        The order is fixed (dc, tag, index, wait) so identical options always
        produce a byte-identical query string.
        """
        params: list[tuple[str, str]] = []
        if self.datacenter is not None:
            params.append(("dc", self.datacenter))
        if self.tag is not None:
            params.append(("tag", self.tag))
        if self.wait_index != 0:
            params.append(("index", str(self.wait_index)))
        if self.wait_time is not None:
            params.append(("wait", format_wait(self.wait_time)))
        return params


@dataclass(frozen=True)
class QueryMeta:
    """Metadata extracted from a query response.

    Attributes:
        last_index: Server state version as of the response, 0 if unknown
    """

    last_index: int = 0

    @classmethod
    def from_headers(cls, get_header: Callable[[str], str | None]) -> QueryMeta:
        """Build metadata from a header lookup, degrading to index 0."""
        index = parse_index(get_header)
        return cls(last_index=index if index is not None else 0)


@dataclass(frozen=True)
class ExecResult:
    """Unparsed result of a plain execution call."""

    status_code: int
    raw_body: bytes

    @property
    def is_success(self) -> bool:
        """Whether the status code is 2xx."""
        return 200 <= self.status_code < 300


def format_wait(wait_time: timedelta) -> str:
    """Serialize a wait duration as whole seconds, e.g. ``5s``."""
    return f"{int(wait_time.total_seconds())}s"


def parse_index(get_header: Callable[[str], str | None]) -> int | None:
    """Read the consistency index through a header lookup.

    Args:
        get_header: Case-insensitive header lookup returning None when absent

    Returns:
        The index, or None when the header is missing, non-numeric or out of
        the unsigned 64-bit range
    """
    raw = get_header(INDEX_HEADER)
    if raw is None:
        return None
    raw = raw.strip()
    if not _INDEX_PATTERN.fullmatch(raw):
        return None
    value = int(raw)
    if value > MAX_INDEX:
        return None
    return value
