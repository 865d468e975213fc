"""HTTP transport adapter.

The client only needs one capability from the wire layer: send a request and
hand back status, headers and the complete body. ``HttpxTransport`` provides it
on top of a pooled ``httpx.AsyncClient``; tests can plug in anything that
implements ``Transport``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from consul_client_sdk.exceptions import TransportFailure
from consul_client_sdk.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransportResponse:
    """Status, headers and full body of one HTTP exchange."""

    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: bytes = b""

    def get_header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        return self.headers.get(name)


class Transport(Protocol):
    """Capability the execution engine requires from the wire layer."""

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None,
        timeout: float | None = None,
    ) -> TransportResponse:
        """Send one request and return the fully read response.

        Raises:
            TransportFailure: If the connection fails or the body cannot be read
        """
        ...

    async def aclose(self) -> None:
        """Release pooled connections."""
        ...


class HttpxTransport:
    """Transport backed by ``httpx.AsyncClient`` with keep-alive pooling."""

    def __init__(self, timeout: float = 10.0, client: httpx.AsyncClient | None = None) -> None:
        """Initialize the transport.

        Args:
            timeout: Default request timeout in seconds
            client: Pre-built client to use instead of creating one
        """
        self._timeout = timeout
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def is_closed(self) -> bool:
        """Check if the underlying client has been closed."""
        return self._client.is_closed

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None,
        timeout: float | None = None,
    ) -> TransportResponse:
        """Send a request and read the whole body.

        ``client.request`` reads the body before returning and closes the
        response if the awaiting task is cancelled, so an abandoned call never
        keeps a pooled connection checked out.
        """
        try:
            response = await self._client.request(
                method,
                url,
                headers=dict(headers),
                content=body,
                timeout=timeout if timeout is not None else self._timeout,
            )
        except httpx.HTTPError as e:
            logger.warning(
                "HTTP request failed",
                extra={"method": method, "url": url, "error_type": type(e).__name__},
            )
            raise TransportFailure(e) from e

        return TransportResponse(
            status_code=response.status_code,
            headers=response.headers,
            body=response.content,
        )

    async def aclose(self) -> None:
        """Close the underlying client."""
        await self._client.aclose()
