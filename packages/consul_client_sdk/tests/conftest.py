"""Shared fixtures for Consul Client SDK tests."""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass

import httpx
import pytest
from consul_client_sdk.clients import ConsulClient, TransportResponse


@dataclass
class SentRequest:
    """A request captured by ``FakeTransport``."""

    method: str
    url: str
    headers: dict[str, str]
    body: bytes | None
    timeout: float | None


class FakeTransport:
    """In-memory transport replaying queued responses in order."""

    def __init__(self) -> None:
        self.requests: list[SentRequest] = []
        self.closed = False
        self._responses: deque[TransportResponse | BaseException] = deque()

    def respond(
        self,
        status_code: int = 200,
        body: bytes = b"",
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._responses.append(
            TransportResponse(
                status_code=status_code, headers=httpx.Headers(headers or {}), body=body
            )
        )

    def fail(self, error: BaseException) -> None:
        self._responses.append(error)

    @property
    def last_request(self) -> SentRequest:
        return self.requests[-1]

    async def send(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        body: bytes | None,
        timeout: float | None = None,
    ) -> TransportResponse:
        self.requests.append(SentRequest(method, url, dict(headers), body, timeout))
        item = self._responses.popleft()
        if isinstance(item, BaseException):
            raise item
        return item

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_transport() -> FakeTransport:
    """Create an empty fake transport."""
    return FakeTransport()


@pytest.fixture
def client(fake_transport: FakeTransport) -> ConsulClient:
    """Create a ConsulClient wired to the fake transport."""
    return ConsulClient(address="http://consul.test:8500", transport=fake_transport)
