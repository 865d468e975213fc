"""Request construction: URL, query string and headers."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from urllib.parse import quote

import httpx

from consul_client_sdk.exceptions import InvalidRequestError

TOKEN_HEADER = "X-Consul-Token"
CONTENT_TYPE = "application/json"

Params = Sequence[tuple[str, str]]


@dataclass(frozen=True)
class RequestDescriptor:
    """A fully qualified request ready for the transport."""

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes | None = None


def encode_query(params: Params) -> str:
    """Build a query string from ordered ``(key, value)`` pairs.

    Values are percent-encoded byte by byte from their UTF-8 form with no
    characters left unescaped, so ``&``, ``=``, ``?``, ``#`` and space can never
    split or terminate a parameter.
    """
    return "&".join(f"{key}={quote(value, safe='')}" for key, value in params)


def encode_path(path: str) -> str:
    """Percent-encode a path, keeping ``/`` as the segment separator.

    Segments that are exactly ``.`` or ``..`` are escaped as well, otherwise
    URL parsing would collapse them and address a different resource.
    """
    return "/".join(_encode_segment(segment) for segment in path.split("/"))


def _encode_segment(segment: str) -> str:
    if segment in (".", ".."):
        return "%2E" * len(segment)
    return quote(segment, safe="")


class RequestBuilder:
    """Builds requests against a fixed base URL and optional token.

    Invalid base URLs and tokens are rejected here, at construction, rather
    than when a request is awaited.
    """

    def __init__(self, base_url: str, token: str | None = None) -> None:
        """Initialize the builder.

        Args:
            base_url: Server base URL, e.g. ``http://127.0.0.1:8500``
            token: ACL token attached to every request

        Raises:
            InvalidRequestError: If the base URL or token is unusable
        """
        self._base_url = self._normalize_base_url(base_url)
        self._headers = {"Content-Type": CONTENT_TYPE}
        if token is not None:
            self._validate_token(token)
            self._headers[TOKEN_HEADER] = token

    @property
    def base_url(self) -> str:
        """Normalized base URL, always ending with a single ``/``."""
        return self._base_url

    @staticmethod
    def _normalize_base_url(base_url: str) -> str:
        try:
            url = httpx.URL(base_url)
        except (httpx.InvalidURL, TypeError) as e:
            raise InvalidRequestError(
                f"Invalid base URL '{base_url}': {e}", field="base_url"
            ) from e

        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidRequestError(
                f"Base URL '{base_url}' must be an absolute http(s) URL", field="base_url"
            )
        if url.query or url.fragment:
            raise InvalidRequestError(
                f"Base URL '{base_url}' must not carry a query or fragment", field="base_url"
            )
        return base_url.rstrip("/") + "/"

    @staticmethod
    def _validate_token(token: str) -> None:
        if not token.isascii() or any(c in token for c in "\r\n\0"):
            raise InvalidRequestError("Token is not a valid header value", field="token")

    def build(
        self,
        method: str,
        path: str,
        params: Params = (),
        body: bytes | None = None,
    ) -> RequestDescriptor:
        """Assemble a request.

        Args:
            method: HTTP method
            path: Path relative to the base URL; appended as given
            params: Ordered query parameters
            body: Optional request body

        Returns:
            RequestDescriptor for the transport
        """
        url = self._base_url + path
        if params:
            url += "?" + encode_query(params)
        return RequestDescriptor(method=method, url=url, headers=dict(self._headers), body=body)
