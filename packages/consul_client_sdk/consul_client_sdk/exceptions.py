"""Exception hierarchy for the Consul Client SDK.

A failed query raises exactly one ``QueryError`` subclass:

- ``TransportFailure``: the request could not be sent or the response could
  not be read in full.
- ``ApplicationError``: the server answered with a non-2xx status. The
  consistency metadata of that response is kept on the error.
- ``DecodeFailure``: the body was not JSON of the expected shape.

A rejected write (CAS mismatch, ``false`` body) is not an error; write
operations return ``False`` for it.
"""

from __future__ import annotations

from typing import Any

from .models.query_models import QueryMeta


class ConsulClientError(Exception):
    """Base exception for all Consul Client SDK errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            error_code: Machine-readable error code for programmatic handling
            details: Additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class InvalidRequestError(ConsulClientError):
    """Raised synchronously when a request cannot be constructed."""

    def __init__(self, message: str, field: str | None = None, **kwargs: Any) -> None:
        """
        Initialize invalid request error.

        Args:
            message: Description of the problem
            field: Offending input (e.g. "base_url", "token")
            **kwargs: Additional error details
        """
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        super().__init__(message, error_code="INVALID_REQUEST", details=details)


class QueryError(ConsulClientError):
    """Base class for failures of a request against the server."""

    pass


class TransportFailure(QueryError):
    """Raised when the connection fails or the response cannot be read."""

    def __init__(self, cause: BaseException, **kwargs: Any) -> None:
        """
        Initialize transport failure.

        Args:
            cause: Underlying transport exception
            **kwargs: Additional error details
        """
        details = {"cause_type": type(cause).__name__, **kwargs.pop("details", {})}
        super().__init__(
            f"Transport failure: {cause}", error_code="TRANSPORT_FAILURE", details=details
        )
        self.cause = cause


class ApplicationError(QueryError):
    """Raised when the server answers a query with a non-2xx status."""

    def __init__(self, status_code: int, meta: QueryMeta, raw_body: bytes, **kwargs: Any) -> None:
        """
        Initialize application error.

        Args:
            status_code: HTTP status returned by the server
            meta: Consistency metadata of the failed response
            raw_body: Unparsed response body
            **kwargs: Additional error details
        """
        body_text = raw_body.decode("utf-8", errors="replace").strip()
        message = f"Unexpected response status {status_code}"
        if body_text:
            message += f": {body_text}"
        details = {
            "status_code": status_code,
            "last_index": meta.last_index,
            **kwargs.pop("details", {}),
        }
        super().__init__(message, error_code="APPLICATION_ERROR", details=details)
        self.status_code = status_code
        self.meta = meta
        self.raw_body = raw_body


class DecodeFailure(QueryError):
    """Raised when a successful response body does not match the expected shape."""

    def __init__(self, cause: BaseException, raw_body: bytes = b"", **kwargs: Any) -> None:
        """
        Initialize decode failure.

        Args:
            cause: Underlying decoding or validation exception
            raw_body: Body that failed to decode
            **kwargs: Additional error details
        """
        details = {"cause_type": type(cause).__name__, **kwargs.pop("details", {})}
        super().__init__(
            f"Failed to decode response body: {cause}", error_code="DECODE_FAILURE", details=details
        )
        self.cause = cause
        self.raw_body = raw_body
