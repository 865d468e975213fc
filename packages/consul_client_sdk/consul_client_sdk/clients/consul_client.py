"""Asynchronous client for the Consul HTTP API."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter

from consul_client_sdk.config import ClientConfig, get_config
from consul_client_sdk.exceptions import ApplicationError, DecodeFailure, InvalidRequestError
from consul_client_sdk.logging import get_logger
from consul_client_sdk.models import (
    AgentService,
    CatalogService,
    ExecResult,
    KVPair,
    QueryMeta,
    QueryOptions,
)

from .request_builder import Params, RequestBuilder, RequestDescriptor, encode_path
from .transport import HttpxTransport, Transport, TransportResponse

T = TypeVar("T")

logger = get_logger(__name__)

# Literal body the server answers a successful KV write with.
WRITE_SUCCESS_BODY = b"true"


@lru_cache(maxsize=64)
def _type_adapter(result_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(result_type)


def _kv_path(key: str) -> str:
    return "v1/kv/" + encode_path(key.lstrip("/"))


class ConsulClient:
    """Client for agent, catalog and key/value operations.

    Every call builds its own request and consumes its own response, so one
    client can be shared by any number of concurrent tasks.

    Reads go through ``query``, which returns ``(QueryMeta, value)`` and raises
    a ``QueryError`` subclass on failure. Writes go through ``execute``, which
    returns the raw ``ExecResult``; KV writes reduce it to a boolean.
    """

    def __init__(
        self,
        address: str = "http://127.0.0.1:8500",
        token: str | None = None,
        timeout: float = 10.0,
        transport: Transport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            address: Base URL of the HTTP API
            token: ACL token sent with every request
            timeout: Request timeout in seconds for non-blocking calls
            transport: Transport to use; an ``HttpxTransport`` is created if omitted

        Raises:
            InvalidRequestError: If the address or token is unusable
        """
        self._builder = RequestBuilder(address, token)
        self._timeout = timeout
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpxTransport(timeout=timeout)

    @classmethod
    def from_config(cls, config: ClientConfig | None = None) -> ConsulClient:
        """Create a client from configuration (environment by default)."""
        config = config or get_config()
        return cls(address=config.address, token=config.token, timeout=config.timeout)

    @property
    def base_url(self) -> str:
        """Normalized base URL of the API."""
        return self._builder.base_url

    async def __aenter__(self) -> ConsulClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            await self._transport.aclose()

    async def _send(self, request: RequestDescriptor, timeout: float) -> TransportResponse:
        response = await self._transport.send(
            request.method, request.url, request.headers, request.body, timeout=timeout
        )
        logger.debug(
            "Request completed",
            extra={
                "method": request.method,
                "url": request.url,
                "status_code": response.status_code,
            },
        )
        return response

    async def execute(
        self,
        method: str,
        path: str,
        params: Params = (),
        body: bytes | None = None,
    ) -> ExecResult:
        """Send a request and return its status and full body.

        A non-2xx status is returned as data, not raised.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            params: Ordered query parameters
            body: Optional request body

        Returns:
            ExecResult with the status code and raw body

        Raises:
            TransportFailure: If the request could not be completed
        """
        request = self._builder.build(method, path, params, body)
        response = await self._send(request, self._timeout)
        return ExecResult(status_code=response.status_code, raw_body=response.body)

    async def query(
        self,
        path: str,
        params: Params,
        options: QueryOptions | None,
        result_type: type[T],
    ) -> tuple[QueryMeta, T]:
        """Run a GET query and decode the JSON body.

        Args:
            path: Path relative to the base URL
            params: Query parameters specific to the endpoint
            options: Blocking-query and filter options
            result_type: Type the JSON body is validated into

        Returns:
            Tuple of response metadata and decoded value

        Raises:
            TransportFailure: If the request could not be completed
            ApplicationError: If the server returned a non-2xx status
            DecodeFailure: If the body is not JSON of the expected shape
        """
        all_params = list(params)
        timeout = self._timeout
        if options is not None:
            all_params.extend(options.to_params())
            if options.wait_time is not None:
                # The server adds up to wait/16 of jitter to a blocking query.
                wait = int(options.wait_time.total_seconds())
                timeout += wait + wait / 16

        request = self._builder.build("GET", path, all_params)
        response = await self._send(request, timeout)

        meta = QueryMeta.from_headers(response.get_header)
        if not 200 <= response.status_code < 300:
            logger.warning(
                "Query returned error status",
                extra={
                    "url": request.url,
                    "status_code": response.status_code,
                    "last_index": meta.last_index,
                },
            )
            raise ApplicationError(response.status_code, meta, response.body)

        try:
            value = _type_adapter(result_type).validate_json(response.body)
        except ValueError as e:
            logger.warning(
                "Failed to decode query response",
                extra={"url": request.url, "error_type": type(e).__name__},
            )
            raise DecodeFailure(e, response.body) from e

        return meta, value

    # Agent

    async def agent_check_pass(self, check_id: str, note: str = "") -> ExecResult:
        """Mark a TTL check as passing."""
        return await self._agent_check_update("pass", check_id, note)

    async def agent_check_warn(self, check_id: str, note: str = "") -> ExecResult:
        """Mark a TTL check as warning."""
        return await self._agent_check_update("warn", check_id, note)

    async def agent_check_fail(self, check_id: str, note: str = "") -> ExecResult:
        """Mark a TTL check as critical."""
        return await self._agent_check_update("fail", check_id, note)

    async def _agent_check_update(self, state: str, check_id: str, note: str) -> ExecResult:
        return await self.execute(
            "PUT", f"v1/agent/check/{state}/{encode_path(check_id)}", [("note", note)]
        )

    async def agent_service_register(self, service: AgentService) -> ExecResult:
        """Register a service with the local agent.

        Args:
            service: Registration payload

        Returns:
            ExecResult of the registration call
        """
        result = await self.execute(
            "PUT", "v1/agent/service/register", body=service.to_json_bytes()
        )
        if result.is_success:
            logger.info(
                "Service registered",
                extra={"service_id": service.id, "service_name": service.name},
            )
        return result

    async def agent_service_deregister(self, service_id: str) -> ExecResult:
        """Remove a service from the local agent."""
        return await self.execute("PUT", f"v1/agent/service/deregister/{encode_path(service_id)}")

    # Catalog

    async def catalog_service(
        self,
        service: str,
        tag: str | None = None,
        options: QueryOptions | None = None,
    ) -> tuple[QueryMeta, list[CatalogService]]:
        """List the instances of a service.

        Args:
            service: Service name
            tag: Only return instances carrying this tag
            options: Blocking-query and filter options

        Returns:
            Tuple of response metadata and catalog entries

        Raises:
            InvalidRequestError: If a tag is given both here and in ``options``
        """
        if tag and options is not None and options.tag is not None:
            raise InvalidRequestError(
                "Tag filter given both as argument and in query options", field="tag"
            )
        params = [("tag", tag)] if tag else []
        return await self.query(
            f"v1/catalog/service/{encode_path(service)}", params, options, list[CatalogService]
        )

    async def catalog_services(
        self, options: QueryOptions | None = None
    ) -> tuple[QueryMeta, dict[str, list[str]]]:
        """List all service names with their tags."""
        return await self.query("v1/catalog/services", [], options, dict[str, list[str]])

    # Key/value store

    async def kv_get(
        self, key: str, options: QueryOptions | None = None
    ) -> tuple[QueryMeta, list[KVPair]]:
        """Read a single key.

        A missing key is reported by the server as 404, raised as
        ``ApplicationError`` whose ``meta`` still carries the current index.
        """
        return await self.query(_kv_path(key), [], options, list[KVPair])

    async def kv_list(
        self, prefix: str, options: QueryOptions | None = None
    ) -> tuple[QueryMeta, list[KVPair]]:
        """Read every key under a prefix."""
        return await self.query(_kv_path(prefix), [("recurse", "")], options, list[KVPair])

    async def kv_keys(
        self, prefix: str, options: QueryOptions | None = None
    ) -> tuple[QueryMeta, list[str]]:
        """List the key names under a prefix."""
        return await self.query(_kv_path(prefix), [("keys", "")], options, list[str])

    async def kv_put(self, key: str, value: bytes) -> bool:
        """Write a key unconditionally.

        Returns:
            True if the server acknowledged the write
        """
        return await self._kv_write("PUT", key, [], value)

    async def kv_cas(self, key: str, value: bytes, index: int) -> bool:
        """Write a key only if its modify index still equals ``index``.

        An index of 0 writes only if the key does not exist yet.

        Returns:
            True if the swap happened, False if the precondition failed or the
            server rejected the write
        """
        return await self._kv_write("PUT", key, [("cas", str(index))], value)

    async def kv_delete(self, key: str, index: int | None = None) -> bool:
        """Delete a key, optionally only if its modify index equals ``index``."""
        params = [("cas", str(index))] if index is not None else []
        return await self._kv_write("DELETE", key, params, None)

    async def _kv_write(self, method: str, key: str, params: Params, body: bytes | None) -> bool:
        result = await self.execute(method, _kv_path(key), params, body)
        succeeded = result.is_success and result.raw_body == WRITE_SUCCESS_BODY
        if not succeeded:
            logger.debug(
                "KV write not applied",
                extra={"method": method, "key": key, "status_code": result.status_code},
            )
        return succeeded
