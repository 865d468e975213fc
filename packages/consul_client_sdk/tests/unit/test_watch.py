"""Unit tests for the blocking-query watch loop."""

from __future__ import annotations

import asyncio
import contextlib
from datetime import timedelta
from typing import Any

import pytest
from consul_client_sdk.clients import ConsulClient, watch
from consul_client_sdk.exceptions import ApplicationError
from consul_client_sdk.models import QueryMeta, QueryOptions

WAIT = timedelta(seconds=30)


class ScriptedQuery:
    """Query stub returning scripted (index, value) pairs and recording options."""

    def __init__(self, results: list[tuple[int, Any] | BaseException]) -> None:
        self.calls: list[QueryOptions] = []
        self._results = list(results)

    async def __call__(self, options: QueryOptions) -> tuple[QueryMeta, Any]:
        self.calls.append(options)
        item = self._results.pop(0)
        if isinstance(item, BaseException):
            raise item
        index, value = item
        return QueryMeta(last_index=index), value


async def _take(iterator: Any, count: int) -> list[tuple[QueryMeta, Any]]:
    items = []
    async with contextlib.aclosing(iterator):
        async for item in iterator:
            items.append(item)
            if len(items) >= count:
                break
    return items


@pytest.mark.asyncio
class TestWatch:
    """Tests for watch."""

    async def test_first_result_yielded_immediately(self) -> None:
        """Test that the first call does not block."""
        query = ScriptedQuery([(10, "a")])

        items = await _take(watch(query, wait_time=WAIT), 1)

        assert items == [(QueryMeta(last_index=10), "a")]
        assert query.calls[0].wait_index == 0
        assert query.calls[0].wait_time == WAIT

    async def test_blocks_on_last_index(self) -> None:
        """Test that each request waits on the index of the previous response."""
        query = ScriptedQuery([(10, "a"), (12, "b"), (15, "c")])

        items = await _take(watch(query, wait_time=WAIT), 3)

        assert [value for _, value in items] == ["a", "b", "c"]
        assert [call.wait_index for call in query.calls] == [0, 10, 12]

    async def test_unchanged_index_not_yielded(self) -> None:
        """Test that a wait that elapses without change is retried silently."""
        query = ScriptedQuery([(42, "a"), (42, "a"), (42, "a"), (43, "b")])

        items = await _take(watch(query, wait_time=WAIT), 2)

        assert [meta.last_index for meta, _ in items] == [42, 43]
        assert [call.wait_index for call in query.calls] == [0, 42, 42, 42]

    async def test_index_going_backwards_resets(self) -> None:
        """Test that a lower index restarts the watch from 0."""
        query = ScriptedQuery([(100, "a"), (5, "stale"), (6, "b")])

        items = await _take(watch(query, wait_time=WAIT), 2)

        assert [value for _, value in items] == ["a", "b"]
        assert [call.wait_index for call in query.calls] == [0, 100, 0]

    async def test_zero_index_does_not_spin(self) -> None:
        """Test that a response without an index still blocks on the next call."""
        query = ScriptedQuery([(0, "a"), (0, "a"), (3, "b")])

        items = await _take(watch(query, wait_time=WAIT), 2)

        assert [value for _, value in items] == ["a", "b"]
        assert [call.wait_index for call in query.calls] == [0, 1, 1]

    async def test_filters_passed_through(self) -> None:
        """Test that datacenter and tag reach every request."""
        query = ScriptedQuery([(1, "a"), (2, "b")])

        await _take(watch(query, wait_time=WAIT, datacenter="dc2", tag="v1"), 2)

        assert all(call.datacenter == "dc2" and call.tag == "v1" for call in query.calls)

    async def test_errors_propagate(self) -> None:
        """Test that query errors end the watch without retry."""
        error = ApplicationError(500, QueryMeta(last_index=9), b"boom")
        query = ScriptedQuery([(9, "a"), error])

        with pytest.raises(ApplicationError) as exc_info:
            await _take(watch(query, wait_time=WAIT), 5)

        assert exc_info.value is error
        assert len(query.calls) == 2

    async def test_cancellation_stops_outstanding_request(self) -> None:
        """Test that cancelling the consumer cancels the blocked request."""
        started = asyncio.Event()
        cancelled = asyncio.Event()

        async def blocking_query(options: QueryOptions) -> tuple[QueryMeta, Any]:
            if options.wait_index == 0:
                return QueryMeta(last_index=1), "a"
            started.set()
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                cancelled.set()
                raise
            raise AssertionError("unreachable")

        async def consume() -> None:
            async for _ in watch(blocking_query, wait_time=WAIT):
                pass

        task = asyncio.create_task(consume())
        await asyncio.wait_for(started.wait(), timeout=1.0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert cancelled.is_set()

    async def test_watch_with_client(self, client: ConsulClient, fake_transport: Any) -> None:
        """Test watching a key through the client."""
        fake_transport.respond(200, b'["app/a"]', {"X-Consul-Index": "7"})
        fake_transport.respond(200, b'["app/a"]', {"X-Consul-Index": "7"})
        fake_transport.respond(200, b'["app/a", "app/b"]', {"X-Consul-Index": "8"})

        items = await _take(
            watch(lambda opts: client.kv_keys("app/", opts), wait_time=timedelta(seconds=5)), 2
        )

        assert [keys for _, keys in items] == [["app/a"], ["app/a", "app/b"]]
        urls = [request.url for request in fake_transport.requests]
        assert urls == [
            "http://consul.test:8500/v1/kv/app/?keys=&wait=5s",
            "http://consul.test:8500/v1/kv/app/?keys=&index=7&wait=5s",
            "http://consul.test:8500/v1/kv/app/?keys=&index=7&wait=5s",
        ]
