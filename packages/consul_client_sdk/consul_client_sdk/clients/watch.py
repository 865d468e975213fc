"""Watch loop built on blocking queries."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import timedelta
from typing import TypeVar

from consul_client_sdk.logging import get_logger
from consul_client_sdk.models import QueryMeta, QueryOptions

T = TypeVar("T")

logger = get_logger(__name__)


async def watch(
    fetch: Callable[[QueryOptions], Awaitable[tuple[QueryMeta, T]]],
    *,
    wait_time: timedelta,
    datacenter: str | None = None,
    tag: str | None = None,
) -> AsyncIterator[tuple[QueryMeta, T]]:
    """Yield a query's result each time its index advances.

    The first result is yielded immediately. Each following request blocks on
    the last index seen; a response that comes back with the same index (the
    wait elapsed without a change) is not yielded. If the index moves
    backwards, e.g. after a server restore, the loop starts over from 0.

    Errors from ``fetch`` propagate to the consumer; nothing is retried.

    Example:
        async for meta, pairs in watch(
            lambda opts: client.kv_get("config/app", opts), wait_time=timedelta(seconds=30)
        ):
            ...

    Args:
        fetch: Query operation accepting ``QueryOptions``
        wait_time: Maximum time each request may block
        datacenter: Datacenter passed through to every request
        tag: Tag filter passed through to every request
    """
    wait_index = 0
    last_seen: int | None = None

    while True:
        options = QueryOptions(
            wait_index=wait_index, wait_time=wait_time, datacenter=datacenter, tag=tag
        )
        meta, value = await fetch(options)
        index = meta.last_index

        if last_seen is not None and index < last_seen:
            logger.info(
                "Consistency index went backwards, restarting watch",
                extra={"previous_index": last_seen, "last_index": index},
            )
            wait_index = 0
            last_seen = None
            continue

        changed = last_seen is None or index != last_seen
        last_seen = index
        # A zero index would make the next request return at once.
        wait_index = max(index, 1)
        if changed:
            yield meta, value
