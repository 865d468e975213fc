"""Main entry point for the Consul CLI."""

from __future__ import annotations

import asyncio
import contextlib
import json
from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, TypeVar

import typer
from consul_client_sdk import ConsulClient, ConsulClientError, KVPair, QueryMeta, watch
from consul_client_sdk.config import get_config
from consul_client_sdk.logging import setup_logging

T = TypeVar("T")

app = typer.Typer(help="Command-line access to the Consul agent, catalog and KV store.")

AddressOption = typer.Option(None, "--address", help="Base URL of the HTTP API")
TokenOption = typer.Option(None, "--token", help="ACL token")


def _make_client(address: str | None, token: str | None) -> ConsulClient:
    config = get_config()
    setup_logging(config.logging)
    return ConsulClient(
        address=address or config.address,
        token=token or config.token,
        timeout=config.timeout,
    )


def _run(address: str | None, token: str | None, op: Callable[[ConsulClient], Awaitable[T]]) -> T:
    """Run one client operation, turning SDK errors into exit code 1."""

    async def runner() -> T:
        async with _make_client(address, token) as client:
            return await op(client)

    try:
        return asyncio.run(runner())
    except ConsulClientError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1) from e


def _value_text(pair: KVPair) -> str:
    try:
        value = pair.decoded_value
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e
    return value.decode("utf-8", errors="replace")


def _pair_to_dict(pair: KVPair) -> dict[str, Any]:
    return {
        "key": pair.key,
        "value": _value_text(pair),
        "modify_index": pair.modify_index,
    }


@app.command()  # type: ignore[misc]
def version() -> None:
    """Show the Consul CLI version."""
    typer.echo("Consul CLI version 0.1.0")


@app.command("kv-get")  # type: ignore[misc]
def kv_get(
    key: str,
    address: str | None = AddressOption,
    token: str | None = TokenOption,
) -> None:
    """Print the value stored at KEY."""
    meta, pairs = _run(address, token, lambda client: client.kv_get(key))
    for pair in pairs:
        typer.echo(_value_text(pair))
    typer.echo(f"index={meta.last_index}", err=True)


@app.command("kv-keys")  # type: ignore[misc]
def kv_keys(
    prefix: str = typer.Argument(""),
    address: str | None = AddressOption,
    token: str | None = TokenOption,
) -> None:
    """List key names under PREFIX."""
    _, keys = _run(address, token, lambda client: client.kv_keys(prefix))
    for name in keys:
        typer.echo(name)


@app.command("kv-put")  # type: ignore[misc]
def kv_put(
    key: str,
    value: str,
    cas: int | None = typer.Option(None, "--cas", help="Only write if the modify index matches"),
    address: str | None = AddressOption,
    token: str | None = TokenOption,
) -> None:
    """Write VALUE to KEY, optionally as a compare-and-swap."""
    data = value.encode("utf-8")
    if cas is None:
        ok = _run(address, token, lambda client: client.kv_put(key, data))
    else:
        ok = _run(address, token, lambda client: client.kv_cas(key, data, cas))
    if not ok:
        typer.echo(f"Write to '{key}' was not applied", err=True)
        raise typer.Exit(code=1)
    typer.echo("Success")


@app.command("kv-delete")  # type: ignore[misc]
def kv_delete(
    key: str,
    cas: int | None = typer.Option(None, "--cas", help="Only delete if the modify index matches"),
    address: str | None = AddressOption,
    token: str | None = TokenOption,
) -> None:
    """Delete KEY."""
    ok = _run(address, token, lambda client: client.kv_delete(key, cas))
    if not ok:
        typer.echo(f"Delete of '{key}' was not applied", err=True)
        raise typer.Exit(code=1)
    typer.echo("Success")


@app.command("catalog-service")  # type: ignore[misc]
def catalog_service(
    name: str,
    tag: str | None = typer.Option(None, "--tag", help="Only instances with this tag"),
    address: str | None = AddressOption,
    token: str | None = TokenOption,
) -> None:
    """List the instances of service NAME as JSON lines."""
    _, services = _run(address, token, lambda client: client.catalog_service(name, tag))
    for service in services:
        typer.echo(service.model_dump_json(by_alias=True))


@app.command("watch-kv")  # type: ignore[misc]
def watch_kv(
    key: str,
    wait: float | None = typer.Option(None, "--wait", min=1, help="Blocking wait in seconds"),
    count: int | None = typer.Option(None, "--count", help="Stop after this many changes"),
    address: str | None = AddressOption,
    token: str | None = TokenOption,
) -> None:
    """Print KEY every time it changes."""
    wait_time = timedelta(seconds=wait) if wait is not None else get_config().default_wait_time

    async def follow(client: ConsulClient) -> None:
        seen = 0
        changes = watch(lambda opts: client.kv_get(key, opts), wait_time=wait_time)
        async with contextlib.aclosing(changes):
            async for meta, pairs in changes:
                _print_change(meta, pairs)
                seen += 1
                if count is not None and seen >= count:
                    break

    _run(address, token, follow)


def _print_change(meta: QueryMeta, pairs: list[KVPair]) -> None:
    payload = {"index": meta.last_index, "pairs": [_pair_to_dict(p) for p in pairs]}
    typer.echo(json.dumps(payload))


if __name__ == "__main__":
    app()
