"""Unit tests for query options, metadata and index parsing."""

from __future__ import annotations

from datetime import timedelta

import httpx
import pytest
from consul_client_sdk.models import ExecResult, QueryMeta, QueryOptions, format_wait, parse_index


def _lookup(headers: dict[str, str]):
    return httpx.Headers(headers).get


class TestQueryOptions:
    """Tests for QueryOptions."""

    def test_defaults_produce_no_params(self) -> None:
        """Test that default options add nothing to the query string."""
        options = QueryOptions()

        assert options.to_params() == []
        assert options.is_blocking is False

    def test_param_order_is_fixed(self) -> None:
        """Test that params come out as dc, tag, index, wait."""
        options = QueryOptions(
            wait_index=42,
            wait_time=timedelta(seconds=5),
            datacenter="dc1",
            tag="primary",
        )

        assert options.to_params() == [
            ("dc", "dc1"),
            ("tag", "primary"),
            ("index", "42"),
            ("wait", "5s"),
        ]

    def test_same_options_same_params(self) -> None:
        """Test that identical options render identically."""
        first = QueryOptions(wait_index=7, wait_time=timedelta(seconds=30), tag="a")
        second = QueryOptions(wait_index=7, wait_time=timedelta(seconds=30), tag="a")

        assert first.to_params() == second.to_params()

    def test_zero_index_never_emitted(self) -> None:
        """Test that wait_index 0 is omitted even when a wait is given."""
        options = QueryOptions(wait_index=0, wait_time=timedelta(seconds=10))

        assert options.to_params() == [("wait", "10s")]

    def test_max_index_accepted(self) -> None:
        """Test the upper bound of the index range."""
        options = QueryOptions(wait_index=2**64 - 1)

        assert options.to_params() == [("index", str(2**64 - 1))]

    @pytest.mark.parametrize("index", [-1, 2**64])
    def test_out_of_range_index_rejected(self, index: int) -> None:
        """Test that indexes outside the unsigned 64-bit range are rejected."""
        with pytest.raises(ValueError, match="wait_index"):
            QueryOptions(wait_index=index)

    def test_negative_wait_rejected(self) -> None:
        """Test that a negative wait duration is rejected."""
        with pytest.raises(ValueError, match="wait_time"):
            QueryOptions(wait_time=timedelta(seconds=-1))

    @pytest.mark.parametrize("wait", [timedelta(milliseconds=1), timedelta(milliseconds=999)])
    def test_sub_second_wait_rejected(self, wait: timedelta) -> None:
        """Test that a wait that would be sent as 0s is rejected."""
        with pytest.raises(ValueError, match="at least 1 second"):
            QueryOptions(wait_index=1, wait_time=wait)

    def test_zero_and_one_second_waits_accepted(self) -> None:
        """Test the boundaries of the accepted wait range."""
        assert QueryOptions(wait_time=timedelta(0)).to_params() == [("wait", "0s")]
        assert QueryOptions(wait_time=timedelta(seconds=1)).to_params() == [("wait", "1s")]

    def test_options_are_immutable(self) -> None:
        """Test that options cannot be changed after construction."""
        options = QueryOptions(wait_index=1)

        with pytest.raises(AttributeError):
            options.wait_index = 2  # type: ignore[misc]


class TestFormatWait:
    """Tests for wait duration serialization."""

    @pytest.mark.parametrize(
        "wait,expected",
        [
            (timedelta(seconds=5), "5s"),
            (timedelta(minutes=2), "120s"),
            (timedelta(seconds=1, milliseconds=900), "1s"),
            (timedelta(0), "0s"),
        ],
    )
    def test_whole_seconds(self, wait: timedelta, expected: str) -> None:
        """Test that waits are truncated to whole seconds with an s suffix."""
        assert format_wait(wait) == expected


class TestParseIndex:
    """Tests for consistency index extraction."""

    def test_present(self) -> None:
        """Test reading a numeric header."""
        assert parse_index(_lookup({"X-Consul-Index": "1234"})) == 1234

    def test_case_insensitive_lookup(self) -> None:
        """Test that header name casing does not matter."""
        assert parse_index(_lookup({"x-consul-index": "9"})) == 9

    def test_missing(self) -> None:
        """Test that a missing header gives None."""
        assert parse_index(_lookup({})) is None

    @pytest.mark.parametrize("raw", ["abc", "", "-5", "1.5", "12abc", str(2**64)])
    def test_unparseable(self, raw: str) -> None:
        """Test that malformed values give None."""
        assert parse_index(_lookup({"X-Consul-Index": raw})) is None

    def test_plain_callable(self) -> None:
        """Test that any lookup callable works without a real response."""
        assert parse_index(lambda name: "77" if name == "X-Consul-Index" else None) == 77


class TestQueryMeta:
    """Tests for QueryMeta."""

    def test_default_index_is_zero(self) -> None:
        """Test the default metadata."""
        assert QueryMeta().last_index == 0

    def test_from_headers(self) -> None:
        """Test building metadata from headers."""
        meta = QueryMeta.from_headers(_lookup({"X-Consul-Index": "55"}))

        assert meta == QueryMeta(last_index=55)

    def test_from_malformed_headers_degrades_to_zero(self) -> None:
        """Test that a malformed header yields index 0 instead of failing."""
        meta = QueryMeta.from_headers(_lookup({"X-Consul-Index": "not-a-number"}))

        assert meta.last_index == 0


class TestExecResult:
    """Tests for ExecResult."""

    @pytest.mark.parametrize(
        "status,expected",
        [(200, True), (204, True), (299, True), (199, False), (304, False), (404, False)],
    )
    def test_is_success(self, status: int, expected: bool) -> None:
        """Test the 2xx check."""
        assert ExecResult(status_code=status, raw_body=b"").is_success is expected
