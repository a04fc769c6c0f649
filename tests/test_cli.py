"""Tests for the command line entry point."""

from __future__ import annotations

import io
import json
import logging

import pytest

from typing import TYPE_CHECKING

from rich.console import Console

import rpcscan.helpers.logging as logging_helpers
from rpcscan.cli import build_parser, main, parse_pairs


if TYPE_CHECKING:
    from pytest_httpx import HTTPXMock


RPC_URL = "https://node.test"


def _console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, width=200, color_system=None), buffer


class TestParsePairs:
    """Tests for parse_pairs."""

    def test_parses_repeated_pairs(self) -> None:
        assert parse_pairs(["hash=0xabc", "q=a=b"]) == {"hash": "0xabc", "q": "a=b"}

    def test_none_is_empty(self) -> None:
        assert parse_pairs(None) == {}

    @pytest.mark.parametrize("pair", ["novalue", "=value"])
    def test_rejects_malformed(self, pair: str) -> None:
        with pytest.raises(ValueError, match="KEY=VALUE"):
            parse_pairs([pair])


class TestBuildParser:
    """Tests for the argument parser."""

    def test_query_arguments(self) -> None:
        args = build_parser().parse_args(
            ["query", "tx", "--path", "hash=0x1", "--param", "a=1", "--retries", "3"]
        )

        assert args.command == "query"
        assert args.resource == "tx"
        assert args.path == ["hash=0x1"]
        assert args.param == ["a=1"]
        assert args.retries == 3
        assert args.rpc_url is None


class TestMain:
    """Tests for main."""

    @pytest.mark.asyncio
    @pytest.mark.httpx_mock(assert_all_responses_were_requested=False)
    async def test_prints_result_as_json(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            url=RPC_URL, method="POST", json={"jsonrpc": "2.0", "id": 1, "result": "0x2a"}
        )
        console, buffer = _console()
        args = build_parser().parse_args(
            ["query", "quick_search", "--param", "q=0x" + "a1" * 20, "--rpc-url", RPC_URL]
        )

        code = await main(args, console)

        assert code == 0
        output = json.loads(buffer.getvalue())
        assert output["state"] == "live"
        assert output["payload"][0]["type"] == "address"
        # Address matches never reach the node
        assert httpx_mock.get_requests() == []

    @pytest.mark.asyncio
    async def test_applies_log_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "error")
        monkeypatch.setenv("LOG_COLOR", "false")
        quiet = logging.getLogger("test_cli_log_settings")
        quiet.setLevel(logging.DEBUG)
        monkeypatch.setattr(logging_helpers, "loggers", {quiet.name: quiet})
        console, _ = _console()
        args = build_parser().parse_args(
            ["query", "quick_search", "--param", "q=0x" + "a1" * 20, "--rpc-url", RPC_URL]
        )

        assert await main(args, console) == 0
        assert quiet.level == logging.ERROR

    @pytest.mark.asyncio
    async def test_invalid_log_level_exits_2(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "loud")
        monkeypatch.setattr(logging_helpers, "loggers", {})
        console, buffer = _console()
        args = build_parser().parse_args(["query", "blocks", "--rpc-url", RPC_URL])

        assert await main(args, console) == 2
        assert "Invalid log level" in buffer.getvalue()

    @pytest.mark.asyncio
    async def test_explorer_error_exits_1(self) -> None:
        console, buffer = _console()
        args = build_parser().parse_args(["query", "block", "--rpc-url", RPC_URL])

        code = await main(args, console)

        assert code == 1
        assert "NotFound" in buffer.getvalue()

    @pytest.mark.asyncio
    async def test_bad_arguments_exit_2(self) -> None:
        console, buffer = _console()
        args = build_parser().parse_args(
            ["query", "tx", "--path", "oops", "--rpc-url", RPC_URL]
        )

        assert await main(args, console) == 2
        assert "KEY=VALUE" in buffer.getvalue()

    @pytest.mark.asyncio
    async def test_blocks_query_over_rpc(self, httpx_mock: HTTPXMock) -> None:
        httpx_mock.add_response(
            url=RPC_URL, method="POST", json={"jsonrpc": "2.0", "id": 1, "result": "0x2"}
        )
        httpx_mock.add_response(
            url=RPC_URL,
            method="POST",
            json={
                "jsonrpc": "2.0",
                "id": 2,
                "result": {
                    "number": "0x2",
                    "hash": "0x" + "b2" * 32,
                    "parentHash": "0x" + "b1" * 32,
                    "miner": "0x" + "c0" * 20,
                    "timestamp": "0x6553f100",
                    "gasUsed": "0x0",
                    "gasLimit": "0x1c9c380",
                    "stateRoot": "0x" + "d0" * 32,
                    "transactions": [],
                },
            },
        )
        console, buffer = _console()
        args = build_parser().parse_args(
            ["query", "blocks", "--param", "items_count=1", "--rpc-url", RPC_URL]
        )

        assert await main(args, console) == 0

        output = json.loads(buffer.getvalue())
        assert output["payload"]["items"][0]["height"] == 2
        assert output["payload"]["next_page_params"] == {
            "block_number": 1,
            "items_count": 1,
            "index": None,
        }
