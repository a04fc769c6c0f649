"""Quick search resolver: address, transaction hash, block hash or block number."""

from __future__ import annotations

from enum import StrEnum

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from rpcscan.helpers.constants import ADDRESS_HEX_LENGTH, HASH_HEX_LENGTH
from rpcscan.helpers.errors import RpcError
from rpcscan.helpers.logging import get_logger
from rpcscan.helpers.models import (
    AddressSearchResult,
    BlockSearchResult,
    SearchResult,
    TransactionSearchResult,
)
from rpcscan.helpers.parsers import (
    is_bare_hex,
    is_hex,
    parse_hex_int,
    parse_hex_timestamp,
)


if TYPE_CHECKING:
    from rpcscan.explorer.gateway import ChainReader
    from rpcscan.helpers.rpc_models import RawBlock


logger = get_logger(__name__)


class QueryShape(StrEnum):
    """Lexical shape of a quick-search query."""

    ADDRESS = "address"
    HASH = "hash"
    BLOCK_NUMBER = "block_number"
    UNKNOWN = "unknown"


class SearchOutcome(BaseModel):
    """Zero or one match; degraded when an RPC failure hid a possible match."""

    results: list[SearchResult] = Field(default_factory=list)
    degraded_reason: str | None = None


def normalize_query(query: str) -> str:
    """Strip the query and restore a missing 0x on bare address/hash hex."""
    query = query.strip()
    if len(query) in (ADDRESS_HEX_LENGTH, HASH_HEX_LENGTH) and is_bare_hex(query):
        return f"0x{query}"
    return query


def classify_query(query: str) -> QueryShape:
    """Classify an already normalized query by its lexical shape.

    Example:
        >>> classify_query("42")
        <QueryShape.BLOCK_NUMBER: 'block_number'>
        >>> classify_query("0x" + "ab" * 20)
        <QueryShape.ADDRESS: 'address'>
    """
    if query.startswith("0x"):
        if is_hex(query, ADDRESS_HEX_LENGTH):
            return QueryShape.ADDRESS
        if is_hex(query, HASH_HEX_LENGTH):
            return QueryShape.HASH
        return QueryShape.UNKNOWN
    if query.isascii() and query.isdigit() and int(query) > 0:
        return QueryShape.BLOCK_NUMBER
    return QueryShape.UNKNOWN


def block_result(raw_block: RawBlock) -> BlockSearchResult:
    height = parse_hex_int(raw_block.number)
    return BlockSearchResult(
        block_hash=raw_block.hash,
        block_number=height,
        url=f"/block/{height}",
        timestamp=parse_hex_timestamp(raw_block.timestamp),
    )


class QuickSearchResolver:
    """Dispatches a free-text query to the lookup path matching its shape.

    The first branch that finds something wins; nothing is retried. RPC
    failures count as "no match" and mark the outcome degraded.
    """

    def __init__(self, gateway: ChainReader) -> None:
        self.gateway = gateway

    async def search(self, query: str) -> SearchOutcome:
        normalized = normalize_query(query)
        shape = classify_query(normalized)
        logger.debug("Quick search %r classified as %s", normalized, shape)

        match shape:
            case QueryShape.ADDRESS:
                return SearchOutcome(
                    results=[
                        AddressSearchResult(
                            address=normalized, url=f"/address/{normalized}"
                        )
                    ]
                )
            case QueryShape.HASH:
                return await self._search_hash(normalized)
            case QueryShape.BLOCK_NUMBER:
                return await self._search_block_number(int(normalized))
            case _:
                return SearchOutcome()

    async def _search_hash(self, value: str) -> SearchOutcome:
        failures: list[str] = []

        try:
            receipt = await self.gateway.get_transaction_receipt(value)
        except RpcError as e:
            logger.warning("Receipt lookup for %s failed: %s", value, e)
            failures.append(f"receipt lookup failed: {e}")
            receipt = None

        if receipt is not None:
            owner = None
            if receipt.block_number or receipt.block_hash:
                try:
                    owner = await self.gateway.get_block(
                        block_number=parse_hex_int(receipt.block_number)
                        if receipt.block_number
                        else None,
                        block_hash=receipt.block_hash,
                    )
                except RpcError as e:
                    logger.warning("Owning block of %s unavailable: %s", value, e)
                    failures.append(f"block lookup failed: {e}")
            timestamp = parse_hex_timestamp(owner.timestamp) if owner is not None else None
            return SearchOutcome(
                results=[
                    TransactionSearchResult(
                        tx_hash=value, url=f"/tx/{value}", timestamp=timestamp
                    )
                ],
                degraded_reason="; ".join(failures) or None,
            )

        try:
            raw_block = await self.gateway.get_block(block_hash=value)
        except RpcError as e:
            logger.warning("Block lookup for %s failed: %s", value, e)
            failures.append(f"block lookup failed: {e}")
            raw_block = None

        results = [block_result(raw_block)] if raw_block is not None else []
        return SearchOutcome(results=results, degraded_reason="; ".join(failures) or None)

    async def _search_block_number(self, height: int) -> SearchOutcome:
        try:
            raw_block = await self.gateway.get_block(block_number=height)
        except RpcError as e:
            logger.warning("Block %d lookup failed: %s", height, e)
            return SearchOutcome(degraded_reason=f"block lookup failed: {e}")
        if raw_block is None:
            return SearchOutcome()
        return SearchOutcome(results=[block_result(raw_block)])


__all__ = [
    "QueryShape",
    "QuickSearchResolver",
    "SearchOutcome",
    "block_result",
    "classify_query",
    "normalize_query",
]
