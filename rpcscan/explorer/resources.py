"""Resource dispatcher: maps logical resource names to aggregation strategies.

``RESOURCE_HANDLERS`` is the only place that knows which resources are
emulated over RPC. Every other resource name is delegated to the backend.

Usage:
    ```python
    async with RPCGateway.from_settings(settings) as gateway:
        dispatcher = ResourceDispatcher(gateway)
        result = await dispatcher.query("blocks", query_params={"items_count": 10})
    ```
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from typing import TYPE_CHECKING, Any, ClassVar

from rpcscan.explorer.collector import TransactionCollector, block_candidates
from rpcscan.explorer.enricher import ReceiptEnricher, apply_receipt
from rpcscan.explorer.mapper import map_block, map_transaction
from rpcscan.explorer.search import QuickSearchResolver
from rpcscan.explorer.walker import LATEST, resolve_head, walk
from rpcscan.helpers.constants import (
    ADDRESS_HEX_LENGTH,
    ADDRESS_TXS_CAP,
    BLOCK_CONCURRENCY,
    BLOCK_TXS_CAP,
    DEFAULT_ITEMS_COUNT,
    EMPTY_CODE,
    HASH_HEX_LENGTH,
    HOMEPAGE_BLOCKS_COUNT,
    HOMEPAGE_TXS_CAP,
    RECEIPT_CONCURRENCY,
    STATS_SAMPLE_BLOCKS,
    TX_WINDOW_BLOCKS,
    TXS_VALIDATED_CAP,
)
from rpcscan.helpers.errors import NotFound, RpcError, RpcUnavailable, UpstreamError
from rpcscan.helpers.logging import get_logger
from rpcscan.helpers.models import (
    AddressDetails,
    Block,
    DegradedResult,
    HomepageStats,
    LiveResult,
    Page,
    PageCursor,
    QueryResult,
    Transaction,
    build_result,
)
from rpcscan.helpers.parsers import is_hex, parse_hex_int


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from rpcscan.explorer.backend import BackendFetcher
    from rpcscan.explorer.collector import CollectResult
    from rpcscan.explorer.gateway import ChainReader
    from rpcscan.helpers.config import ExplorerSettings
    from rpcscan.helpers.rpc_models import RawBlock


logger = get_logger(__name__)


def int_param(params: Mapping[str, Any], key: str, default: int | None = None) -> int | None:
    """Read an integer query parameter that may arrive as a string.

    Raises:
        NotFound: If the value is present but not an integer
    """
    value = params.get(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        msg = f"invalid {key}: {value!r}"
        raise NotFound(msg) from e


def page_size(params: Mapping[str, Any]) -> int:
    items_count = int_param(params, "items_count", DEFAULT_ITEMS_COUNT)
    if items_count is None or items_count < 1:
        msg = f"invalid items_count: {params.get('items_count')!r}"
        raise NotFound(msg)
    return items_count


def transactions_cursor(
    result: CollectResult, items_count: int, **filters: Any
) -> PageCursor | None:
    """Cursor after a transaction page; None once the walk reached the bottom."""
    if result.last_height_visited < 1:
        return None
    return PageCursor(
        block_number=result.last_height_visited,
        items_count=items_count,
        index=result.resume_index or None,
        **filters,
    )


class ResourceHandler(ABC):
    """Strategy answering one emulated resource."""

    name: ClassVar[str]
    path_params: ClassVar[tuple[str, ...]] = ()

    def __init__(self, dispatcher: ResourceDispatcher) -> None:
        self.dispatcher = dispatcher
        self.gateway = dispatcher.gateway

    @abstractmethod
    async def handle(
        self, path_params: Mapping[str, str], query_params: Mapping[str, Any]
    ) -> QueryResult: ...

    def collector(self, hard_cap: int | None) -> TransactionCollector:
        return TransactionCollector(
            self.gateway,
            self.dispatcher.enricher(),
            hard_cap=hard_cap,
            time_budget=self.dispatcher.collect_time_budget,
        )

    async def fetch_blocks(self, heights: list[int]) -> tuple[list[Block], list[str]]:
        """Fetch blocks concurrently, keeping the order of ``heights``.

        Unavailable blocks are left out and reported as degradation reasons.
        """
        semaphore = asyncio.Semaphore(self.dispatcher.block_concurrency)

        async def fetch(height: int) -> RawBlock | None:
            async with semaphore:
                return await self.gateway.get_block(block_number=height)

        results = await asyncio.gather(*(fetch(h) for h in heights), return_exceptions=True)

        blocks: list[Block] = []
        reasons: list[str] = []
        for height, result in zip(heights, results, strict=True):
            if isinstance(result, RpcUnavailable):
                logger.warning("Block %d unavailable: %s", height, result)
                reasons.append(f"block {height} unavailable")
            elif isinstance(result, BaseException):
                raise result
            elif result is not None:
                blocks.append(map_block(result))
        return blocks, reasons

    async def fetch_block_ref(
        self, height_or_hash: str, *, include_transactions: bool = False
    ) -> RawBlock | None:
        """Fetch a block addressed by a path parameter (height or 0x hash)."""
        if height_or_hash.startswith("0x"):
            if not is_hex(height_or_hash, HASH_HEX_LENGTH):
                msg = f"invalid block hash: {height_or_hash}"
                raise NotFound(msg)
            return await self.gateway.get_block(
                block_hash=height_or_hash, include_transactions=include_transactions
            )
        if not height_or_hash.isdigit():
            msg = f"invalid block height: {height_or_hash}"
            raise NotFound(msg)
        return await self.gateway.get_block(
            block_number=int(height_or_hash), include_transactions=include_transactions
        )


RESOURCE_HANDLERS: dict[str, type[ResourceHandler]] = {}


def register(
    handler_cls: type[ResourceHandler],
) -> type[ResourceHandler]:
    RESOURCE_HANDLERS[handler_cls.name] = handler_cls
    return handler_cls


@register
class BlocksHandler(ResourceHandler):
    """Paginated block listing walking down from the cursor or the head."""

    name = "blocks"

    async def handle(
        self, path_params: Mapping[str, str], query_params: Mapping[str, Any]
    ) -> QueryResult:
        items_count = page_size(query_params)
        start = int_param(query_params, "block_number")
        plan = await walk(self.gateway, LATEST if start is None else start, items_count)

        blocks, reasons = await self.fetch_blocks(plan.heights)
        if plan.degraded_reason:
            reasons.insert(0, plan.degraded_reason)

        cursor = None
        if plan.next_cursor_height >= 1:
            cursor = PageCursor(block_number=plan.next_cursor_height, items_count=items_count)
        return build_result(Page[Block](items=blocks, next_page_params=cursor), reasons)


@register
class HomepageBlocksHandler(ResourceHandler):
    """Latest blocks preview."""

    name = "homepage_blocks"

    async def handle(
        self, path_params: Mapping[str, str], query_params: Mapping[str, Any]
    ) -> QueryResult:
        plan = await walk(self.gateway, LATEST, HOMEPAGE_BLOCKS_COUNT)
        blocks, reasons = await self.fetch_blocks(plan.heights)
        if plan.degraded_reason:
            reasons.insert(0, plan.degraded_reason)
        return build_result(blocks, reasons)


@register
class BlockHandler(ResourceHandler):
    """Single block by height or hash."""

    name = "block"
    path_params = ("height_or_hash",)

    async def handle(
        self, path_params: Mapping[str, str], query_params: Mapping[str, Any]
    ) -> QueryResult:
        height_or_hash = path_params["height_or_hash"]
        try:
            raw_block = await self.fetch_block_ref(height_or_hash)
        except RpcUnavailable as e:
            logger.warning("Block %s unavailable: %s", height_or_hash, e)
            return DegradedResult(payload=None, reason=f"block unavailable: {e}")

        if raw_block is None:
            msg = f"block {height_or_hash} not found"
            raise NotFound(msg)
        return LiveResult(payload=map_block(raw_block))


@register
class BlockTxsHandler(ResourceHandler):
    """Transactions of one block, enriched, in on-chain order."""

    name = "block_txs"
    path_params = ("height_or_hash",)

    async def handle(
        self, path_params: Mapping[str, str], query_params: Mapping[str, Any]
    ) -> QueryResult:
        height_or_hash = path_params["height_or_hash"]
        empty = Page[Transaction](items=[])
        try:
            raw_block = await self.fetch_block_ref(height_or_hash, include_transactions=True)
        except RpcUnavailable as e:
            logger.warning("Block %s unavailable: %s", height_or_hash, e)
            return DegradedResult(payload=empty, reason=f"block unavailable: {e}")

        if raw_block is None:
            msg = f"block {height_or_hash} not found"
            raise NotFound(msg)

        head = await resolve_head(self.gateway)
        candidates = block_candidates(raw_block, latest_height=head.height or None)
        enriched = await self.dispatcher.enricher().enrich(candidates[:BLOCK_TXS_CAP])

        reasons = [r for r in (head.degraded_reason, enriched.degraded_reason) if r]
        return build_result(Page[Transaction](items=enriched.transactions), reasons)


class TransactionListHandler(ResourceHandler):
    """Shared walk for transaction listings paginated by block cursor."""

    hard_cap: ClassVar[int]

    def address_filter(self, path_params: Mapping[str, str]) -> str | None:
        return None

    def cursor_filters(self, path_params: Mapping[str, str]) -> dict[str, Any]:
        return {}

    async def handle(
        self, path_params: Mapping[str, str], query_params: Mapping[str, Any]
    ) -> QueryResult:
        address = self.address_filter(path_params)
        items_count = page_size(query_params)
        start = int_param(query_params, "block_number")
        resume_index = int_param(query_params, "index", 0) or 0

        head = await resolve_head(self.gateway)
        reasons = [head.degraded_reason] if head.degraded_reason else []
        start_height = head.height if start is None else start

        result = await self.collector(self.hard_cap).collect(
            start_height,
            TX_WINDOW_BLOCKS,
            items_count,
            address,
            resume_index=resume_index,
            latest_height=head.height or None,
        )
        if result.degraded_reason:
            reasons.append(result.degraded_reason)

        cursor = transactions_cursor(
            result, items_count, **self.cursor_filters(path_params)
        )
        page = Page[Transaction](items=result.transactions, next_page_params=cursor)
        return build_result(page, reasons)


@register
class ValidatedTxsHandler(TransactionListHandler):
    """Mined transactions, newest first, over a bounded block window."""

    name = "txs_validated"
    hard_cap = TXS_VALIDATED_CAP

    def cursor_filters(self, path_params: Mapping[str, str]) -> dict[str, Any]:
        return {"filter": "validated"}


@register
class AddressTxsHandler(TransactionListHandler):
    """Transactions sent from, sent to or deploying an address."""

    name = "address_txs"
    path_params = ("hash",)
    hard_cap = ADDRESS_TXS_CAP

    def address_filter(self, path_params: Mapping[str, str]) -> str | None:
        address = path_params["hash"]
        if not is_hex(address, ADDRESS_HEX_LENGTH):
            msg = f"invalid address: {address}"
            raise NotFound(msg)
        return address

    def cursor_filters(self, path_params: Mapping[str, str]) -> dict[str, Any]:
        return {"address_hash": path_params["hash"]}


@register
class HomepageTxsHandler(ResourceHandler):
    """Latest transactions preview over the most recent blocks."""

    name = "homepage_txs"

    async def handle(
        self, path_params: Mapping[str, str], query_params: Mapping[str, Any]
    ) -> QueryResult:
        head = await resolve_head(self.gateway)
        result = await self.collector(HOMEPAGE_TXS_CAP).collect(
            head.height,
            TX_WINDOW_BLOCKS,
            HOMEPAGE_TXS_CAP,
            latest_height=head.height or None,
        )
        reasons = [r for r in (head.degraded_reason, result.degraded_reason) if r]
        return build_result(result.transactions, reasons)


@register
class TransactionHandler(ResourceHandler):
    """Single transaction with its receipt fields and owning block timestamp."""

    name = "tx"
    path_params = ("hash",)

    async def handle(
        self, path_params: Mapping[str, str], query_params: Mapping[str, Any]
    ) -> QueryResult:
        tx_hash = path_params["hash"]
        if not is_hex(tx_hash, HASH_HEX_LENGTH):
            msg = f"invalid transaction hash: {tx_hash}"
            raise NotFound(msg)

        try:
            raw_tx = await self.gateway.get_transaction(tx_hash)
        except RpcUnavailable as e:
            logger.warning("Transaction %s unavailable: %s", tx_hash, e)
            return DegradedResult(payload=None, reason=f"transaction unavailable: {e}")
        if raw_tx is None:
            msg = f"transaction {tx_hash} not found"
            raise NotFound(msg)

        reasons: list[str] = []
        raw_block = None
        receipt = None
        head = await resolve_head(self.gateway)
        if head.degraded_reason:
            reasons.append(head.degraded_reason)

        if raw_tx.block_number is not None:
            block_lookup, receipt_lookup = await asyncio.gather(
                self.gateway.get_block(block_number=parse_hex_int(raw_tx.block_number)),
                self.gateway.get_transaction_receipt(tx_hash),
                return_exceptions=True,
            )
            raw_block, block_reason = self._settle(block_lookup, "owning block")
            receipt, receipt_reason = self._settle(receipt_lookup, "receipt")
            reasons.extend(r for r in (block_reason, receipt_reason) if r)

        tx = apply_receipt(map_transaction(raw_tx, raw_block, head.height or None), receipt)
        return build_result(tx, reasons)

    @staticmethod
    def _settle(outcome: Any, what: str) -> tuple[Any, str | None]:
        if isinstance(outcome, RpcUnavailable):
            logger.warning("%s unavailable: %s", what, outcome)
            return None, f"{what} unavailable"
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome, None


@register
class AddressHandler(ResourceHandler):
    """Address summary from balance, nonce and code."""

    name = "address"
    path_params = ("hash",)

    async def handle(
        self, path_params: Mapping[str, str], query_params: Mapping[str, Any]
    ) -> QueryResult:
        address = path_params["hash"]
        if not is_hex(address, ADDRESS_HEX_LENGTH):
            msg = f"invalid address: {address}"
            raise NotFound(msg)

        lookups: dict[str, Callable[[str], Any]] = {
            "balance": self.gateway.get_balance,
            "nonce": self.gateway.get_transaction_count,
            "code": self.gateway.get_code,
        }
        outcomes = await asyncio.gather(
            *(lookup(address) for lookup in lookups.values()), return_exceptions=True
        )

        values: dict[str, Any] = {}
        reasons: list[str] = []
        for key, outcome in zip(lookups, outcomes, strict=True):
            if isinstance(outcome, RpcUnavailable):
                logger.warning("Address %s %s unavailable: %s", address, key, outcome)
                reasons.append(f"{key} unavailable")
                values[key] = None
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                values[key] = outcome

        details = AddressDetails(
            hash=address,
            coin_balance=str(values["balance"]) if values["balance"] is not None else None,
            transactions_count=values["nonce"],
            is_contract=values["code"] not in (None, "", EMPTY_CODE),
        )
        return build_result(details, reasons)


@register
class QuickSearchHandler(ResourceHandler):
    """Quick search over address, transaction and block identifiers."""

    name = "quick_search"

    async def handle(
        self, path_params: Mapping[str, str], query_params: Mapping[str, Any]
    ) -> QueryResult:
        query = str(query_params.get("q") or "")
        outcome = await QuickSearchResolver(self.gateway).search(query)
        reasons = [outcome.degraded_reason] if outcome.degraded_reason else []
        return build_result(outcome.results, reasons)


@register
class HomepageStatsHandler(ResourceHandler):
    """Head height, recent block time and utilization of the head block."""

    name = "homepage_stats"

    async def handle(
        self, path_params: Mapping[str, str], query_params: Mapping[str, Any]
    ) -> QueryResult:
        head = await resolve_head(self.gateway)
        if head.degraded_reason:
            return DegradedResult(
                payload=HomepageStats(total_blocks=0), reason=head.degraded_reason
            )

        sample_height = max(head.height - STATS_SAMPLE_BLOCKS, 0)
        heights = [head.height] if sample_height == head.height else [head.height, sample_height]
        blocks, reasons = await self.fetch_blocks(heights)

        latest = blocks[0] if blocks and blocks[0].height == head.height else None
        average_block_time = None
        if len(blocks) == 2:
            newest, oldest = blocks
            span = newest.height - oldest.height
            if span > 0:
                seconds = (newest.timestamp - oldest.timestamp).total_seconds()
                average_block_time = seconds / span * 1000

        stats = HomepageStats(
            total_blocks=head.height,
            average_block_time=average_block_time,
            network_utilization_percentage=latest.gas_used_percentage if latest else None,
            latest_block=latest,
        )
        return build_result(stats, reasons)


class ResourceDispatcher:
    """Single entry point answering a logical resource request.

    Emulated resources are answered from the node; everything else goes to the
    backend fetcher. Dispatch is by exact resource name.
    """

    def __init__(
        self,
        gateway: ChainReader,
        backend: BackendFetcher | None = None,
        *,
        receipt_concurrency: int = RECEIPT_CONCURRENCY,
        block_concurrency: int = BLOCK_CONCURRENCY,
        collect_time_budget: float | None = None,
        handlers: Mapping[str, type[ResourceHandler]] | None = None,
    ) -> None:
        self.gateway = gateway
        self.backend = backend
        self.receipt_concurrency = receipt_concurrency
        self.block_concurrency = block_concurrency
        self.collect_time_budget = collect_time_budget
        self.handlers = dict(RESOURCE_HANDLERS if handlers is None else handlers)

    @classmethod
    def from_settings(
        cls,
        settings: ExplorerSettings,
        gateway: ChainReader,
        backend: BackendFetcher | None = None,
    ) -> ResourceDispatcher:
        return cls(
            gateway,
            backend,
            receipt_concurrency=settings.receipt_concurrency,
            block_concurrency=settings.block_concurrency,
            collect_time_budget=settings.collect_time_budget,
        )

    def enricher(self) -> ReceiptEnricher:
        return ReceiptEnricher(self.gateway, concurrency=self.receipt_concurrency)

    def is_emulated(self, resource_name: str) -> bool:
        return resource_name in self.handlers

    async def query(
        self,
        resource_name: str,
        path_params: Mapping[str, str] | None = None,
        query_params: Mapping[str, Any] | None = None,
    ) -> QueryResult:
        """Answer a resource request.

        Args:
            resource_name: Logical resource name, e.g. "blocks"
            path_params: Path parameters, e.g. {"hash": "0x..."}
            query_params: Query parameters, e.g. a cursor from next_page_params

        Returns:
            LiveResult, or DegradedResult when part of the data came from a
            fallback after an RPC failure

        Raises:
            NotFound: If a required path parameter or the entity is missing
            UpstreamError: If the node or the backend failed in a way that
                cannot be degraded
        """
        path_params = dict(path_params or {})
        query_params = dict(query_params or {})

        handler_cls = self.handlers.get(resource_name)
        if handler_cls is None:
            return await self.delegate(resource_name, path_params, query_params)

        missing = [p for p in handler_cls.path_params if not path_params.get(p)]
        if missing:
            msg = f"{resource_name}: missing path parameters {', '.join(missing)}"
            raise NotFound(msg)

        logger.debug("Resolving %s over RPC (%s, %s)", resource_name, path_params, query_params)
        try:
            result = await handler_cls(self).handle(path_params, query_params)
        except RpcError as e:
            logger.error("%s failed: %s", resource_name, e)
            msg = f"{resource_name}: {e}"
            raise UpstreamError(msg) from e

        if isinstance(result, DegradedResult):
            logger.warning("%s answered with degraded data: %s", resource_name, result.reason)
        return result

    async def delegate(
        self,
        resource_name: str,
        path_params: Mapping[str, str],
        query_params: Mapping[str, Any],
    ) -> QueryResult:
        if self.backend is None:
            msg = f"{resource_name}: no backend configured for delegated resources"
            raise UpstreamError(msg)
        logger.debug("Delegating %s to backend", resource_name)
        payload = await self.backend.fetch(resource_name, path_params, query_params)
        return LiveResult(payload=payload)


__all__ = [
    "RESOURCE_HANDLERS",
    "ResourceDispatcher",
    "ResourceHandler",
    "int_param",
    "page_size",
    "register",
    "transactions_cursor",
]
