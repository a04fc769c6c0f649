"""Transaction collector: walks blocks backward and gathers a page of transactions."""

from __future__ import annotations

import asyncio

from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError

from rpcscan.explorer.mapper import map_transaction
from rpcscan.explorer.walker import BlockRangeWalker
from rpcscan.helpers.errors import RpcUnavailable
from rpcscan.helpers.logging import get_logger
from rpcscan.helpers.models import Transaction
from rpcscan.helpers.rpc_models import RawBlock, RawTransaction


if TYPE_CHECKING:
    from rpcscan.explorer.enricher import ReceiptEnricher
    from rpcscan.explorer.gateway import ChainReader


logger = get_logger(__name__)


class CollectResult(BaseModel):
    """Outcome of one collection walk.

    ``last_height_visited`` and ``resume_index`` are the resume point: the
    next page starts at that height and skips positions below the index. When
    the page was cut inside a block they point back into that block; otherwise
    the height is one below the lowest block consumed and the index is 0.
    """

    transactions: list[Transaction]
    last_height_visited: int
    resume_index: int = 0
    blocks_visited: int = 0
    degraded_reason: str | None = None

    @property
    def degraded(self) -> bool:
        return self.degraded_reason is not None


def block_candidates(
    raw_block: RawBlock,
    address_filter: str | None = None,
    *,
    skip_below: int = 0,
    latest_height: int | None = None,
) -> list[Transaction]:
    """Map the transactions of one block, applying the raw-stage address filter.

    Bare hash entries are dropped silently, malformed objects with a warning.
    With an address filter, a transaction is kept when ``from`` or ``to``
    matches, and contract creations are kept as candidates because their
    recipient is only known once the receipt is in.

    Args:
        raw_block: Block fetched with full transaction bodies
        address_filter: Address to match, case-insensitive
        skip_below: Drop transactions whose position is below this index
        latest_height: Head height for confirmations

    Returns:
        Transactions in on-chain order
    """
    needle = address_filter.lower() if address_filter else None
    candidates: list[Transaction] = []

    for i, entry in enumerate(raw_block.transactions):
        if isinstance(entry, str):
            continue
        try:
            raw_tx = RawTransaction.model_validate(entry)
        except ValidationError as e:
            logger.warning(
                "Skipping malformed transaction #%d in block %s: %s",
                i,
                raw_block.number,
                e.error_count(),
            )
            continue

        tx = map_transaction(raw_tx, raw_block, latest_height)
        if tx.position is None:
            tx = tx.model_copy(update={"position": i})
        if tx.position is not None and tx.position < skip_below:
            continue

        if needle is not None and not (
            raw_tx.from_.lower() == needle
            or raw_tx.to is None
            or raw_tx.to.lower() == needle
        ):
            continue

        candidates.append(tx)

    return candidates


class TransactionCollector:
    """Collects transactions walking backward from a start height.

    The walk stops at whichever comes first: the block budget, the item
    budget, the hard cap of the resource, or the time budget. Blocks are
    fetched one at a time; receipts for the whole page are fetched once, at
    the end, through the enricher.
    """

    def __init__(
        self,
        gateway: ChainReader,
        enricher: ReceiptEnricher,
        hard_cap: int | None = None,
        time_budget: float | None = None,
    ) -> None:
        self.gateway = gateway
        self.enricher = enricher
        self.hard_cap = hard_cap
        self.time_budget = time_budget

    async def collect(
        self,
        start_height: int,
        max_blocks: int,
        max_items: int,
        address_filter: str | None = None,
        *,
        resume_index: int = 0,
        latest_height: int | None = None,
    ) -> CollectResult:
        """Collect and enrich one page of transactions.

        Args:
            start_height: First height to visit
            max_blocks: Block budget
            max_items: Requested page size
            address_filter: Only keep transactions touching this address
            resume_index: Skip positions below this index in the first block
            latest_height: Head height for confirmations, None if unknown

        Returns:
            CollectResult, transactions block-descending then position-ascending
        """
        limit = max_items if self.hard_cap is None else min(max_items, self.hard_cap)
        walker = BlockRangeWalker(start_height, max_blocks)
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.time_budget if self.time_budget is not None else None

        candidates: list[Transaction] = []
        stop_point: tuple[int, int] | None = None
        degraded_reason: str | None = None

        while len(candidates) < limit:
            if deadline is not None and loop.time() >= deadline:
                logger.info(
                    "Time budget of %.1fs spent after %d blocks",
                    self.time_budget,
                    walker.attempted,
                )
                break

            height = walker.next_height()
            if height is None:
                break

            skip_below = resume_index if height == start_height else 0
            try:
                raw_block = await self.gateway.get_block(
                    block_number=height, include_transactions=True
                )
            except RpcUnavailable as e:
                logger.warning("Block %d unavailable, ending walk: %s", height, e)
                degraded_reason = f"block {height} unavailable: {e}"
                stop_point = (height, skip_below)
                break

            if raw_block is None:
                logger.debug("Block %d not found, skipping", height)
                continue

            block_txs = block_candidates(
                raw_block,
                address_filter,
                skip_below=skip_below,
                latest_height=latest_height,
            )
            room = limit - len(candidates)
            if len(block_txs) > room:
                candidates.extend(block_txs[:room])
                cut = block_txs[room].position
                stop_point = (height, cut if cut is not None else room)
                logger.debug("Page filled inside block %d at position %s", height, cut)
                break
            candidates.extend(block_txs)

        if stop_point is not None:
            last_height, next_index = stop_point
        else:
            last_height, next_index = walker.cursor_height, 0

        enriched = await self.enricher.enrich(candidates)
        transactions = enriched.transactions
        if address_filter is not None:
            transactions = [tx for tx in transactions if tx.touches(address_filter)]

        reasons = [r for r in (degraded_reason, enriched.degraded_reason) if r]
        return CollectResult(
            transactions=transactions,
            last_height_visited=last_height,
            resume_index=next_index,
            blocks_visited=walker.attempted,
            degraded_reason="; ".join(reasons) or None,
        )


__all__ = [
    "CollectResult",
    "TransactionCollector",
    "block_candidates",
]
