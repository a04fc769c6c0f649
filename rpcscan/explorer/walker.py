"""Block range walker: which heights a page visits and where the next one resumes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel

from rpcscan.helpers.errors import RpcUnavailable
from rpcscan.helpers.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Iterator

    from rpcscan.explorer.gateway import ChainReader


logger = get_logger(__name__)

LATEST = "latest"


class BlockRangeWalker:
    """Descending walk over block heights.

    Heights run ``start, start - 1, ...`` while they stay >= 1 and the block
    budget lasts. The walker remembers the last height handed out, so a
    consumer that stops early still gets a cursor pointing right below the
    last block it actually attempted.

    Example:
        ```python
        walker = BlockRangeWalker(100, 3)
        list(walker)          # [100, 99, 98]
        walker.cursor_height  # 97
        ```
    """

    def __init__(self, start_height: int, max_blocks: int) -> None:
        self.start_height = start_height
        self.max_blocks = max(max_blocks, 0)
        self.last_attempted: int | None = None
        self.attempted = 0

    def next_height(self) -> int | None:
        """Hand out the next height, or None once the walk is over."""
        if self.exhausted:
            return None
        height = self.start_height if self.last_attempted is None else self.last_attempted - 1
        self.last_attempted = height
        self.attempted += 1
        return height

    @property
    def exhausted(self) -> bool:
        candidate = self.start_height if self.last_attempted is None else self.last_attempted - 1
        return candidate < 1 or self.attempted >= self.max_blocks

    @property
    def cursor_height(self) -> int:
        """Height the next page starts from, never negative."""
        if self.last_attempted is None:
            return max(self.start_height, 0)
        return max(self.last_attempted - 1, 0)

    def __iter__(self) -> Iterator[int]:
        while (height := self.next_height()) is not None:
            yield height


class HeadHeight(BaseModel):
    """Head height lookup, stubbed to 0 when the node could not answer."""

    height: int
    degraded_reason: str | None = None


class WalkPlan(BaseModel):
    """Heights to fetch for one page and the resume point after them."""

    heights: list[int]
    next_cursor_height: int
    head_height: int | None = None
    degraded_reason: str | None = None

    @property
    def degraded(self) -> bool:
        return self.degraded_reason is not None


async def resolve_head(gateway: ChainReader) -> HeadHeight:
    """Look up the current head height.

    Each caller resolves the head on its own; the value is never cached or
    shared, so two resources answering "now" may see different heads.
    """
    try:
        return HeadHeight(height=await gateway.get_block_number())
    except RpcUnavailable as e:
        logger.warning("Head height unavailable, using stub 0: %s", e)
        return HeadHeight(height=0, degraded_reason=f"head height unavailable: {e}")


async def walk(
    gateway: ChainReader,
    start: int | Literal["latest"],
    max_blocks: int,
    max_items: int | None = None,
) -> WalkPlan:
    """Plan the heights of a block page.

    Args:
        gateway: Node reader, used only to resolve "latest"
        start: First height to visit, or "latest"
        max_blocks: Block budget
        max_items: Item budget; for block listings every block is one item

    Returns:
        WalkPlan with heights in strictly descending order
    """
    head_height: int | None = None
    degraded_reason: str | None = None
    if start == LATEST:
        head = await resolve_head(gateway)
        head_height, degraded_reason = head.height, head.degraded_reason
        start_height = head.height
    else:
        start_height = start

    budget = max_blocks if max_items is None else min(max_blocks, max_items)
    walker = BlockRangeWalker(start_height, budget)
    heights = list(walker)
    return WalkPlan(
        heights=heights,
        next_cursor_height=walker.cursor_height,
        head_height=head_height,
        degraded_reason=degraded_reason,
    )


__all__ = [
    "LATEST",
    "BlockRangeWalker",
    "HeadHeight",
    "WalkPlan",
    "resolve_head",
    "walk",
]
