"""Explorer-shaped Pydantic models returned to callers.

Records are frozen: once a response is assembled it belongs to the caller.
Chain quantities are decimal strings so values beyond 2**53 survive any JSON
consumer.
"""

# Pydantic needs this at runtime to validate the datetime fields
from datetime import datetime
from typing import Annotated, Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field


ItemT = TypeVar("ItemT")
PayloadT = TypeVar("PayloadT")


class AddressParam(BaseModel):
    """Minimal address entity; no name or tag resolution is attempted."""

    hash: str
    name: str | None = None
    implementation_name: str | None = None
    is_contract: bool = False
    is_verified: bool | None = None
    ens_domain_name: str | None = None
    private_tags: list[str] = Field(default_factory=list)
    public_tags: list[str] = Field(default_factory=list)
    watchlist_names: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


def unknown_address(address_hash: str, *, is_contract: bool = False) -> AddressParam:
    """Wrap a bare address hash in the placeholder address entity."""
    return AddressParam(hash=address_hash, is_contract=is_contract)


class Fee(BaseModel):
    """Transaction fee."""

    type: Literal["actual", "maximum"] = "actual"
    value: str | None = None

    model_config = ConfigDict(frozen=True)


class Block(BaseModel):
    """Explorer block record."""

    height: int = Field(..., ge=0)
    hash: str
    parent_hash: str
    timestamp: datetime
    miner: AddressParam
    tx_count: int
    size: int
    nonce: str | None = None
    difficulty: str | None = None
    total_difficulty: str | None = None
    gas_used: str
    gas_limit: str
    gas_used_percentage: float | None = None
    base_fee_per_gas: str = "0"
    extra_data: str
    state_root: str
    uncles_hashes: list[str] = Field(default_factory=list)
    withdrawals_count: int | None = None
    type: str = "block"
    # Only an indexing backend can compute these
    burnt_fees: str | None = None
    priority_fee: str | None = None
    tx_fees: str | None = None
    gas_target_percentage: float | None = None
    burnt_fees_percentage: float | None = None

    model_config = ConfigDict(frozen=True)


class Transaction(BaseModel):
    """Explorer transaction record.

    ``status``, ``gas_used``, ``fee.value`` and ``created_contract`` stay null
    until the receipt enricher has run.
    """

    hash: str
    from_: AddressParam = Field(..., alias="from")
    to: AddressParam | None = None
    value: str
    gas_price: str | None = None
    max_fee_per_gas: str | None = None
    max_priority_fee_per_gas: str | None = None
    base_fee_per_gas: str | None = None
    nonce: int
    position: int | None = None
    type: int | None = None
    raw_input: str
    gas_limit: str
    gas_used: str | None = None
    status: Literal["ok", "error"] | None = None
    result: str = "pending"
    fee: Fee = Field(default_factory=Fee)
    created_contract: AddressParam | None = None
    block: int | None = None
    timestamp: datetime | None = None
    confirmations: int = 0
    confirmation_duration: list[int] | None = None
    revert_reason: str | None = None
    token_transfers: list[Any] | None = None
    method: str | None = None
    decoded_input: dict[str, Any] | None = None
    tx_types: list[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def touches(self, address: str) -> bool:
        """Whether from, to or the created contract equals ``address`` (any case)."""
        needle = address.lower()
        candidates = (self.from_, self.to, self.created_contract)
        return any(entity is not None and entity.hash.lower() == needle for entity in candidates)


class PageCursor(BaseModel):
    """Resume point of a paginated listing (``next_page_params``).

    Resource-specific filter fields are carried through as extras.
    """

    block_number: int = Field(..., ge=0)
    items_count: int = Field(..., gt=0)
    index: int | None = Field(default=None, ge=0)

    model_config = ConfigDict(extra="allow", frozen=True)


class Page(BaseModel, Generic[ItemT]):
    """One page of a listing, newest first; ``next_page_params`` None ends it."""

    items: list[ItemT]
    next_page_params: PageCursor | None = None


class AddressDetails(BaseModel):
    """Address summary built from balance, nonce and code lookups."""

    hash: str
    coin_balance: str | None
    transactions_count: int | None
    is_contract: bool
    creation_tx_hash: str | None = None
    has_logs: bool | None = None
    has_tokens: bool | None = None


class HomepageStats(BaseModel):
    """Network summary for the homepage."""

    total_blocks: int
    average_block_time: float | None = Field(
        default=None, description="Milliseconds between recent blocks"
    )
    network_utilization_percentage: float | None = None
    latest_block: Block | None = None
    gas_used_today: str | None = None
    total_transactions: str | None = None
    total_addresses: str | None = None


class AddressSearchResult(BaseModel):
    """Quick-search match on an address (unverified)."""

    type: Literal["address"] = "address"
    address: str
    url: str
    name: str | None = None
    is_smart_contract: bool | None = None


class TransactionSearchResult(BaseModel):
    """Quick-search match on a transaction hash."""

    type: Literal["transaction"] = "transaction"
    tx_hash: str
    url: str
    timestamp: datetime | None = None


class BlockSearchResult(BaseModel):
    """Quick-search match on a block hash or number."""

    type: Literal["block"] = "block"
    block_hash: str
    block_number: int
    url: str
    timestamp: datetime | None = None
    block_type: str = "block"


SearchResult = Annotated[
    AddressSearchResult | TransactionSearchResult | BlockSearchResult,
    Field(discriminator="type"),
]


class LiveResult(BaseModel, Generic[PayloadT]):
    """Response assembled from live RPC data."""

    state: Literal["live"] = "live"
    payload: PayloadT


class DegradedResult(BaseModel, Generic[PayloadT]):
    """Response shaped like a normal one but built after an RPC failure."""

    state: Literal["degraded"] = "degraded"
    payload: PayloadT
    reason: str


type QueryResult = LiveResult[Any] | DegradedResult[Any]


def build_result(payload: Any, degraded_reasons: list[str] | None = None) -> QueryResult:
    """Tag a payload as live or degraded depending on collected failure reasons."""
    if degraded_reasons:
        return DegradedResult(payload=payload, reason="; ".join(degraded_reasons))
    return LiveResult(payload=payload)


__all__ = [
    "AddressDetails",
    "AddressParam",
    "AddressSearchResult",
    "Block",
    "BlockSearchResult",
    "DegradedResult",
    "Fee",
    "HomepageStats",
    "LiveResult",
    "Page",
    "PageCursor",
    "QueryResult",
    "SearchResult",
    "Transaction",
    "TransactionSearchResult",
    "build_result",
    "unknown_address",
]
