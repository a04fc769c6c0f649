"""Receipt enricher: merges receipt-derived fields into transaction records."""

from __future__ import annotations

import asyncio

from typing import TYPE_CHECKING

from pydantic import BaseModel

from rpcscan.helpers.constants import RECEIPT_CONCURRENCY, RECEIPT_STATUS_SUCCESS
from rpcscan.helpers.errors import RpcError
from rpcscan.helpers.logging import get_logger
from rpcscan.helpers.models import Fee, Transaction, unknown_address
from rpcscan.helpers.parsers import hex_to_decimal


if TYPE_CHECKING:
    from collections.abc import Sequence

    from rpcscan.explorer.gateway import ChainReader
    from rpcscan.helpers.rpc_models import RawReceipt


logger = get_logger(__name__)


class EnrichResult(BaseModel):
    """Enriched transactions; degraded when receipts could not be applied."""

    transactions: list[Transaction]
    degraded_reason: str | None = None


def apply_receipt(tx: Transaction, receipt: RawReceipt | None) -> Transaction:
    """Return a copy of ``tx`` with status, gas, fee and created contract set.

    A missing receipt means the transaction is pending; the record is returned
    unchanged with status null.
    """
    if receipt is None:
        return tx

    if receipt.status is None:
        status = None
    elif receipt.status == RECEIPT_STATUS_SUCCESS:
        status = "ok"
    else:
        status = "error"

    gas_price = hex_to_decimal(receipt.effective_gas_price) or tx.gas_price
    gas_used = hex_to_decimal(receipt.gas_used)
    fee_value = (
        str(int(gas_used) * int(gas_price))
        if gas_used is not None and gas_price is not None
        else None
    )
    created_contract = (
        unknown_address(receipt.contract_address, is_contract=True)
        if receipt.contract_address
        else None
    )

    return tx.model_copy(
        update={
            "status": status,
            "result": {"ok": "success", "error": "error"}.get(status or "", "pending"),
            "gas_price": gas_price,
            "gas_used": gas_used,
            "fee": Fee(type="actual", value=fee_value),
            "created_contract": created_contract,
        }
    )


def receipts_match(
    transactions: Sequence[Transaction], receipts: Sequence[RawReceipt | None]
) -> bool:
    """Whether receipts line up one-to-one with the transactions by position."""
    if len(transactions) != len(receipts):
        return False
    return all(
        receipt is None or receipt.transaction_hash.lower() == tx.hash.lower()
        for tx, receipt in zip(transactions, receipts, strict=True)
    )


def merge_receipts(
    transactions: Sequence[Transaction], receipts: Sequence[RawReceipt | None]
) -> list[Transaction]:
    """Merge receipts into transactions by positional correspondence.

    When the sequences do not line up, no receipt is applied at all: a
    partially merged batch could attribute a receipt to the wrong transaction.
    Inputs are never modified, so the merge is a pure function of its inputs.
    """
    if not receipts_match(transactions, receipts):
        logger.warning(
            "Receipt shape mismatch (%d transactions, %d receipts), skipping enrichment",
            len(transactions),
            len(receipts),
        )
        return list(transactions)

    return [
        apply_receipt(tx, receipt)
        for tx, receipt in zip(transactions, receipts, strict=True)
    ]


class ReceiptEnricher:
    """Fetches receipts for a batch of transactions and merges them in.

    Lookups run concurrently, at most ``concurrency`` at a time.
    """

    def __init__(self, gateway: ChainReader, concurrency: int = RECEIPT_CONCURRENCY) -> None:
        self.gateway = gateway
        self.concurrency = concurrency

    async def fetch_receipts(
        self, transactions: Sequence[Transaction]
    ) -> list[RawReceipt | None]:
        """Look up every receipt; failed lookups are dropped from the result.

        Args:
            transactions: Transactions to look up, in page order

        Returns:
            Receipts in page order (None for pending transactions), shorter
            than the input when a lookup failed
        """
        semaphore = asyncio.Semaphore(self.concurrency)

        async def lookup(tx_hash: str) -> RawReceipt | None:
            async with semaphore:
                return await self.gateway.get_transaction_receipt(tx_hash)

        results = await asyncio.gather(
            *(lookup(tx.hash) for tx in transactions), return_exceptions=True
        )

        receipts: list[RawReceipt | None] = []
        for tx, result in zip(transactions, results, strict=True):
            if isinstance(result, RpcError):
                logger.warning("Receipt lookup failed for %s: %s", tx.hash, result)
                continue
            if isinstance(result, BaseException):
                raise result
            receipts.append(result)
        return receipts

    async def enrich(self, transactions: Sequence[Transaction]) -> EnrichResult:
        """Fetch receipts and merge them into the transactions."""
        if not transactions:
            return EnrichResult(transactions=[])

        receipts = await self.fetch_receipts(transactions)
        enriched = merge_receipts(transactions, receipts)

        degraded_reason = None
        if len(receipts) != len(transactions):
            degraded_reason = (
                f"receipts unavailable for {len(transactions) - len(receipts)} "
                f"of {len(transactions)} transactions"
            )
        elif not receipts_match(transactions, receipts):
            degraded_reason = "receipts did not match transactions"
        return EnrichResult(transactions=enriched, degraded_reason=degraded_reason)


__all__ = [
    "EnrichResult",
    "ReceiptEnricher",
    "apply_receipt",
    "merge_receipts",
    "receipts_match",
]
