"""Record mapper: raw RPC shapes to explorer-shaped records.

Pure functions, no I/O. Quantities become decimal strings; optional fields
missing from the node's answer become None instead of failing the record.
"""

from rpcscan.helpers.models import Block, Transaction, unknown_address
from rpcscan.helpers.parsers import (
    hex_to_decimal,
    parse_hex_int,
    parse_hex_optional,
    parse_hex_timestamp,
)
from rpcscan.helpers.rpc_models import RawBlock, RawTransaction


def confirmations_for(block_height: int | None, latest_height: int | None) -> int:
    """Confirmations of a transaction mined at ``block_height``.

    Zero when either height is unknown or the head is behind the block.
    """
    if block_height is None or not latest_height:
        return 0
    return max(latest_height - block_height + 1, 0)


def gas_used_percentage(gas_used: int, gas_limit: int) -> float | None:
    if gas_limit <= 0:
        return None
    return gas_used / gas_limit * 100


def map_block(raw_block: RawBlock) -> Block:
    """Map a raw block (with or without transaction bodies) to a Block."""
    gas_used = parse_hex_int(raw_block.gas_used)
    gas_limit = parse_hex_int(raw_block.gas_limit)
    return Block(
        height=parse_hex_int(raw_block.number),
        hash=raw_block.hash,
        parent_hash=raw_block.parent_hash,
        timestamp=parse_hex_timestamp(raw_block.timestamp),
        miner=unknown_address(raw_block.miner),
        tx_count=len(raw_block.transactions),
        size=parse_hex_int(raw_block.size),
        nonce=raw_block.nonce,
        difficulty=hex_to_decimal(raw_block.difficulty),
        total_difficulty=hex_to_decimal(raw_block.total_difficulty),
        gas_used=str(gas_used),
        gas_limit=str(gas_limit),
        gas_used_percentage=gas_used_percentage(gas_used, gas_limit),
        base_fee_per_gas=hex_to_decimal(raw_block.base_fee_per_gas) or "0",
        extra_data=raw_block.extra_data,
        state_root=raw_block.state_root,
        uncles_hashes=list(raw_block.uncles),
        withdrawals_count=(
            len(raw_block.withdrawals) if raw_block.withdrawals is not None else None
        ),
    )


def map_transaction(
    raw_tx: RawTransaction,
    raw_block: RawBlock | None,
    latest_height: int | None = None,
) -> Transaction:
    """Map a raw transaction to a Transaction with enrichment fields unset.

    Args:
        raw_tx: Transaction object from the node
        raw_block: Owning block, used for height, timestamp and base fee
        latest_height: Head height observed by the caller, for confirmations

    Returns:
        Transaction record with status, gas_used, fee and created_contract null
    """
    if raw_block is not None:
        block_height: int | None = parse_hex_int(raw_block.number)
        timestamp = parse_hex_timestamp(raw_block.timestamp)
        base_fee = hex_to_decimal(raw_block.base_fee_per_gas)
    else:
        block_height = parse_hex_optional(raw_tx.block_number)
        timestamp = None
        base_fee = None

    return Transaction(
        hash=raw_tx.hash,
        from_=unknown_address(raw_tx.from_),
        to=unknown_address(raw_tx.to) if raw_tx.to else None,
        value=hex_to_decimal(raw_tx.value) or "0",
        gas_price=hex_to_decimal(raw_tx.gas_price),
        max_fee_per_gas=hex_to_decimal(raw_tx.max_fee_per_gas),
        max_priority_fee_per_gas=hex_to_decimal(raw_tx.max_priority_fee_per_gas),
        base_fee_per_gas=base_fee,
        nonce=parse_hex_int(raw_tx.nonce),
        position=parse_hex_optional(raw_tx.transaction_index),
        type=parse_hex_optional(raw_tx.type),
        raw_input=raw_tx.input,
        gas_limit=hex_to_decimal(raw_tx.gas) or "0",
        block=block_height,
        timestamp=timestamp,
        confirmations=confirmations_for(block_height, latest_height),
    )


__all__ = [
    "confirmations_for",
    "gas_used_percentage",
    "map_block",
    "map_transaction",
]
