"""In-memory chain implementing the gateway contract, shared by the explorer tests."""

from collections import Counter

from typing import Any

from rpcscan.explorer.gateway import validate_result
from rpcscan.helpers.errors import RpcError, RpcUnavailable
from rpcscan.helpers.rpc_models import RawBlock, RawReceipt, RawTransaction


BLOCK_TIME = 12
GENESIS_TIMESTAMP = 1_700_000_000


def block_hash(height: int) -> str:
    return "0x" + f"{height:064x}".replace("0", "b", 1)


def tx_hash(height: int, index: int) -> str:
    return "0x" + f"{height:032x}{index:032x}"


class FakeGateway:
    """In-memory ChainReader.

    Blocks are stored as raw JSON-RPC dicts. Every call is counted in
    ``calls`` and can be made to fail with ``fail(method, key)``.
    """

    def __init__(self, head: int = 100) -> None:
        self.head = head
        self.blocks: dict[int, dict[str, Any]] = {}
        self.receipts: dict[str, dict[str, Any] | None] = {}
        self.balances: dict[str, int] = {}
        self.nonces: dict[str, int] = {}
        self.codes: dict[str, str] = {}
        self.calls: Counter[str] = Counter()
        self.failures: dict[tuple[str, Any], RpcError] = {}

    def fail(self, method: str, key: Any = None, error: RpcError | None = None) -> None:
        """Make ``method`` raise, for one key or for every call when key is None."""
        self.failures[(method, key)] = error or RpcUnavailable(method, "connection refused")

    def _enter(self, method: str, key: Any = None) -> None:
        self.calls[method] += 1
        error = self.failures.get((method, key)) or self.failures.get((method, None))
        if error is not None:
            raise error

    def add_block(
        self,
        height: int,
        txs: list[dict[str, Any]] | None = None,
        *,
        receipts: bool = True,
        **fields: Any,
    ) -> dict[str, Any]:
        """Add a block; ``txs`` entries are overrides on top of a default transaction."""
        transactions = []
        for i, overrides in enumerate(txs or []):
            if isinstance(overrides, str):
                transactions.append(overrides)
                continue
            tx = {
                "hash": tx_hash(height, i),
                "from": "0x" + "f0" * 20,
                "to": "0x" + "e0" * 20,
                "value": "0xde0b6b3a7640000",
                "gas": "0x5208",
                "gasPrice": "0x3b9aca00",
                "nonce": hex(i),
                "input": "0x",
                "transactionIndex": hex(i),
                "blockNumber": hex(height),
                "blockHash": block_hash(height),
                "type": "0x2",
                **overrides,
            }
            transactions.append(tx)
            if receipts and isinstance(tx.get("hash"), str):
                self.receipts[tx["hash"]] = {
                    "transactionHash": tx["hash"],
                    "blockNumber": hex(height),
                    "blockHash": block_hash(height),
                    "status": "0x1",
                    "gasUsed": "0x5208",
                    "effectiveGasPrice": "0x3b9aca00",
                    "contractAddress": None,
                }

        block = {
            "number": hex(height),
            "hash": block_hash(height),
            "parentHash": block_hash(height - 1) if height else "0x" + "0" * 64,
            "nonce": "0x0000000000000000",
            "miner": "0x" + "c0" * 20,
            "timestamp": hex(GENESIS_TIMESTAMP + height * BLOCK_TIME),
            "size": "0x220",
            "difficulty": "0x0",
            "totalDifficulty": "0xc70d815d562d3cfa955",
            "gasUsed": "0xe4e1c0",
            "gasLimit": "0x1c9c380",
            "baseFeePerGas": "0x7",
            "extraData": "0x",
            "stateRoot": "0x" + "d0" * 32,
            "uncles": [],
            "withdrawals": [],
            "transactions": transactions,
            **fields,
        }
        self.blocks[height] = block
        return block

    def fill(self, low: int, high: int) -> None:
        """Add empty blocks for every missing height in [low, high]."""
        for height in range(low, high + 1):
            if height not in self.blocks:
                self.add_block(height)

    async def get_block_number(self) -> int:
        self._enter("get_block_number")
        return self.head

    async def get_block(
        self,
        *,
        block_number: int | None = None,
        block_hash: str | None = None,
        include_transactions: bool = False,
    ) -> RawBlock | None:
        key = block_number if block_number is not None else block_hash
        self._enter("get_block", key)
        if block_number is not None:
            block = self.blocks.get(block_number)
        else:
            block = next((b for b in self.blocks.values() if b["hash"] == block_hash), None)
        if block is None:
            return None
        if not include_transactions:
            block = {
                **block,
                "transactions": [
                    tx if isinstance(tx, str) else tx.get("hash") for tx in block["transactions"]
                ],
            }
        return validate_result(RawBlock, "eth_getBlockByNumber", block)

    async def get_transaction(self, tx_hash: str) -> RawTransaction | None:
        self._enter("get_transaction", tx_hash)
        for block in self.blocks.values():
            for tx in block["transactions"]:
                if isinstance(tx, dict) and tx.get("hash") == tx_hash:
                    return validate_result(RawTransaction, "eth_getTransactionByHash", tx)
        return None

    async def get_transaction_receipt(self, tx_hash: str) -> RawReceipt | None:
        self._enter("get_transaction_receipt", tx_hash)
        receipt = self.receipts.get(tx_hash)
        return validate_result(RawReceipt, "eth_getTransactionReceipt", receipt)

    async def get_balance(self, address: str, block: int | str = "latest") -> int:
        self._enter("get_balance", address)
        return self.balances.get(address, 0)

    async def get_transaction_count(self, address: str, block: int | str = "latest") -> int:
        self._enter("get_transaction_count", address)
        return self.nonces.get(address, 0)

    async def get_code(self, address: str, block: int | str = "latest") -> str:
        self._enter("get_code", address)
        return self.codes.get(address, "0x")


