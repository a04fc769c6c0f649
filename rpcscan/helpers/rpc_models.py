"""Pydantic models for JSON-RPC requests and raw node responses.

Response models keep quantities as the hex strings the node returns; the
record mapper is the only place that converts them.
"""

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StringConstraints


# Hex quantity as the mapper parses it with int(x, 16)
HexQuantity = Annotated[str, StringConstraints(pattern=r"^0x[0-9a-fA-F]+$")]


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request model."""

    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    method: str = Field(..., description="Method name to call")
    params: list[Any] = Field(
        default_factory=list, description="Method parameters"
    )
    id: int | str = Field(..., description="Request ID")


class EthBlockNumberRequest(JsonRpcRequest):
    """JSON-RPC request for eth_blockNumber."""

    method: str = Field(default="eth_blockNumber", frozen=True)
    params: list[Any] = Field(default_factory=list, frozen=True)


class EthGetBlockByNumberRequest(JsonRpcRequest):
    """JSON-RPC request for eth_getBlockByNumber."""

    method: str = Field(default="eth_getBlockByNumber", frozen=True)


class EthGetBlockByHashRequest(JsonRpcRequest):
    """JSON-RPC request for eth_getBlockByHash."""

    method: str = Field(default="eth_getBlockByHash", frozen=True)


class EthGetTransactionReceiptRequest(JsonRpcRequest):
    """JSON-RPC request for eth_getTransactionReceipt."""

    method: str = Field(default="eth_getTransactionReceipt", frozen=True)


class RawTransaction(BaseModel):
    """Transaction object as returned inside a full block or by hash."""

    hash: str
    from_: str = Field(..., alias="from")
    to: str | None = None
    value: HexQuantity = "0x0"
    gas: HexQuantity = Field(..., description="Gas limit as hex string")
    gas_price: HexQuantity | None = Field(default=None, alias="gasPrice")
    max_fee_per_gas: HexQuantity | None = Field(default=None, alias="maxFeePerGas")
    max_priority_fee_per_gas: HexQuantity | None = Field(
        default=None, alias="maxPriorityFeePerGas"
    )
    nonce: HexQuantity
    input: str = "0x"
    transaction_index: HexQuantity | None = Field(
        default=None, alias="transactionIndex"
    )
    block_number: HexQuantity | None = Field(default=None, alias="blockNumber")
    block_hash: str | None = Field(default=None, alias="blockHash")
    type: HexQuantity | None = Field(
        default=None, description="Transaction type as hex"
    )

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class RawReceipt(BaseModel):
    """Transaction receipt as returned by eth_getTransactionReceipt."""

    transaction_hash: str = Field(..., alias="transactionHash")
    block_number: HexQuantity | None = Field(default=None, alias="blockNumber")
    block_hash: str | None = Field(default=None, alias="blockHash")
    status: HexQuantity | None = Field(
        default=None, description="0x1 success, 0x0 failure, absent pre-Byzantium"
    )
    gas_used: HexQuantity | None = Field(default=None, alias="gasUsed")
    effective_gas_price: HexQuantity | None = Field(
        default=None, alias="effectiveGasPrice"
    )
    contract_address: str | None = Field(default=None, alias="contractAddress")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class RawBlock(BaseModel):
    """Block as returned by eth_getBlockByNumber / eth_getBlockByHash.

    ``transactions`` holds either hash strings or transaction objects depending
    on the include-transactions flag; entries are validated one by one by the
    collector so a single malformed entry cannot fail the whole block.
    """

    number: HexQuantity
    hash: str
    parent_hash: str = Field(..., alias="parentHash")
    nonce: str | None = None
    miner: str
    timestamp: HexQuantity
    size: HexQuantity = "0x0"
    difficulty: HexQuantity | None = None
    total_difficulty: HexQuantity | None = Field(default=None, alias="totalDifficulty")
    gas_used: HexQuantity = Field(..., alias="gasUsed")
    gas_limit: HexQuantity = Field(..., alias="gasLimit")
    base_fee_per_gas: HexQuantity | None = Field(default=None, alias="baseFeePerGas")
    extra_data: str = Field(default="0x", alias="extraData")
    state_root: str = Field(..., alias="stateRoot")
    uncles: list[str] = Field(default_factory=list)
    withdrawals: list[Any] | None = None
    transactions: list[Any] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow", populate_by_name=True)


__all__ = [
    "HexQuantity",
    "EthBlockNumberRequest",
    "EthGetBlockByHashRequest",
    "EthGetBlockByNumberRequest",
    "EthGetTransactionReceiptRequest",
    "JsonRpcRequest",
    "RawBlock",
    "RawReceipt",
    "RawTransaction",
]
