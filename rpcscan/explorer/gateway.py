"""RPC gateway: the point calls the explorer makes against a single node."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Self, TypeVar

from pydantic import BaseModel, ValidationError

from rpcscan.helpers.errors import RpcResponseError
from rpcscan.helpers.http import create_http_client
from rpcscan.helpers.logging import get_logger
from rpcscan.helpers.parsers import parse_hex_int, to_block_tag
from rpcscan.helpers.rpc import RPCClient
from rpcscan.helpers.rpc_models import (
    EthBlockNumberRequest,
    EthGetBlockByHashRequest,
    EthGetBlockByNumberRequest,
    EthGetTransactionReceiptRequest,
    RawBlock,
    RawReceipt,
    RawTransaction,
)


if TYPE_CHECKING:
    from types import TracebackType

    import httpx

    from rpcscan.helpers.config import ExplorerSettings


logger = get_logger(__name__)


class ChainReader(Protocol):
    """Read-only node contract consumed by the explorer."""

    async def get_block_number(self) -> int: ...

    async def get_block(
        self,
        *,
        block_number: int | None = None,
        block_hash: str | None = None,
        include_transactions: bool = False,
    ) -> RawBlock | None: ...

    async def get_transaction(self, tx_hash: str) -> RawTransaction | None: ...

    async def get_transaction_receipt(self, tx_hash: str) -> RawReceipt | None: ...

    async def get_balance(self, address: str, block: int | str = "latest") -> int: ...

    async def get_transaction_count(
        self, address: str, block: int | str = "latest"
    ) -> int: ...

    async def get_code(self, address: str, block: int | str = "latest") -> str: ...


ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_result(model: type[ModelT], method: str, result: Any) -> ModelT | None:
    """Validate a JSON-RPC result, mapping schema failures to RpcResponseError."""
    if result is None:
        return None
    try:
        return model.model_validate(result)
    except ValidationError as e:
        raise RpcResponseError(method, f"malformed result: {e}") from e


class RPCGateway:
    """ChainReader backed by an RPCClient and a shared httpx client.

    Every method is a single round trip. Nothing is retried or cached here;
    transport failures surface as RpcUnavailable for the caller to degrade.
    """

    def __init__(self, rpc_client: RPCClient, http_client: httpx.AsyncClient) -> None:
        self.rpc = rpc_client
        self.http_client = http_client

    @classmethod
    def from_settings(cls, settings: ExplorerSettings) -> Self:
        """Build a gateway with its own HTTP client from settings."""
        rpc_client = RPCClient(settings.rpc_url, timeout=settings.rpc_timeout)
        return cls(rpc_client, create_http_client(timeout=settings.rpc_timeout))

    async def aclose(self) -> None:
        await self.http_client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def get_block_number(self) -> int:
        request = EthBlockNumberRequest(id=self.rpc.next_id())
        result = await self.rpc.send(self.http_client, request)
        return parse_hex_int(result)

    async def get_block(
        self,
        *,
        block_number: int | None = None,
        block_hash: str | None = None,
        include_transactions: bool = False,
    ) -> RawBlock | None:
        """Fetch a block by number or hash.

        Args:
            block_number: Block height
            block_hash: Block hash, used when no number is given
            include_transactions: Return full transaction objects instead of hashes

        Returns:
            The raw block, or None when the node does not know it

        Raises:
            ValueError: If neither a number nor a hash is given
        """
        if block_number is not None:
            request = EthGetBlockByNumberRequest(
                params=[to_block_tag(block_number), include_transactions],
                id=self.rpc.next_id(),
            )
        elif block_hash is not None:
            request = EthGetBlockByHashRequest(
                params=[block_hash, include_transactions], id=self.rpc.next_id()
            )
        else:
            msg = "block_number or block_hash is required"
            raise ValueError(msg)

        logger.debug("%s %s", request.method, request.params[0])
        result = await self.rpc.send(self.http_client, request)
        return validate_result(RawBlock, request.method, result)

    async def get_transaction(self, tx_hash: str) -> RawTransaction | None:
        method = "eth_getTransactionByHash"
        result = await self.rpc.call(self.http_client, method, [tx_hash])
        return validate_result(RawTransaction, method, result)

    async def get_transaction_receipt(self, tx_hash: str) -> RawReceipt | None:
        request = EthGetTransactionReceiptRequest(params=[tx_hash], id=self.rpc.next_id())
        result = await self.rpc.send(self.http_client, request)
        return validate_result(RawReceipt, request.method, result)

    async def get_balance(self, address: str, block: int | str = "latest") -> int:
        """Get ETH balance in wei for an address at a block."""
        result = await self.rpc.call(
            self.http_client, "eth_getBalance", [address, to_block_tag(block)]
        )
        return parse_hex_int(result) if result else 0

    async def get_transaction_count(
        self, address: str, block: int | str = "latest"
    ) -> int:
        result = await self.rpc.call(
            self.http_client, "eth_getTransactionCount", [address, to_block_tag(block)]
        )
        return parse_hex_int(result) if result else 0

    async def get_code(self, address: str, block: int | str = "latest") -> str:
        result = await self.rpc.call(
            self.http_client, "eth_getCode", [address, to_block_tag(block)]
        )
        return result or "0x"


__all__ = [
    "ChainReader",
    "RPCGateway",
    "validate_result",
]
