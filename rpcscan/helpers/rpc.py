"""Ethereum JSON-RPC client utilities."""

import itertools

from typing import Any

import httpx

from rpcscan.helpers.errors import RpcResponseError, RpcUnavailable
from rpcscan.helpers.rpc_models import JsonRpcRequest


class RPCClient:
    """Ethereum JSON-RPC client.

    The client is a thin transport: it never retries, and every failure is
    mapped onto the explorer's error taxonomy so callers can decide whether to
    degrade or propagate.
    """

    def __init__(self, rpc_url: str, timeout: float = 30.0) -> None:
        """Initialize RPC client.

        Args:
            rpc_url: Ethereum JSON-RPC endpoint URL
            timeout: Default timeout for requests in seconds

        Raises:
            ValueError: If rpc_url is empty or None
        """
        if not rpc_url:
            msg = "RPC URL cannot be empty"
            raise ValueError(msg)

        self.rpc_url = rpc_url
        self.timeout = timeout
        self._ids = itertools.count(1)

    def next_id(self) -> int:
        """Return a fresh request id."""
        return next(self._ids)

    async def send(
        self,
        client: httpx.AsyncClient,
        request: JsonRpcRequest,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Send a prepared JSON-RPC request.

        Args:
            client: HTTP client instance
            request: Request model
            timeout: Optional timeout override

        Returns:
            RPC result value (None when the node returns null)

        Raises:
            RpcUnavailable: If the node cannot be reached or answers with an HTTP error
            RpcResponseError: If the RPC response contains an error
        """
        try:
            response = await client.post(
                self.rpc_url,
                json=request.model_dump(),
                timeout=timeout or self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except httpx.TimeoutException as e:
            raise RpcUnavailable(request.method, f"timeout: {e}") from e
        except httpx.HTTPError as e:
            raise RpcUnavailable(request.method, str(e)) from e
        except ValueError as e:
            raise RpcUnavailable(request.method, f"invalid JSON response: {e}") from e

        if not isinstance(result, dict):
            raise RpcUnavailable(request.method, "unexpected response shape")

        if "error" in result:
            raise RpcResponseError(request.method, result["error"])

        return result.get("result")

    async def call(
        self,
        client: httpx.AsyncClient,
        method: str,
        params: list[Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Make a single JSON-RPC call.

        Args:
            client: HTTP client instance
            method: RPC method name (e.g., "eth_blockNumber")
            params: Method parameters list
            timeout: Optional timeout override

        Returns:
            RPC result value

        Raises:
            RpcUnavailable: If the node cannot be reached
            RpcResponseError: If the RPC response contains an error

        Example:
            ```python
            rpc = RPCClient(rpc_url)
            async with httpx.AsyncClient() as client:
                head = await rpc.call(client, "eth_blockNumber")
            ```
        """
        request = JsonRpcRequest(method=method, params=params or [], id=self.next_id())
        return await self.send(client, request, timeout=timeout)


__all__ = [
    "RPCClient",
]
