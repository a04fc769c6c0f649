"""Exception hierarchy shared by the RPC transport and the explorer."""


class RpcError(Exception):
    """Base class for failures talking to the JSON-RPC node."""

    def __init__(self, method: str, message: str) -> None:
        self.method = method
        super().__init__(f"{method}: {message}")


class RpcUnavailable(RpcError):
    """Node unreachable, timed out or answered with an HTTP error."""


class RpcResponseError(RpcError, ValueError):
    """Node answered with a JSON-RPC error object or a malformed result."""

    def __init__(self, method: str, error: object) -> None:
        self.error = error
        super().__init__(method, f"RPC error: {error}")


class ExplorerError(Exception):
    """Base class for errors surfaced by the resource dispatcher."""


class NotFound(ExplorerError):
    """Requested entity or required path parameter is missing."""


class UpstreamError(ExplorerError):
    """The node or the delegated backend failed to answer."""


__all__ = [
    "ExplorerError",
    "NotFound",
    "RpcError",
    "RpcResponseError",
    "RpcUnavailable",
    "UpstreamError",
]
