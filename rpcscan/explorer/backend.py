"""Delegation to the indexing backend for resources not emulated over RPC."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import httpx

from rpcscan.helpers.errors import NotFound, UpstreamError
from rpcscan.helpers.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Mapping


logger = get_logger(__name__)

API_PREFIX = "/api/v2"

RESOURCE_PATHS: dict[str, str] = {
    "address_token_balances": "/addresses/{hash}/token-balances",
    "address_tokens": "/addresses/{hash}/tokens",
    "address_logs": "/addresses/{hash}/logs",
    "tx_logs": "/transactions/{hash}/logs",
    "tx_token_transfers": "/transactions/{hash}/token-transfers",
    "tx_internal_txs": "/transactions/{hash}/internal-transactions",
    "token": "/tokens/{hash}",
    "tokens": "/tokens",
    "stats_charts_txs": "/stats/charts/transactions",
    "config_backend_version": "/config/backend-version",
}
"""Known backend paths; other resources map to ``/api/v2/<resource_name>``."""


class BackendFetcher(Protocol):
    """External collaborator answering every resource the explorer does not emulate."""

    async def fetch(
        self,
        resource_name: str,
        path_params: Mapping[str, str],
        query_params: Mapping[str, Any],
    ) -> Any: ...


def build_path(resource_name: str, path_params: Mapping[str, str]) -> str:
    """Build the backend path of a resource.

    Raises:
        NotFound: If a path parameter the template needs is missing
    """
    template = RESOURCE_PATHS.get(resource_name, f"/{resource_name}")
    try:
        return API_PREFIX + template.format(**path_params)
    except KeyError as e:
        msg = f"{resource_name}: missing path parameter {e.args[0]!r}"
        raise NotFound(msg) from e


class BackendClient:
    """BackendFetcher issuing plain GET requests with httpx."""

    def __init__(self, base_url: str, http_client: httpx.AsyncClient) -> None:
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client

    async def fetch(
        self,
        resource_name: str,
        path_params: Mapping[str, str],
        query_params: Mapping[str, Any],
    ) -> Any:
        """Fetch a resource from the backend.

        Raises:
            NotFound: If the backend answers 404 or a path parameter is missing
            UpstreamError: On any other HTTP failure
        """
        url = self.base_url + build_path(resource_name, path_params)
        params = {k: v for k, v in query_params.items() if v is not None}
        try:
            response = await self.http_client.get(url, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                msg = f"{resource_name} not found"
                raise NotFound(msg) from e
            logger.warning(
                "Backend error for %s: %s", resource_name, e.response.status_code
            )
            msg = f"{resource_name}: backend answered {e.response.status_code}"
            raise UpstreamError(msg) from e
        except httpx.HTTPError as e:
            logger.warning("Backend unreachable for %s: %s", resource_name, e)
            msg = f"{resource_name}: backend unreachable"
            raise UpstreamError(msg) from e


__all__ = [
    "RESOURCE_PATHS",
    "BackendClient",
    "BackendFetcher",
    "build_path",
]
