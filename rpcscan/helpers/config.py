"""Configuration management and environment variable utilities."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from rpcscan.helpers.constants import (
    BLOCK_CONCURRENCY,
    DEFAULT_TIMEOUT,
    RECEIPT_CONCURRENCY,
)


# Load environment variables from .env file
load_dotenv()


def get_required_env(key: str) -> str:
    """Get a required environment variable.

    Args:
        key: Environment variable name

    Returns:
        Environment variable value

    Raises:
        ValueError: If the environment variable is not set

    Example:
        ```python
        from rpcscan.helpers.config import get_required_env

        rpc_url = get_required_env("ETH_RPC_URL")
        ```
    """
    value = os.getenv(key)
    if not value:
        msg = f"{key} environment variable is not set"
        raise ValueError(msg)
    return value


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    return os.getenv(key, default)


def get_eth_rpc_url(rpc_url: str | None = None) -> str:
    """Get Ethereum RPC URL from parameter or environment.

    Args:
        rpc_url: Optional RPC URL to use directly

    Returns:
        Ethereum RPC URL

    Raises:
        ValueError: If RPC URL is not provided and ETH_RPC_URL env var is not set
    """
    if rpc_url:
        return rpc_url

    env_rpc_url = os.getenv("ETH_RPC_URL")
    if not env_rpc_url:
        msg = "ETH_RPC_URL must be provided or set in environment variables"
        raise ValueError(msg)

    return env_rpc_url


def _env_bool(key: str, *, default: bool = False) -> bool:
    value = get_optional_env(key)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class ExplorerSettings(BaseModel):
    """Runtime settings of the explorer data layer."""

    rpc_url: str = Field(..., description="Ethereum JSON-RPC endpoint URL")
    backend_api_url: str | None = Field(
        default=None, description="Base URL of the indexing backend, if any"
    )
    rpc_timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    receipt_concurrency: int = Field(default=RECEIPT_CONCURRENCY, ge=1)
    block_concurrency: int = Field(default=BLOCK_CONCURRENCY, ge=1)
    collect_time_budget: float | None = Field(
        default=None, gt=0, description="Seconds a transaction walk may take"
    )
    log_level: str = Field(default="INFO")
    log_color: bool = Field(default=False)


def load_settings(rpc_url: str | None = None) -> ExplorerSettings:
    """Build explorer settings from the environment.

    Args:
        rpc_url: Optional RPC URL overriding ETH_RPC_URL

    Returns:
        Validated settings

    Raises:
        ValueError: If no RPC URL is available or a numeric variable is invalid

    Example:
        ```python
        from rpcscan.helpers.config import load_settings

        settings = load_settings()
        print(settings.receipt_concurrency)
        ```
    """
    time_budget = get_optional_env("COLLECT_TIME_BUDGET")
    return ExplorerSettings(
        rpc_url=get_eth_rpc_url(rpc_url),
        backend_api_url=get_optional_env("BACKEND_API_URL") or None,
        rpc_timeout=float(get_optional_env("RPC_TIMEOUT", str(DEFAULT_TIMEOUT))),
        receipt_concurrency=int(
            get_optional_env("RECEIPT_CONCURRENCY", str(RECEIPT_CONCURRENCY))
        ),
        block_concurrency=int(
            get_optional_env("BLOCK_CONCURRENCY", str(BLOCK_CONCURRENCY))
        ),
        collect_time_budget=float(time_budget) if time_budget else None,
        log_level=(get_optional_env("LOG_LEVEL", "INFO") or "INFO").upper(),
        log_color=_env_bool("LOG_COLOR"),
    )


__all__ = [
    "ExplorerSettings",
    "get_eth_rpc_url",
    "get_optional_env",
    "get_required_env",
    "load_settings",
]
