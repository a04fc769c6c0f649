"""Tests for configuration and environment variable helpers."""

from __future__ import annotations

import os

import pytest

from typing import TYPE_CHECKING

from pydantic import ValidationError

from rpcscan.helpers.config import (
    ExplorerSettings,
    get_eth_rpc_url,
    get_optional_env,
    get_required_env,
    load_settings,
)


if TYPE_CHECKING:
    from collections.abc import Generator


ENV_KEYS = (
    "TEST_KEY",
    "ETH_RPC_URL",
    "BACKEND_API_URL",
    "RPC_TIMEOUT",
    "RECEIPT_CONCURRENCY",
    "BLOCK_CONCURRENCY",
    "COLLECT_TIME_BUDGET",
    "LOG_LEVEL",
    "LOG_COLOR",
)


@pytest.fixture
def clean_env() -> Generator[None]:
    """Clean environment variables before and after test."""
    # Save current env
    saved_env = {key: os.environ.get(key) for key in ENV_KEYS}

    # Clear test keys
    for key in saved_env:
        if key in os.environ:
            del os.environ[key]

    yield

    # Restore env
    for key, value in saved_env.items():
        if value is not None:
            os.environ[key] = value
        elif key in os.environ:
            del os.environ[key]


@pytest.mark.usefixtures("clean_env")
class TestGetRequiredEnv:
    """Tests for get_required_env function."""

    def test_returns_env_value_when_set(self) -> None:
        """Test that get_required_env returns value when set."""
        os.environ["TEST_KEY"] = "test_value"
        assert get_required_env("TEST_KEY") == "test_value"

    def test_raises_when_not_set(self) -> None:
        """Test that get_required_env raises ValueError when not set."""
        with pytest.raises(
            ValueError, match="TEST_KEY environment variable is not set"
        ):
            get_required_env("TEST_KEY")

    def test_raises_when_empty_string(self) -> None:
        """Test that get_required_env raises ValueError when empty."""
        os.environ["TEST_KEY"] = ""
        with pytest.raises(
            ValueError, match="TEST_KEY environment variable is not set"
        ):
            get_required_env("TEST_KEY")


@pytest.mark.usefixtures("clean_env")
class TestGetOptionalEnv:
    """Tests for get_optional_env function."""

    def test_returns_none_when_not_set(self) -> None:
        """Test that get_optional_env returns None when not set."""
        assert get_optional_env("TEST_KEY") is None

    def test_returns_default_when_not_set(self) -> None:
        """Test that get_optional_env returns default when not set."""
        assert get_optional_env("TEST_KEY", "default") == "default"

    def test_returns_env_value_over_default(self) -> None:
        """Test that get_optional_env prefers env value over default."""
        os.environ["TEST_KEY"] = "env_value"
        assert get_optional_env("TEST_KEY", "default") == "env_value"


@pytest.mark.usefixtures("clean_env")
class TestGetEthRpcUrl:
    """Tests for get_eth_rpc_url function."""

    def test_returns_rpc_url_parameter(self) -> None:
        """Test that get_eth_rpc_url returns parameter when provided."""
        url = "https://eth.llamarpc.com"
        assert get_eth_rpc_url(url) == url

    def test_returns_env_value(self) -> None:
        """Test that get_eth_rpc_url returns env value."""
        os.environ["ETH_RPC_URL"] = "https://mainnet.infura.io/v3/test"
        assert get_eth_rpc_url() == "https://mainnet.infura.io/v3/test"

    def test_raises_with_correct_message(self) -> None:
        """Test that error message mentions ETH_RPC_URL."""
        with pytest.raises(ValueError, match="ETH_RPC_URL must be provided"):
            get_eth_rpc_url()


@pytest.mark.usefixtures("clean_env")
class TestLoadSettings:
    """Tests for load_settings function."""

    def test_defaults(self) -> None:
        """Test defaults when only the RPC URL is set."""
        os.environ["ETH_RPC_URL"] = "https://node.example"

        settings = load_settings()

        assert settings.rpc_url == "https://node.example"
        assert settings.backend_api_url is None
        assert settings.rpc_timeout == 30.0
        assert settings.receipt_concurrency == 10
        assert settings.block_concurrency == 10
        assert settings.collect_time_budget is None
        assert settings.log_level == "INFO"
        assert settings.log_color is False

    def test_reads_every_variable(self) -> None:
        """Test that each variable is picked up and converted."""
        os.environ.update(
            {
                "ETH_RPC_URL": "https://node.example",
                "BACKEND_API_URL": "https://api.example",
                "RPC_TIMEOUT": "5",
                "RECEIPT_CONCURRENCY": "4",
                "BLOCK_CONCURRENCY": "2",
                "COLLECT_TIME_BUDGET": "1.5",
                "LOG_LEVEL": "debug",
                "LOG_COLOR": "true",
            }
        )

        settings = load_settings()

        assert settings.backend_api_url == "https://api.example"
        assert settings.rpc_timeout == 5.0
        assert settings.receipt_concurrency == 4
        assert settings.block_concurrency == 2
        assert settings.collect_time_budget == 1.5
        assert settings.log_level == "DEBUG"
        assert settings.log_color is True

    def test_parameter_overrides_env_url(self) -> None:
        """Test that an explicit RPC URL wins over ETH_RPC_URL."""
        os.environ["ETH_RPC_URL"] = "https://from-env.example"

        assert load_settings("https://param.example").rpc_url == "https://param.example"

    def test_missing_rpc_url_raises(self) -> None:
        """Test that the RPC URL is required."""
        with pytest.raises(ValueError, match="ETH_RPC_URL"):
            load_settings()

    def test_invalid_concurrency_raises(self) -> None:
        """Test that concurrency below 1 is rejected."""
        os.environ["ETH_RPC_URL"] = "https://node.example"
        os.environ["RECEIPT_CONCURRENCY"] = "0"

        with pytest.raises(ValidationError):
            load_settings()

    def test_settings_model_validates_timeout(self) -> None:
        """Test that a non-positive timeout is rejected."""
        with pytest.raises(ValidationError):
            ExplorerSettings(rpc_url="https://node.example", rpc_timeout=0)
