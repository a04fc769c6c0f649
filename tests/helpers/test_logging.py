"""Tests for logging configuration."""

import logging
import sys

import pytest

import colorlog

import rpcscan.helpers.logging as logging_helpers
from rpcscan.helpers.logging import configure_logging, get_logger, loggers


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_returns_logger(self) -> None:
        """Test that get_logger returns a logger instance."""
        logger = get_logger("test_module")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "test_module"

    def test_get_logger_same_name_returns_same_instance(self) -> None:
        """Test that getting logger with same name returns same instance."""
        logger1 = get_logger("test_same")
        logger2 = get_logger("test_same")

        assert logger1 is logger2
        assert loggers["test_same"] is logger1

    @pytest.mark.parametrize(
        ("level_name", "level"),
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("CRITICAL", logging.CRITICAL),
        ],
    )
    def test_get_logger_with_level(self, level_name: str, level: int) -> None:
        """Test get_logger with each supported level."""
        logger = get_logger(f"test_level_{level_name.lower()}", log_level=level_name)

        assert logger.level == level

    def test_get_logger_default_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test get_logger with default level."""
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        logger = get_logger("test_default")

        # Default should be INFO
        assert logger.level == logging.INFO

    def test_get_logger_level_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that LOG_LEVEL is used when no level is passed."""
        monkeypatch.setenv("LOG_LEVEL", "warning")
        logger = get_logger("test_env_level")

        assert logger.level == logging.WARNING

    def test_get_logger_invalid_level_raises(self) -> None:
        """Test that invalid log level raises ValueError."""
        with pytest.raises(ValueError, match="Invalid log level"):
            get_logger("test_invalid", log_level="INVALID")

    def test_get_logger_invalid_handler_raises(self) -> None:
        """Test that invalid handler raises ValueError."""
        with pytest.raises(ValueError, match="Invalid handler"):
            get_logger("test_invalid_handler", log_handler="invalid")

    def test_get_logger_stderr_handler(self) -> None:
        """Test get_logger with stderr handler."""
        logger = get_logger("test_stderr", log_handler="stderr", log_color=False)

        handler = logger.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stderr

    def test_get_logger_with_color(self) -> None:
        """Test get_logger with color enabled."""
        logger = get_logger("test_color", log_color=True)

        assert isinstance(logger.handlers[0].formatter, colorlog.ColoredFormatter)

    def test_get_logger_without_color(self) -> None:
        """Test get_logger with color disabled."""
        logger = get_logger("test_no_color", log_color=False)

        assert not isinstance(logger.handlers[0].formatter, colorlog.ColoredFormatter)

    def test_logger_can_log_messages(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that configured logger can log messages."""
        logger = get_logger("test_log_messages", log_level="DEBUG")

        with caplog.at_level(logging.DEBUG, logger="test_log_messages"):
            logger.debug("Debug message")
            logger.warning("Warning message")

        assert any("Debug message" in record.message for record in caplog.records)
        assert any("Warning message" in record.message for record in caplog.records)


class TestLoggingIntegration:
    """Integration tests for logging functionality."""

    def test_logger_caching(self) -> None:
        """Test that loggers are cached correctly."""
        # First call creates and caches logger
        logger1 = get_logger("cached_logger", log_level="DEBUG")

        # Second call should return cached logger
        logger2 = get_logger("cached_logger", log_level="INFO")

        # Should be the same instance
        assert logger1 is logger2
        # And should have the original level (DEBUG)
        assert logger1.level == logging.DEBUG

    def test_module_loggers_are_named_after_modules(self) -> None:
        """Test that explorer modules log under their dotted module name."""
        from rpcscan.explorer import collector

        assert collector.logger.name == "rpcscan.explorer.collector"


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.fixture
    def isolated_loggers(self, monkeypatch: pytest.MonkeyPatch) -> dict[str, logging.Logger]:
        cache: dict[str, logging.Logger] = {}
        monkeypatch.setattr(logging_helpers, "loggers", cache)
        return cache

    def test_reconfigures_existing_loggers(
        self, isolated_loggers: dict[str, logging.Logger]
    ) -> None:
        """Test that level and colouring reach loggers created earlier."""
        logger = get_logger("test_configure_existing", log_level="INFO", log_color=False)

        configure_logging("error", log_color=True)

        assert logger.level == logging.ERROR
        assert logger.handlers[0].level == logging.ERROR
        assert isinstance(logger.handlers[0].formatter, colorlog.ColoredFormatter)
        assert list(isolated_loggers) == ["test_configure_existing"]

    def test_invalid_level_raises(self, isolated_loggers: dict[str, logging.Logger]) -> None:
        """Test that an unknown level is rejected."""
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging("LOUD")
