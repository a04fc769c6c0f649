"""Logger module."""

import logging
import sys

import colorlog

from rpcscan.helpers.config import get_optional_env

loggers: dict[str, logging.Logger] = {}

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def _build_handler(log_handler: str, *, log_color: bool) -> logging.Handler:
    if log_handler == "stdout":
        return colorlog.StreamHandler(sys.stdout) if log_color else logging.StreamHandler(sys.stdout)
    if log_handler == "stderr":
        return colorlog.StreamHandler(sys.stderr) if log_color else logging.StreamHandler(sys.stderr)
    err_msg = f"Invalid handler: {log_handler}"
    raise ValueError(err_msg)


def _build_formatter(*, log_color: bool) -> logging.Formatter:
    if log_color:
        return colorlog.ColoredFormatter(f"%(log_color)s {LOG_FORMAT}", log_colors=LOG_COLORS)
    return logging.Formatter(LOG_FORMAT)


def get_logger(
    name: str,
    log_handler: str = "stdout",
    log_level: str | None = None,
    log_color: bool | None = None,
) -> logging.Logger:
    """Get logger.

    Level and colouring default to the LOG_LEVEL and LOG_COLOR environment
    variables. Loggers are cached per name, so only the first call for a name
    configures it.

    Args:
        name: The name of the logger.
        log_handler: The log handler type ('stdout' or 'stderr').
        log_level: The logging level ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL').
        log_color: Whether to use colored output.

    Returns:
        logging.Logger: Configured logger instance.

    Raises:
        ValueError: If invalid handler or log level is provided.
    """
    if name in loggers:
        return loggers[name]

    if log_level is None:
        log_level = (get_optional_env("LOG_LEVEL", "INFO") or "INFO").upper()
    if log_color is None:
        log_color = (get_optional_env("LOG_COLOR", "") or "").lower() in {"1", "true", "yes"}

    if log_level not in LOG_LEVELS:
        err_msg = f"Invalid log level: {log_level}"
        raise ValueError(err_msg)

    handler = _build_handler(log_handler, log_color=log_color)
    logger = colorlog.getLogger(name) if log_color else logging.getLogger(name)

    level = LOG_LEVELS[log_level]
    logger.setLevel(level)
    handler.setLevel(level)
    handler.setFormatter(_build_formatter(log_color=log_color))
    logger.addHandler(handler)

    loggers[name] = logger
    return logger


def configure_logging(log_level: str, *, log_color: bool = False) -> None:
    """Apply a level and colouring to every logger created so far.

    The CLI calls this once settings are loaded, after module loggers were
    set up from the environment at import time.

    Raises:
        ValueError: If an invalid log level is provided.
    """
    level_name = log_level.upper()
    if level_name not in LOG_LEVELS:
        err_msg = f"Invalid log level: {log_level}"
        raise ValueError(err_msg)

    level = LOG_LEVELS[level_name]
    formatter = _build_formatter(log_color=log_color)
    for logger in loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)


__all__ = ["LOG_LEVELS", "configure_logging", "get_logger"]
