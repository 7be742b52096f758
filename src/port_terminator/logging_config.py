"""
Centralized logging configuration for the port terminator.

This module provides a single setup_logging function that configures the
``port_terminator`` logger hierarchy with:
- Console output on stdout for debug/info/warning records
- Console output on stderr for error records
- A quiet mode that suppresses everything below ERROR
"""

import logging
import sys
import threading
from typing import Dict, Optional

PACKAGE_LOGGER_NAME = "port_terminator"

LOG_LEVELS: Dict[str, int] = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

# Thread-safe lock for logging configuration
_config_lock = threading.Lock()
_HANDLER_MARKER = "_port_terminator_handler"
_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _BelowErrorFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < logging.ERROR


def resolve_level(level: str) -> int:
    """Map a level name (error/warn/info/debug) to a logging constant."""
    try:
        return LOG_LEVELS[level.lower()]
    except KeyError as exc:
        raise ValueError(f"Unknown log level {level!r}. Expected one of: error, warn, info, debug") from exc


def _close_owned_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if not getattr(handler, _HANDLER_MARKER, False):
            continue
        logger.removeHandler(handler)
        try:
            handler.close()
        except OSError as exc:  # Best-effort cleanup operation  # policy_guard: allow-silent-handler
            logger.debug("Handler close failed: %s", exc)


def _build_handler(stream, level: int, *, errors_only: bool, user_friendly: bool) -> logging.Handler:
    if user_friendly:
        formatter = logging.Formatter("%(message)s")
    else:
        formatter = logging.Formatter(_FORMAT, _DATE_FORMAT)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    if errors_only:
        handler.setLevel(max(level, logging.ERROR))
    else:
        handler.setLevel(level)
        handler.addFilter(_BelowErrorFilter())
    setattr(handler, _HANDLER_MARKER, True)
    return handler


def setup_logging(level: str = "info", quiet: bool = False, user_friendly: bool = False) -> logging.Logger:
    """
    Configure console logging for the package and return its root logger.

    Calling it again replaces the handlers it installed earlier instead of
    stacking new ones.

    Args:
        level: Minimum level name for console output
        quiet: Only report errors
        user_friendly: Emit bare messages without timestamps (CLI output)
    """
    numeric_level = logging.ERROR if quiet else resolve_level(level)

    with _config_lock:
        package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
        _close_owned_handlers(package_logger)

        if numeric_level < logging.ERROR:
            package_logger.addHandler(_build_handler(sys.stdout, numeric_level, errors_only=False, user_friendly=user_friendly))
        package_logger.addHandler(_build_handler(sys.stderr, numeric_level, errors_only=True, user_friendly=user_friendly))

        package_logger.setLevel(numeric_level)
        logging.getLogger("asyncio").setLevel(logging.WARNING)

    return package_logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger inside the package hierarchy."""
    if not name:
        return logging.getLogger(PACKAGE_LOGGER_NAME)
    if name.startswith(PACKAGE_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER_NAME}.{name}")


__all__ = ["LOG_LEVELS", "PACKAGE_LOGGER_NAME", "get_logger", "resolve_level", "setup_logging"]
