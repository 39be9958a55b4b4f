"""
Logging and global exception handling utilities for push-session applications.

This module provides functions to:
- Set up root logger configuration early in process startup (`setup_logging`).
- Ensure all unhandled synchronous and asynchronous exceptions are logged (`setup_global_exception_logging`).

Call `setup_logging()` before creating any sessions so that all loggers are configured correctly.
Call `setup_global_exception_logging()` once at process startup to guarantee robust error visibility.

Environment Variables:
    - `PYTHONLOGLEVEL`: Root log level (default: INFO).
    - `PYTHONLOGFORMAT`: Set to `json` to emit structured JSON log records via python-json-logger.
"""

import asyncio
import logging
import os
import sys
from types import TracebackType
from typing import Any

from pythonjsonlogger import json as jsonlogger

LOG_LEVEL_ENV_VAR = "PYTHONLOGLEVEL"
"""str: Name of the environment variable selecting the root log level."""

LOG_FORMAT_ENV_VAR = "PYTHONLOGFORMAT"
"""str: Name of the environment variable selecting the log format ('text' or 'json')."""

_TEXT_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
_JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _create_json_handler() -> logging.Handler:
    """
    Create a stderr handler emitting one JSON object per log record.

    Returns:
        logging.Handler: A StreamHandler(sys.stderr) using pythonjsonlogger's JsonFormatter
            with ISO 8601 timestamps.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            fmt=_JSON_FORMAT,
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )
    )
    return handler


def setup_logging() -> None:
    """
    Set up logging configuration for the application.

    This function configures the root logger using the PYTHONLOGLEVEL environment variable to set the log level.
    When PYTHONLOGFORMAT is set to "json", records are written as JSON objects instead of plain text.
    It should be called before any sessions are created so that no other module configures logging first.
    """
    level = os.getenv(LOG_LEVEL_ENV_VAR, "INFO")
    if os.getenv(LOG_FORMAT_ENV_VAR, "text").lower() == "json":
        logging.basicConfig(
            level=level,
            handlers=[_create_json_handler()],
            force=True,  # Ensure we override any existing logging configuration
        )
        return

    logging.basicConfig(
        level=level,
        format=_TEXT_FORMAT,
        stream=sys.stderr,
        force=True,  # Ensure we override any existing logging configuration
    )


# Idempotency guard for global exception logging setup
_EXC_LOGGING_INSTALLED = False


def setup_global_exception_logging() -> None:
    """
    Set up global logging for all unhandled exceptions (synchronous and asynchronous) in the process.

    This function ensures that:
        - All uncaught exceptions in synchronous code are logged using the root logger.
        - All uncaught exceptions in asyncio event loops are logged, including loops created later,
          by patching `asyncio.new_event_loop` so every new loop gets the handler.
        - The handler is also set on the current event loop, if one exists.

    Usage:
        Call this function once at process startup, before any event loops are created.
    """
    global _EXC_LOGGING_INSTALLED
    if _EXC_LOGGING_INSTALLED:
        return
    _EXC_LOGGING_INSTALLED = True

    def _log_unhandled_exception(
        exc_type: type[BaseException],
        exc_value: BaseException,
        exc_traceback: TracebackType | None,
    ) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            return
        logging.error(
            "UNHANDLED EXCEPTION", exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = _log_unhandled_exception

    def _asyncio_exception_handler(
        loop: asyncio.AbstractEventLoop, context: dict[str, Any]
    ) -> None:
        exception = context.get("exception")
        logging.error(
            f"UNHANDLED ASYNC EXCEPTION: {context.get('message')}",
            exc_info=(
                (type(exception), exception, exception.__traceback__)
                if exception
                else None
            ),
        )

    _orig_new_event_loop = asyncio.new_event_loop

    def _patched_new_event_loop(*args: Any, **kwargs: Any) -> asyncio.AbstractEventLoop:
        loop = _orig_new_event_loop(*args, **kwargs)
        loop.set_exception_handler(_asyncio_exception_handler)
        return loop

    asyncio.new_event_loop = _patched_new_event_loop

    try:
        asyncio.get_running_loop().set_exception_handler(_asyncio_exception_handler)
    except RuntimeError:
        # Not inside a running loop; the handler is installed when one is created
        pass
