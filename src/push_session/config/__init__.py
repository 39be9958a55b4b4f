"""
Async push-session configuration management.

This module provides async functions to load, validate, and cache push-session configuration from a JSON file.
Configuration is loaded from a file specified by the PUSH_SESSION_CONFIG_FILE environment variable using native
async file I/O (aiofiles).

Features:
    - Coroutine-safe, cached loading of configuration using asyncio.Lock.
    - Strict validation of configuration structure and values.
    - Redaction of address passwords in log output.

Configuration Schema:
---------------------
The configuration file must be a JSON object. It may contain the following top-level key:

  - `session_defaults` (dict, optional):
        - `default_address` (str, optional): Address used for sessions created with only a callback.
        - `allowed_schemes` (list[str], optional): Schemes accepted for session addresses
          (default: http, https, ws, wss).

Unknown keys, at the top level or inside `session_defaults`, fail validation.

Example Valid Configuration:
---------------------------
```json
{
    "session_defaults": {
        "default_address": "https://push.example.com/",
        "allowed_schemes": ["https", "wss"]
    }
}
```

Environment Variables:
---------------------
- `PUSH_SESSION_CONFIG_FILE`: Path to the push-session configuration JSON file.
"""

__all__ = [
    "ConfigurationError",
    "SessionDefaultsConfigurationError",
    "ConfigManager",
    "CONFIG_ENV_VAR",
    "validate_config",
    "get_config_path",
    "get_session_defaults",
    "load_and_validate_config",
    "validate_session_defaults_config",
    "redact_session_defaults_config",
]

import asyncio
import json
import logging
import os
from typing import Any, cast

import aiofiles

from push_session._exceptions import (
    ConfigurationError,
    SessionDefaultsConfigurationError,
)

from ._session_defaults import (
    redact_session_defaults_config,
    validate_session_defaults_config,
)

_LOGGER = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PUSH_SESSION_CONFIG_FILE"
"""
str: Name of the environment variable specifying the path to the push-session config file.
"""

_ALLOWED_TOP_LEVEL_KEYS: set[str] = {"session_defaults"}
"""Set of all allowed top-level keys in the configuration file."""


class ConfigManager:
    """
    Async configuration manager for push-session configuration.

    Encapsulates loading, validating, and caching of the configuration file.
    """

    def __init__(self) -> None:
        """
        Initialize a new ConfigManager instance with an empty cache and an asyncio.Lock.
        """
        self._cache: dict[str, Any] | None = None
        self._lock = asyncio.Lock()

    async def clear_config_cache(self) -> None:
        """
        Clear the cached configuration (coroutine-safe).

        The next `get_config()` reloads from disk.
        """
        _LOGGER.debug("Clearing push-session configuration cache...")
        async with self._lock:
            self._cache = None

        _LOGGER.debug("Configuration cache cleared.")

    async def _set_config_cache(self, config: dict[str, Any]) -> None:
        """
        PRIVATE: Set the in-memory configuration cache (coroutine-safe, for testing/internal use only).

        The configuration is validated before caching.

        Args:
            config (dict[str, Any]): The configuration dictionary to cache.

        Raises:
            ConfigurationError: If the provided configuration is invalid.
        """
        async with self._lock:
            self._cache = validate_config(config)

    async def get_config(self) -> dict[str, Any]:
        """
        Load and validate the configuration from disk, or return the cached copy (coroutine-safe).

        Returns:
            dict[str, Any]: The loaded and validated configuration dictionary.

        Raises:
            RuntimeError: If the PUSH_SESSION_CONFIG_FILE environment variable is not set.
            ConfigurationError: If the config file is missing, unreadable, not JSON, or invalid.
        """
        _LOGGER.debug("Loading push-session configuration...")
        async with self._lock:
            if self._cache is not None:
                _LOGGER.debug("Using cached push-session configuration.")
                return self._cache

            config_path = get_config_path()
            validated = await load_and_validate_config(config_path)
            self._cache = validated
            _log_config_summary(validated)
            return validated


async def get_session_defaults(config_manager: "ConfigManager") -> dict[str, Any]:
    """
    Retrieve the 'session_defaults' section.

    Args:
        config_manager (ConfigManager): The ConfigManager instance to use for config retrieval.

    Returns:
        dict[str, Any]: The section, or an empty dictionary when it is absent.
    """
    config = await config_manager.get_config()
    defaults = cast(dict[str, Any], config.get("session_defaults", {}))
    _LOGGER.debug(f"Retrieved session defaults: {redact_session_defaults_config(defaults)}")
    return defaults


async def _load_config_from_file(config_path: str) -> dict[str, Any]:
    """
    Load and parse the configuration JSON file asynchronously.

    Args:
        config_path (str): The file path to the configuration JSON file.

    Returns:
        dict[str, Any]: The parsed configuration.

    Raises:
        ConfigurationError: If the file is not found, cannot be read, or is not valid JSON.
    """
    try:
        async with aiofiles.open(config_path) as f:
            content = await f.read()
        return cast(dict[str, Any], json.loads(content))
    except FileNotFoundError:
        _LOGGER.error(f"Configuration file not found: {config_path}")
        raise ConfigurationError(
            f"Configuration file not found: {config_path}"
        ) from None
    except PermissionError:
        _LOGGER.error(
            f"Permission denied when trying to read configuration file: {config_path}"
        )
        raise ConfigurationError(
            f"Permission denied when trying to read configuration file: {config_path}"
        ) from None
    except json.JSONDecodeError as e:
        _LOGGER.error(f"Invalid JSON in configuration file {config_path}: {e}")
        raise ConfigurationError(
            f"Invalid JSON in configuration file {config_path}: {e}"
        ) from e


def get_config_path() -> str:
    """
    Retrieve the configuration file path from the environment variable.

    Returns:
        str: The path given by CONFIG_ENV_VAR.

    Raises:
        RuntimeError: If the CONFIG_ENV_VAR environment variable is not set.
    """
    if CONFIG_ENV_VAR not in os.environ:
        _LOGGER.error(f"Environment variable {CONFIG_ENV_VAR} is not set.")
        raise RuntimeError(f"Environment variable {CONFIG_ENV_VAR} is not set.")
    config_path = os.environ[CONFIG_ENV_VAR]
    _LOGGER.info(f"Environment variable {CONFIG_ENV_VAR} is set to: {config_path}")
    return config_path


async def load_and_validate_config(config_path: str) -> dict[str, Any]:
    """
    Load and validate the configuration from a JSON file.

    Args:
        config_path (str): The path to the configuration JSON file.

    Returns:
        dict[str, Any]: The loaded and validated configuration dictionary.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid JSON, or fails validation.
            Section errors are wrapped, keeping the original as the cause.
    """
    data = await _load_config_from_file(config_path)
    try:
        return validate_config(data)
    except SessionDefaultsConfigurationError as specific_e:
        _LOGGER.error(
            f"Configuration validation failed for {config_path}: {specific_e}"
        )
        raise ConfigurationError(
            f"Configuration validation failed: {specific_e}"
        ) from specific_e


def _log_config_summary(config: dict[str, Any]) -> None:
    """Log the (redacted) session defaults of a loaded configuration."""
    defaults = config.get("session_defaults", {})
    if defaults:
        _LOGGER.info(
            f"Configured session defaults: {redact_session_defaults_config(defaults)}"
        )
    else:
        _LOGGER.info("No session defaults configured.")


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """
    Validate the push-session configuration dictionary.

    Args:
        config (dict[str, Any]): The configuration dictionary to validate.

    Returns:
        dict[str, Any]: The validated configuration dictionary.

    Raises:
        ConfigurationError: If the configuration is not a dict or contains unknown top-level keys.
        SessionDefaultsConfigurationError: If the 'session_defaults' section is invalid.

    Example:
        >>> validate_config({"session_defaults": {"default_address": "http://localhost:3000/"}})
        {'session_defaults': {'default_address': 'http://localhost:3000/'}}
        >>> validate_config({})
        {}
    """
    if not isinstance(config, dict):
        _LOGGER.error("push-session configuration must be a JSON object")
        raise ConfigurationError("push-session configuration must be a JSON object")

    unknown_keys = set(config.keys()) - _ALLOWED_TOP_LEVEL_KEYS
    if unknown_keys:
        _LOGGER.error(f"Unknown top-level keys in push-session config: {unknown_keys}")
        raise ConfigurationError(
            f"Unknown top-level keys in push-session config: {unknown_keys}"
        )

    validate_session_defaults_config(config.get("session_defaults"))

    _LOGGER.info("Configuration validation passed.")
    return config
