"""
Coroutine-safe registry mapping origins to shared connections.

The `ConnectionRegistry` guarantees that all sessions targeting the same origin (scheme + authority)
share exactly one `ConnectionHandle`, which is what lets many namespaces and callbacks be multiplexed
over one physical link. Creation itself is delegated to an injected `ConnectionManager`.

Key Features:
    - Lazy creation: a connection is requested from the connection manager on first acquisition.
    - Single creation per origin: concurrent `acquire()` calls for the same origin converge on one
      connection. Creation holds a per-origin `asyncio.Lock`, so a slow origin never blocks another;
      the cache itself is guarded by a registry-wide lock that is never held across I/O.
    - Failures are not cached: if creation fails, `ConnectionUnavailableError` is raised and a later
      `acquire()` retries.
    - No teardown: connections are never closed or evicted here; that is the connection manager's policy.

Usage Example:
    registry = ConnectionRegistry(my_connection_manager)
    connection = await registry.acquire("http://chat.example.com")
    same = await registry.acquire("http://chat.example.com")
    assert connection is same
"""

import asyncio
import logging

from push_session._address import redact_address
from push_session._exceptions import (
    ConnectionUnavailableError,
    RegistryItemNotFoundError,
)

from ._protocols import ConnectionHandle, ConnectionManager

_LOGGER = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Async/coroutine-safe registry of shared connections, keyed by origin.

    The registry is meant to be injected into sessions (and substituted in tests) rather than used
    as a process-wide global. Each instance owns its own cache and lock.
    """

    def __init__(self, connection_manager: ConnectionManager):
        """
        Initialize an empty registry.

        Args:
            connection_manager (ConnectionManager): Factory used to create connections on first use.
        """
        self._connection_manager = connection_manager
        self._connections: dict[str, ConnectionHandle] = {}
        self._creation_locks: dict[str, asyncio.Lock] = {}
        self._lock = asyncio.Lock()
        _LOGGER.debug("[ConnectionRegistry] created")

    def __len__(self) -> int:
        return len(self._connections)

    async def acquire(self, origin: str) -> ConnectionHandle:
        """
        Return the shared connection for `origin`, creating it on first use.

        Creation runs under a per-origin lock, so concurrent callers for the same origin wait for the
        first creation and then receive the same instance, while other origins, `get()` and
        `origins()` proceed. The registry lock only guards the dictionaries.

        Args:
            origin (str): The origin, e.g. "http://chat.example.com:8080".

        Returns:
            ConnectionHandle: The connection shared by all sessions of this origin. Never None.

        Raises:
            ConnectionUnavailableError: If the connection manager fails or returns None. The failure
                is not cached.
        """
        async with self._lock:
            connection = self._connections.get(origin)
            if connection is not None:
                _LOGGER.debug(
                    f"[ConnectionRegistry] Reusing connection for origin: {redact_address(origin)}"
                )
                return connection
            origin_lock = self._creation_locks.setdefault(origin, asyncio.Lock())

        async with origin_lock:
            async with self._lock:
                connection = self._connections.get(origin)
            if connection is not None:
                _LOGGER.debug(
                    f"[ConnectionRegistry] Reusing connection for origin: {redact_address(origin)}"
                )
                return connection

            _LOGGER.info(
                f"[ConnectionRegistry] Creating connection for origin: {redact_address(origin)}"
            )
            try:
                connection = await self._connection_manager.create_or_reuse(origin)
            except Exception as e:
                _LOGGER.error(
                    f"[ConnectionRegistry] Failed to create connection for origin '{redact_address(origin)}': {e}"
                )
                raise ConnectionUnavailableError(
                    f"Failed to create connection for origin '{redact_address(origin)}': {e}"
                ) from e

            if connection is None:
                _LOGGER.error(
                    f"[ConnectionRegistry] Connection manager returned no connection for origin: {redact_address(origin)}"
                )
                raise ConnectionUnavailableError(
                    f"Connection manager returned no connection for origin '{redact_address(origin)}'"
                )

            async with self._lock:
                self._connections[origin] = connection
                cached = len(self._connections)
            _LOGGER.info(
                f"[ConnectionRegistry] Connection created and cached for origin: {redact_address(origin)} "
                f"({cached} cached)"
            )
            return connection

    async def get(self, origin: str) -> ConnectionHandle:
        """
        Look up an existing connection without creating one.

        Args:
            origin (str): The origin to look up.

        Returns:
            ConnectionHandle: The cached connection.

        Raises:
            RegistryItemNotFoundError: If no connection has been acquired for `origin`.
        """
        async with self._lock:
            if origin not in self._connections:
                raise RegistryItemNotFoundError(
                    f"No connection found for origin: {redact_address(origin)}"
                )
            return self._connections[origin]

    async def origins(self) -> list[str]:
        """
        List the origins that currently have a connection.

        Returns:
            list[str]: Sorted origins.
        """
        async with self._lock:
            return sorted(self._connections)
