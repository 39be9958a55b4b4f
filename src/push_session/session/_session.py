"""
The application-facing session handle.

A `Session` is the application's logical channel to one namespace of a server. It binds, once, a
target address and an event sink (callback), and afterwards forwards every outbound operation to
the connection shared by all sessions of the same origin, always passing its own namespace so the
connection can route frames back to the right callback.

Construction forms:
    - `Session(registry)`: unbound; supply identity later with `connect()`, `connect_address()`,
      `connect_callback()` or `bind()`.
    - `await Session.create(registry, address=...)`: address only, callback deferred.
    - `await Session.create(registry, callback=..., default_address=...)`: callback only, bound to the
      default address.
    - `await Session.create(registry, address=..., callback=...)`: bound immediately.
    - `await Session.from_config(registry, config_manager, ...)`: like `create`, with the default address
      and allowed schemes taken from configuration.

Example:
    ```python
    import asyncio
    from push_session import ConnectionRegistry, Session

    async def main():
        registry = ConnectionRegistry(my_connection_manager)
        chat = await Session.create(registry, "http://chat.example.com/room", my_sink)
        news = await Session.create(registry, "http://chat.example.com/news", other_sink)
        assert chat.connection is news.connection
        await chat.emit("message", {"text": "hello"})
        await news.send("plain text")

    asyncio.run(main())
    ```
"""

import logging
from collections.abc import Iterable
from typing import Any

from push_session import config
from push_session._address import DEFAULT_SCHEMES, Address, redact_address
from push_session._exceptions import (
    AlreadyBoundError,
    InternalError,
    MissingIdentityError,
    NotBoundError,
)
from push_session.connection import (
    ConnectionHandle,
    ConnectionRegistry,
    EventSink,
    Payload,
)

from ._binder import SessionBinder
from ._state import BindResult, BindState, BindStatus

_LOGGER = logging.getLogger(__name__)


class Session:
    """
    Session facade over a shared connection.

    Operational methods (`emit`, `send`, `disconnect`, `reconnect`, `is_connected`) require the session
    to be bound and raise `NotBoundError` otherwise. They hand off to the connection and return; the
    connection is responsible for buffering while the link is down.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        *,
        default_address: "str | Address | None" = None,
        allowed_schemes: Iterable[str] = DEFAULT_SCHEMES,
    ):
        """
        Create an unbound session.

        Args:
            registry (ConnectionRegistry): Registry providing shared connections.
            default_address (str | Address | None): Address used when only a callback is supplied.
                Validated immediately.
            allowed_schemes (Iterable[str]): Schemes accepted for addresses.

        Raises:
            InvalidAddressError: If `default_address` is malformed.
        """
        self._binder = SessionBinder(registry, allowed_schemes)
        self._default_address = (
            self._binder.parse(default_address) if default_address is not None else None
        )

    @classmethod
    async def create(
        cls,
        registry: ConnectionRegistry,
        address: "str | Address | None" = None,
        callback: EventSink | None = None,
        *,
        default_address: "str | Address | None" = None,
        allowed_schemes: Iterable[str] = DEFAULT_SCHEMES,
    ) -> "Session":
        """
        Create a session and supply whichever identity halves are given.

        Args:
            registry (ConnectionRegistry): Registry providing shared connections.
            address (str | Address | None): Target address.
            callback (EventSink | None): Event sink.
            default_address (str | Address | None): Address used when only `callback` is given.
            allowed_schemes (Iterable[str]): Schemes accepted for addresses.

        Returns:
            Session: Unbound (nothing given), partially bound (address only) or bound.

        Raises:
            InvalidAddressError: If an address is malformed.
            MissingIdentityError: If only a callback is given and there is no default address.
            ConnectionUnavailableError: If the shared connection could not be acquired.
        """
        session = cls(registry, default_address=default_address, allowed_schemes=allowed_schemes)
        if address is not None and callback is not None:
            await session.connect(address, callback)
        elif address is not None:
            await session.connect_address(address)
        elif callback is not None:
            await session.connect_callback(callback)
        return session

    @classmethod
    async def from_config(
        cls,
        registry: ConnectionRegistry,
        config_manager: config.ConfigManager,
        address: "str | Address | None" = None,
        callback: EventSink | None = None,
    ) -> "Session":
        """
        Create a session using the 'session_defaults' configuration section.

        Args:
            registry (ConnectionRegistry): Registry providing shared connections.
            config_manager (ConfigManager): Source of `default_address` and `allowed_schemes`.
            address (str | Address | None): Target address.
            callback (EventSink | None): Event sink.

        Returns:
            Session: See `create`.

        Raises:
            ConfigurationError: If the configuration cannot be loaded.
            InvalidAddressError, MissingIdentityError, ConnectionUnavailableError: See `create`.
        """
        defaults = await config.get_session_defaults(config_manager)
        return await cls.create(
            registry,
            address,
            callback,
            default_address=defaults.get("default_address"),
            allowed_schemes=defaults.get("allowed_schemes", DEFAULT_SCHEMES),
        )

    def __repr__(self) -> str:
        binding = self._binder.binding
        address = redact_address(binding.address) if binding.address is not None else None
        return f"Session(state={binding.state.value}, address={address!r}, namespace={binding.namespace!r})"

    # ===== Identity =====

    @property
    def state(self) -> BindState:
        """The current bind state."""
        return self._binder.state

    @property
    def is_bound(self) -> bool:
        return self._binder.state is BindState.BOUND

    @property
    def address(self) -> Address | None:
        return self._binder.address

    @property
    def default_address(self) -> Address | None:
        return self._default_address

    @property
    def namespace(self) -> str | None:
        """
        The namespace this session routes on, or None before binding completes.

        Used by the connection manager to route inbound frames; "" is the default namespace.
        """
        return self._binder.namespace

    @property
    def callback(self) -> EventSink | None:
        """The event sink inbound events for this namespace are delivered to."""
        return self._binder.callback

    @property
    def connection(self) -> ConnectionHandle | None:
        """The shared connection, or None before binding completes."""
        return self._binder.connection

    # ===== Binding =====

    async def bind(
        self,
        address: "str | Address | None" = None,
        callback: EventSink | None = None,
    ) -> BindResult:
        """
        Supply the address and/or callback, reporting rejection as a result.

        A callback supplied while no address is set binds with the default address, as
        `connect_callback` does. Without a default it stays PENDING.

        Returns:
            BindResult: COMPLETED, PENDING or REJECTED. `bind()` with no arguments is a PENDING no-op.

        Raises:
            InvalidAddressError: If the address is malformed.
            ConnectionUnavailableError: If the shared connection could not be acquired.
        """
        return await self._binder.bind(address, callback, fallback_address=self._default_address)

    async def connect(self, address: "str | Address", callback: EventSink) -> BindResult:
        """
        Bind address and callback together. Only valid on an unbound session.

        Raises:
            MissingIdentityError: If `address` or `callback` is None.
            AlreadyBoundError: If either half was already set.
            InvalidAddressError, ConnectionUnavailableError: See `bind`.
        """
        if address is None or callback is None:
            raise MissingIdentityError("address and callback may not be None")
        return self._check(await self._binder.bind(address, callback), "connect(address, callback)")

    async def connect_address(self, address: "str | Address") -> BindResult:
        """
        Supply the address; binds immediately if the callback is already known.

        Raises:
            MissingIdentityError: If `address` is None.
            AlreadyBoundError: If an address was already set.
            InvalidAddressError, ConnectionUnavailableError: See `bind`.
        """
        if address is None:
            raise MissingIdentityError("address may not be None")
        return self._check(await self._binder.bind(address, None), "connect_address(address)")

    async def connect_callback(self, callback: EventSink) -> BindResult:
        """
        Supply the callback and bind using the stored address, or the default address if none was set.

        Raises:
            MissingIdentityError: If `callback` is None, or no address was set and there is no
                default address. The session state is unchanged.
            AlreadyBoundError: If a callback was already set.
            InvalidAddressError, ConnectionUnavailableError: See `bind`.
        """
        if callback is None:
            raise MissingIdentityError("callback may not be None")
        if self._binder.address is None and self._default_address is None:
            _LOGGER.error("[Session] connect_callback() called without an address or default address")
            raise MissingIdentityError(
                "connect_callback(callback) requires an address set at construction or a default address"
            )
        return self._check(
            await self._binder.bind(None, callback, fallback_address=self._default_address),
            "connect_callback(callback)",
        )

    def _check(self, result: BindResult, call: str) -> BindResult:
        if result.status is BindStatus.REJECTED:
            _LOGGER.error(f"[Session] {call} rejected: {result.reason}")
            raise AlreadyBoundError(f"{call} rejected: {result.reason}")
        return result

    # ===== Operations =====

    def _require_connection(self, operation: str) -> tuple[str, ConnectionHandle]:
        binding = self._binder.binding
        if binding.state is not BindState.BOUND:
            _LOGGER.error(f"[Session] {operation}() called on a {binding.state.value} session")
            raise NotBoundError(
                f"{operation}() requires a bound session (current state: {binding.state.value})"
            )
        if binding.connection is None or binding.namespace is None:
            raise InternalError(f"Bound session has no connection (operation: {operation})")
        return binding.namespace, binding.connection

    async def emit(self, event: str, *args: Any) -> None:
        """
        Emit a named event with arguments to the server.

        If the link is not established the connection buffers the event.

        Args:
            event (str): The event name. Must be a non-empty string.
            *args: Event arguments, passed to the connection as a tuple.

        Raises:
            NotBoundError: If the session is not bound.
            ValueError: If `event` is empty or not a string.
        """
        namespace, connection = self._require_connection("emit")
        if not isinstance(event, str) or not event:
            raise ValueError(f"event must be a non-empty string, got {event!r}")
        _LOGGER.debug(f"[Session] emit '{event}' on namespace '{namespace}' with {len(args)} argument(s)")
        await connection.emit(namespace, event, args)

    async def send(self, payload: Payload) -> None:
        """
        Send an untyped message: a dict for structured data or a str for plain text.

        Raises:
            NotBoundError: If the session is not bound.
            TypeError: If `payload` is neither a dict nor a str.
        """
        namespace, connection = self._require_connection("send")
        if not isinstance(payload, dict | str):
            raise TypeError(f"payload must be a dict or str, got {type(payload).__name__}")
        _LOGGER.debug(f"[Session] send {type(payload).__name__} payload on namespace '{namespace}'")
        await connection.send(namespace, payload)

    async def disconnect(self) -> None:
        """
        End this session's participation on the shared connection.

        Whether the physical link closes depends on the connection's other sessions.

        Raises:
            NotBoundError: If the session is not bound.
        """
        namespace, connection = self._require_connection("disconnect")
        _LOGGER.info(f"[Session] Disconnecting namespace '{namespace}'")
        await connection.disconnect(namespace)

    async def reconnect(self) -> None:
        """
        Ask the connection to restart its transport.

        This is a hint: it only has an effect while the connection reports itself connected and is
        otherwise a silent no-op.

        Raises:
            NotBoundError: If the session is not bound.
        """
        namespace, connection = self._require_connection("reconnect")
        if not await connection.is_connected():
            _LOGGER.debug(f"[Session] reconnect() ignored for namespace '{namespace}': not connected")
            return
        _LOGGER.info(f"[Session] Reconnect requested from namespace '{namespace}'")
        await connection.reconnect()

    async def is_connected(self) -> bool:
        """
        Report the current link status of the shared connection.

        Raises:
            NotBoundError: If the session is not bound.
        """
        _namespace, connection = self._require_connection("is_connected")
        return await connection.is_connected()
