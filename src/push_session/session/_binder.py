"""
One-time identity binding of a session.

The `SessionBinder` owns the write-once (address, callback) identity of one session. Address and
callback may arrive in either order or together; the call that completes both halves parses the
address, acquires the shared connection for its origin from the `ConnectionRegistry` and announces
the session (namespace + callback) on that connection, all while holding the binder's lock.

Async Safety:
    The check of the current snapshot, the address parsing, the connection acquisition and the commit
    of the new snapshot happen under one `asyncio.Lock`. Of several racing calls that would complete
    the identity, exactly one acquires the connection; the others observe a rejection.

Error Handling:
    - `InvalidAddressError` and `ConnectionUnavailableError` leave the previous snapshot untouched,
      so a corrected call may be retried.
    - An illegal rebind is reported as a `REJECTED` result, not raised. Before binding completes it
      moves the binder to the terminal `REJECTED` state; after binding completes the session stays bound.
"""

import asyncio
import logging
from collections.abc import Iterable

from push_session._address import DEFAULT_SCHEMES, Address, parse_address, redact_address
from push_session._exceptions import ConnectionUnavailableError
from push_session.connection import ConnectionHandle, ConnectionRegistry, EventSink

from ._state import Binding, BindResult, BindState

_LOGGER = logging.getLogger(__name__)

ALREADY_BOUND = "already bound"


class SessionBinder:
    """
    Coroutine-safe, write-once binding of an address and a callback to a shared connection.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        allowed_schemes: Iterable[str] = DEFAULT_SCHEMES,
    ):
        """
        Initialize an unbound binder.

        Args:
            registry (ConnectionRegistry): Registry providing the shared connection per origin.
            allowed_schemes (Iterable[str]): Schemes accepted for the address.
        """
        self._registry = registry
        self._allowed_schemes = tuple(allowed_schemes)
        self._binding = Binding()
        self._lock = asyncio.Lock()

    @property
    def binding(self) -> Binding:
        """The current identity snapshot."""
        return self._binding

    @property
    def state(self) -> BindState:
        return self._binding.state

    @property
    def address(self) -> Address | None:
        return self._binding.address

    @property
    def callback(self) -> EventSink | None:
        return self._binding.callback

    @property
    def namespace(self) -> str | None:
        return self._binding.namespace

    @property
    def connection(self) -> ConnectionHandle | None:
        return self._binding.connection

    def parse(self, address: "str | Address") -> Address:
        """
        Validate an address against this binder's allowed schemes without binding it.

        Raises:
            InvalidAddressError: If the address is malformed.
        """
        return parse_address(address, self._allowed_schemes)

    async def bind(
        self,
        address: "str | Address | None" = None,
        callback: EventSink | None = None,
        *,
        fallback_address: "str | Address | None" = None,
    ) -> BindResult:
        """
        Supply the address and/or callback of the session.

        Args:
            address (str | Address | None): The target address, if supplied by this call.
            callback (EventSink | None): The event sink, if supplied by this call.
            fallback_address (str | Address | None): Address used when this call supplies a callback
                and no address has been set yet.

        Returns:
            BindResult: COMPLETED if this call completed the identity, PENDING if a half is still
                missing (or nothing was supplied), REJECTED if a set half would be overwritten.

        Raises:
            InvalidAddressError: If the address is malformed. The binder state is unchanged.
            ConnectionUnavailableError: If the shared connection could not be acquired or the
                session could not be registered on it. The binder state is unchanged.
        """
        if address is None and callback is None:
            return BindResult.pending()

        async with self._lock:
            current = self._binding

            if current.state is BindState.REJECTED:
                _LOGGER.warning(f"[SessionBinder] Bind attempt on rejected session: {current.reason}")
                return BindResult.rejected(current.reason or ALREADY_BOUND)

            if (address is not None and current.address is not None) or (
                callback is not None and current.callback is not None
            ):
                return self._reject(current)

            if address is None and current.address is None and callback is not None:
                address = fallback_address

            new_address = self.parse(address) if address is not None else current.address
            new_callback = callback if callback is not None else current.callback

            if new_address is None or new_callback is None:
                self._binding = Binding(
                    state=BindState.PARTIALLY_BOUND,
                    address=new_address,
                    callback=new_callback,
                )
                _LOGGER.debug(
                    f"[SessionBinder] Partially bound, waiting for {self._binding.missing}"
                )
                return BindResult.pending()

            namespace = new_address.namespace
            connection = await self._registry.acquire(new_address.origin)
            try:
                await connection.register_session(namespace, new_callback)
            except Exception as e:
                _LOGGER.error(
                    f"[SessionBinder] Failed to register namespace '{namespace}' on "
                    f"'{redact_address(new_address.origin)}': {e}"
                )
                raise ConnectionUnavailableError(
                    f"Failed to register namespace '{namespace}' on "
                    f"'{redact_address(new_address.origin)}': {e}"
                ) from e

            self._binding = Binding(
                state=BindState.BOUND,
                address=new_address,
                callback=new_callback,
                namespace=namespace,
                connection=connection,
            )
            _LOGGER.info(
                f"[SessionBinder] Bound namespace '{namespace}' on '{redact_address(new_address.origin)}'"
            )
            return BindResult.completed()

    def _reject(self, current: Binding) -> BindResult:
        # Caller holds the lock.
        if current.state is BindState.BOUND:
            _LOGGER.warning(
                f"[SessionBinder] Rebind attempt on bound namespace '{current.namespace}' ignored"
            )
            return BindResult.rejected(ALREADY_BOUND)

        self._binding = Binding(
            state=BindState.REJECTED,
            address=current.address,
            callback=current.callback,
            reason=ALREADY_BOUND,
        )
        _LOGGER.warning("[SessionBinder] Rebind attempt before binding completed; session rejected")
        return BindResult.rejected(ALREADY_BOUND)
