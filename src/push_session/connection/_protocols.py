"""
Interfaces consumed from the external connection manager.

push-session never speaks the wire protocol itself. Transport negotiation, handshakes, framing,
heartbeats, buffering and reconnect timing all live behind the protocols defined here:

- `ConnectionManager`: creates (or reuses) one connection per origin.
- `ConnectionHandle`: one shared physical connection, multiplexing many namespaces.
- `EventSink`: the application's callback, invoked by the connection manager for inbound events.

All protocols are `runtime_checkable` so tests and adapters can be verified with `isinstance`.
"""

from typing import Any, Protocol, runtime_checkable

Payload = dict[str, Any] | str
"""A message payload: structured (dict) or plain text (str)."""


@runtime_checkable
class EventSink(Protocol):
    """
    Application callback receiving inbound events for one session.

    Only the connection manager calls these methods; push-session merely stores the sink and
    hands it to the connection when binding completes.
    """

    def on_connect(self) -> None: ...

    def on_disconnect(self) -> None: ...

    def on_message(self, data: Payload) -> None: ...

    def on_event(self, event: str, *args: Any) -> None: ...

    def on_error(self, error: Exception) -> None: ...


@runtime_checkable
class ConnectionHandle(Protocol):
    """
    A shared connection to one origin.

    Every call carries the namespace of the calling session so the connection can route frames.
    Outbound calls must be accepted even while the link is down; buffering is the handle's job.
    """

    async def register_session(self, namespace: str, callback: EventSink) -> None:
        """Announce a newly bound session (namespace + callback) on this connection."""
        ...

    async def emit(self, namespace: str, event: str, args: tuple[Any, ...]) -> None:
        """Send a named event with arguments to the namespace."""
        ...

    async def send(self, namespace: str, payload: Payload) -> None:
        """Send an untyped message to the namespace."""
        ...

    async def disconnect(self, namespace: str) -> None:
        """End the namespace's participation; the connection decides whether the link closes."""
        ...

    async def reconnect(self) -> None:
        """Restart the transport."""
        ...

    async def is_connected(self) -> bool:
        """Return the current link status."""
        ...


@runtime_checkable
class ConnectionManager(Protocol):
    """Factory for shared connections, idempotent per origin."""

    async def create_or_reuse(self, origin: str) -> ConnectionHandle:
        """Return the connection for `origin`, creating it when needed."""
        ...
