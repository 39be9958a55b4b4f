"""
push-session connection layer public API.

Re-exports the connection registry and the protocols consumed from the external connection manager.

Exports:
    - ConnectionRegistry: Coroutine-safe origin -> shared connection cache.
    - ConnectionManager: Protocol for the factory creating one connection per origin.
    - ConnectionHandle: Protocol for one shared connection multiplexing many namespaces.
    - EventSink: Protocol for the application callback receiving inbound events.
    - Payload: Type of a message payload (dict or str).
"""

from ._protocols import ConnectionHandle, ConnectionManager, EventSink, Payload
from ._registry import ConnectionRegistry

__all__ = [
    "ConnectionRegistry",
    "ConnectionManager",
    "ConnectionHandle",
    "EventSink",
    "Payload",
]
