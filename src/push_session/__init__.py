"""
push-session: client-side session facade for realtime push-messaging connections.

A `Session` binds, once, a target address and an event sink. Sessions whose addresses share an
origin (scheme + authority) share one connection obtained through a `ConnectionRegistry`, and are
told apart on it by their namespace (the address path). Wire work (transports, handshakes, framing,
heartbeats, reconnection) belongs to the external connection manager injected into the registry.

Exports:
    - Session, SessionBinder, BindState, BindStatus, BindResult, Binding: session binding and facade.
    - ConnectionRegistry, ConnectionManager, ConnectionHandle, EventSink, Payload: connection layer.
    - Address, parse_address, redact_address, DEFAULT_SCHEMES: address parsing.
    - Exceptions from `push_session._exceptions`.
    - setup_logging, setup_global_exception_logging: logging setup helpers.
    - config: configuration loading (`ConfigManager`).
    - __version__: package version.
"""

from push_session import config
from push_session._address import DEFAULT_SCHEMES, Address, parse_address, redact_address
from push_session._exceptions import (
    AlreadyBoundError,
    ConfigurationError,
    ConnectionUnavailableError,
    InternalError,
    InvalidAddressError,
    MissingIdentityError,
    NotBoundError,
    PushSessionError,
    RegistryItemNotFoundError,
    ResourceError,
    SessionDefaultsConfigurationError,
    SessionError,
)
from push_session._logging import setup_global_exception_logging, setup_logging
from push_session.connection import (
    ConnectionHandle,
    ConnectionManager,
    ConnectionRegistry,
    EventSink,
    Payload,
)
from push_session.session import (
    Binding,
    BindResult,
    BindState,
    BindStatus,
    Session,
    SessionBinder,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "config",
    # Session
    "Session",
    "SessionBinder",
    "BindState",
    "BindStatus",
    "BindResult",
    "Binding",
    # Connection
    "ConnectionRegistry",
    "ConnectionManager",
    "ConnectionHandle",
    "EventSink",
    "Payload",
    # Address
    "Address",
    "DEFAULT_SCHEMES",
    "parse_address",
    "redact_address",
    # Logging
    "setup_logging",
    "setup_global_exception_logging",
    # Exceptions
    "PushSessionError",
    "InternalError",
    "SessionError",
    "InvalidAddressError",
    "AlreadyBoundError",
    "MissingIdentityError",
    "NotBoundError",
    "ConnectionUnavailableError",
    "ResourceError",
    "RegistryItemNotFoundError",
    "ConfigurationError",
    "SessionDefaultsConfigurationError",
]
