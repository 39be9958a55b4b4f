"""Custom exception types for push-session.

Defines the exception hierarchy used by the address parser, the connection registry, the
session binder and the session facade. All errors are raised synchronously to the caller
of the offending operation; none of them are retried or swallowed inside this package.

Exception Hierarchy:
    - Base exceptions: PushSessionError (base for all package exceptions), InternalError (extends PushSessionError and RuntimeError)
    - Session exceptions: SessionError (extends PushSessionError), InvalidAddressError (extends SessionError and ValueError),
      AlreadyBoundError (extends SessionError), MissingIdentityError (extends SessionError and ValueError), NotBoundError (extends SessionError)
    - Connection exceptions: ConnectionUnavailableError (extends PushSessionError and ConnectionError)
    - Resource exceptions: ResourceError (extends PushSessionError), RegistryItemNotFoundError (extends ResourceError and KeyError)
    - Configuration exceptions: ConfigurationError (extends PushSessionError), SessionDefaultsConfigurationError (extends ConfigurationError)

Recoverability:
    - InvalidAddressError: the caller must supply a corrected address.
    - AlreadyBoundError, MissingIdentityError, NotBoundError: programmer errors.
    - ConnectionUnavailableError: transient; binding may be retried.

Usage Example:
    ```python
    from push_session._exceptions import ConnectionUnavailableError, SessionError

    async def open_chat(session, callback):
        try:
            await session.connect("http://chat.example.com/room", callback)
        except ConnectionUnavailableError as e:
            # The shared connection could not be created, try again later
            logger.warning(f"Connection unavailable: {e}")
            raise
        except SessionError as e:
            # Bad address, rebind attempt or missing identity
            logger.error(f"Binding failed: {e}")
            raise
    ```
"""

__all__ = [
    # Base exceptions
    "PushSessionError",
    "InternalError",
    # Session exceptions
    "SessionError",
    "InvalidAddressError",
    "AlreadyBoundError",
    "MissingIdentityError",
    "NotBoundError",
    # Connection exceptions
    "ConnectionUnavailableError",
    # Resource exceptions
    "ResourceError",
    "RegistryItemNotFoundError",
    # Configuration exceptions
    "ConfigurationError",
    "SessionDefaultsConfigurationError",
]


# Base Exceptions


class PushSessionError(Exception):
    """Base exception for all push-session errors.

    Callers can catch every error raised by this package with a single except clause
    while still being able to handle the specific types below.

    Examples:
        ```python
        try:
            await session.emit("message", {"text": "hi"})
        except PushSessionError as e:
            logger.error(f"push-session operation failed: {e}")
        ```
    """

    pass


class InternalError(PushSessionError, RuntimeError):
    """Internal errors indicating bugs in push-session itself.

    Raised when an internal invariant is violated, for example a bound session
    without a connection. Inherits from RuntimeError to mark it as a programming
    error rather than a usage error.
    """

    pass


# Session Exceptions


class SessionError(PushSessionError):
    """Base exception for errors related to binding and using a session.

    Use the subclasses to tell apart a malformed address, an illegal rebind,
    a missing identity half and an operation invoked before binding completed.
    """

    pass


class InvalidAddressError(SessionError, ValueError):
    """Raised when a target address cannot be parsed.

    The address is missing a scheme, uses a scheme that is not allowed, has an empty
    authority or host, or carries an invalid port. Not recoverable without a corrected
    address. Also a ValueError so it can be handled like other bad-argument errors.

    Examples:
        ```python
        try:
            parse_address("chat.example.com/room")
        except InvalidAddressError as e:
            print(f"Bad address: {e}")
        ```
    """

    pass


class AlreadyBoundError(SessionError):
    """Raised when a session's address or callback would be overwritten.

    The address and callback of a session are write-once. After this error a
    partially bound session is permanently rejected; a bound session stays usable.
    """

    pass


class MissingIdentityError(SessionError, ValueError):
    """Raised when a binding call lacks an address or callback it requires.

    For example `connect(address, None)`, or `connect_callback(callback)` on a session
    that has neither a stored address nor a default address.
    """

    pass


class NotBoundError(SessionError):
    """Raised when an operation is invoked on a session that is not bound yet.

    emit, send, disconnect, reconnect and is_connected all require both the address
    and the callback to have been supplied and the connection to have been acquired.
    """

    pass


# Connection Exceptions


class ConnectionUnavailableError(PushSessionError, ConnectionError):
    """Raised when the connection manager cannot provide a connection for an origin.

    This is a transient condition. The failed attempt is not cached, so binding the
    session again may succeed.

    Examples:
        ```python
        try:
            await session.connect("http://host/chat", callback)
        except ConnectionUnavailableError:
            await asyncio.sleep(1)
            await session.connect("http://host/chat", callback)
        ```
    """

    pass


# Resource Exceptions


class ResourceError(PushSessionError):
    """Base exception for registry and resource lookup errors."""

    pass


class RegistryItemNotFoundError(ResourceError, KeyError):
    """Raised when a registry lookup does not find the requested origin.

    Inherits from KeyError so callers can treat it as a missing mapping entry.
    """

    pass


# Configuration Exceptions


class ConfigurationError(PushSessionError):
    """Base class for all push-session configuration errors.

    Raised when the configuration file cannot be read, is not valid JSON, or contains
    unknown top-level keys.
    """

    pass


class SessionDefaultsConfigurationError(ConfigurationError):
    """Raised when the 'session_defaults' configuration section is invalid."""

    pass
