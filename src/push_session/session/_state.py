"""
Bind state of a session.

A session's identity is held in one immutable `Binding` snapshot tagged with a `BindState`. The
binder never mutates a snapshot; every transition replaces it as a whole, so address, callback,
namespace and connection always change together.
"""

import enum
from dataclasses import dataclass

from push_session._address import Address
from push_session.connection import ConnectionHandle, EventSink


class BindState(enum.Enum):
    """
    Lifecycle state of a session's identity binding.

    Attributes:
        UNBOUND: Neither address nor callback supplied.
        PARTIALLY_BOUND: Exactly one of address and callback supplied.
        BOUND: Both supplied and the shared connection acquired. Permanent.
        REJECTED: An illegal rebind was attempted before binding completed. Terminal.
    """

    UNBOUND = "unbound"
    PARTIALLY_BOUND = "partially_bound"
    BOUND = "bound"
    REJECTED = "rejected"


class BindStatus(enum.Enum):
    """Outcome of a single bind call."""

    COMPLETED = "completed"
    PENDING = "pending"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class BindResult:
    """
    Result of a bind call.

    Attributes:
        status (BindStatus): Completed, pending or rejected.
        reason (str | None): Why the call was rejected; None otherwise.
    """

    status: BindStatus
    reason: str | None = None

    @classmethod
    def completed(cls) -> "BindResult":
        return cls(BindStatus.COMPLETED)

    @classmethod
    def pending(cls) -> "BindResult":
        return cls(BindStatus.PENDING)

    @classmethod
    def rejected(cls, reason: str) -> "BindResult":
        return cls(BindStatus.REJECTED, reason)


@dataclass(frozen=True, slots=True)
class Binding:
    """
    Immutable snapshot of a session's identity.

    `connection` and `namespace` are set if and only if both `address` and `callback` are set.
    """

    state: BindState = BindState.UNBOUND
    address: Address | None = None
    callback: EventSink | None = None
    namespace: str | None = None
    connection: ConnectionHandle | None = None
    reason: str | None = None

    @property
    def missing(self) -> str | None:
        """Which half a partially bound session still waits for ("address" or "callback")."""
        if self.state is not BindState.PARTIALLY_BOUND:
            return None
        return "address" if self.address is None else "callback"
