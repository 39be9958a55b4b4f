"""
push-session session layer public API.

Exports:
    - Session: Application-facing handle bound once to an address and callback.
    - SessionBinder: Coroutine-safe, write-once identity binding used by Session.
    - BindState: UNBOUND, PARTIALLY_BOUND, BOUND, REJECTED.
    - BindStatus: COMPLETED, PENDING, REJECTED outcome of one bind call.
    - BindResult: Status plus rejection reason.
    - Binding: Immutable identity snapshot.
"""

from ._binder import SessionBinder
from ._session import Session
from ._state import Binding, BindResult, BindState, BindStatus

__all__ = [
    "Session",
    "SessionBinder",
    "BindState",
    "BindStatus",
    "BindResult",
    "Binding",
]
