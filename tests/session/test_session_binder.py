"""
Tests for push_session.session._binder.SessionBinder (one-time binding and its state machine).
"""

import asyncio
import threading
from unittest.mock import AsyncMock

import pytest

from push_session._exceptions import ConnectionUnavailableError, InvalidAddressError
from push_session.session import Binding, BindResult, BindState, BindStatus, SessionBinder


@pytest.fixture
def binder(registry):
    return SessionBinder(registry)


def test_new_binder_is_unbound(binder):
    assert binder.state is BindState.UNBOUND
    assert binder.binding == Binding()
    assert binder.address is None
    assert binder.callback is None
    assert binder.namespace is None
    assert binder.connection is None


@pytest.mark.asyncio
async def test_bind_nothing_is_pending_noop(binder, connection_manager):
    result = await binder.bind(None, None)
    assert result == BindResult.pending()
    assert binder.binding == Binding()
    assert connection_manager.created == []


@pytest.mark.asyncio
async def test_bind_both_completes(binder, sink, connection_manager):
    result = await binder.bind("http://host/chat", sink)
    assert result.status is BindStatus.COMPLETED
    assert binder.state is BindState.BOUND
    assert binder.namespace == "chat"
    assert binder.callback is sink
    assert binder.connection is connection_manager.created[0]
    assert binder.connection.origin == "http://host"
    assert binder.connection.sessions == [("chat", sink)]


@pytest.mark.asyncio
async def test_address_then_callback(binder, sink, connection_manager):
    first = await binder.bind("http://host/chat", None)
    assert first.status is BindStatus.PENDING
    assert binder.state is BindState.PARTIALLY_BOUND
    assert binder.binding.missing == "callback"
    assert binder.connection is None
    assert connection_manager.created == []

    second = await binder.bind(None, sink)
    assert second.status is BindStatus.COMPLETED
    assert binder.namespace == "chat"
    assert len(connection_manager.created) == 1


@pytest.mark.asyncio
async def test_callback_then_address(binder, sink, connection_manager):
    first = await binder.bind(None, sink)
    assert first.status is BindStatus.PENDING
    assert binder.binding.missing == "address"
    assert binder.namespace is None

    second = await binder.bind("http://host/", None)
    assert second.status is BindStatus.COMPLETED
    assert binder.namespace == ""
    assert connection_manager.created[0].sessions == [("", sink)]


@pytest.mark.asyncio
async def test_rebind_after_completed_is_rejected_and_stays_bound(binder, sink, other_sink):
    assert (await binder.bind("http://host/chat", sink)).status is BindStatus.COMPLETED
    bound = binder.binding

    result = await binder.bind("http://host/chat", other_sink)
    assert result == BindResult.rejected("already bound")
    assert binder.binding is bound
    assert binder.state is BindState.BOUND


@pytest.mark.asyncio
async def test_bind_nothing_after_completed_is_still_pending(binder, sink):
    await binder.bind("http://host/chat", sink)
    assert (await binder.bind()).status is BindStatus.PENDING
    assert binder.state is BindState.BOUND


@pytest.mark.asyncio
async def test_rebind_while_partially_bound_is_terminal(binder, sink, connection_manager):
    await binder.bind("http://host/chat", None)

    result = await binder.bind("http://host/other", None)
    assert result.status is BindStatus.REJECTED
    assert binder.state is BindState.REJECTED
    assert binder.address.path == "/chat"

    # Supplying the missing half no longer helps
    later = await binder.bind(None, sink)
    assert later.status is BindStatus.REJECTED
    assert binder.connection is None
    assert connection_manager.created == []


@pytest.mark.asyncio
async def test_callback_overwrite_is_rejected(binder, sink, other_sink):
    await binder.bind(None, sink)
    result = await binder.bind(None, other_sink)
    assert result.status is BindStatus.REJECTED
    assert binder.callback is sink


@pytest.mark.asyncio
async def test_invalid_address_leaves_state_unchanged(binder, sink, connection_manager):
    await binder.bind(None, sink)
    before = binder.binding
    with pytest.raises(InvalidAddressError):
        await binder.bind("not an address", None)
    assert binder.binding is before

    # A corrected retry succeeds
    assert (await binder.bind("http://host/chat", None)).status is BindStatus.COMPLETED


@pytest.mark.asyncio
async def test_connection_failure_leaves_state_unchanged(binder, sink, connection_manager):
    await binder.bind("http://host/chat", None)
    before = binder.binding
    connection_manager.failures = 1

    with pytest.raises(ConnectionUnavailableError):
        await binder.bind(None, sink)
    assert binder.binding is before
    assert binder.state is BindState.PARTIALLY_BOUND

    assert (await binder.bind(None, sink)).status is BindStatus.COMPLETED


@pytest.mark.asyncio
async def test_register_session_failure_is_connection_unavailable(registry, sink):
    binder = SessionBinder(registry)
    connection = await registry.acquire("http://host")
    connection.register_session = AsyncMock(side_effect=RuntimeError("boom"))

    with pytest.raises(ConnectionUnavailableError, match="boom"):
        await binder.bind("http://host/chat", sink)
    assert binder.state is BindState.UNBOUND


@pytest.mark.asyncio
async def test_fallback_address_used_only_without_address(binder, sink):
    result = await binder.bind(None, sink, fallback_address="http://fallback/")
    assert result.status is BindStatus.COMPLETED
    assert binder.address.origin == "http://fallback"


@pytest.mark.asyncio
async def test_fallback_address_ignored_when_address_set(binder, sink):
    await binder.bind("http://host/chat", None)
    await binder.bind(None, sink, fallback_address="http://fallback/")
    assert binder.address.origin == "http://host"


@pytest.mark.asyncio
async def test_allowed_schemes_are_enforced(registry, sink):
    binder = SessionBinder(registry, allowed_schemes=["wss"])
    with pytest.raises(InvalidAddressError):
        await binder.bind("http://host/chat", sink)
    assert (await binder.bind("wss://host/chat", sink)).status is BindStatus.COMPLETED


@pytest.mark.asyncio
async def test_concurrent_full_binds_complete_exactly_once(binder, sink, other_sink, connection_manager):
    results = await asyncio.gather(
        binder.bind("http://host/a", sink),
        binder.bind("http://host/b", other_sink),
        binder.bind("http://host/c", sink),
    )
    statuses = [result.status for result in results]
    assert statuses.count(BindStatus.COMPLETED) == 1
    assert statuses.count(BindStatus.REJECTED) == 2
    assert len(connection_manager.created) == 1
    assert len(connection_manager.created[0].sessions) == 1


@pytest.mark.asyncio
async def test_concurrent_halves_acquire_once(binder, sink, connection_manager):
    results = await asyncio.gather(
        binder.bind("http://host/chat", None),
        binder.bind(None, sink),
    )
    statuses = sorted(result.status.value for result in results)
    assert statuses == ["completed", "pending"]
    assert binder.state is BindState.BOUND
    assert len(connection_manager.created) == 1


def test_halves_submitted_from_threads_bind_once(binder, sink, connection_manager):
    loop = asyncio.new_event_loop()
    loop_thread = threading.Thread(target=loop.run_forever, daemon=True)
    loop_thread.start()

    start = threading.Barrier(2)
    results = []
    errors = []

    def submit(address, callback):
        start.wait()
        future = asyncio.run_coroutine_threadsafe(binder.bind(address, callback), loop)
        try:
            results.append(future.result(timeout=5))
        except Exception as e:
            errors.append(e)

    workers = [
        threading.Thread(target=submit, args=("http://host/chat", None)),
        threading.Thread(target=submit, args=(None, sink)),
    ]
    try:
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(timeout=5)
    finally:
        loop.call_soon_threadsafe(loop.stop)
        loop_thread.join(timeout=5)
        loop.close()

    assert errors == []
    statuses = [result.status for result in results]
    assert statuses.count(BindStatus.COMPLETED) == 1
    assert statuses.count(BindStatus.PENDING) == 1
    assert binder.state is BindState.BOUND
    assert len(connection_manager.created) == 1
    assert connection_manager.created[0].sessions == [("chat", sink)]
