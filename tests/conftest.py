"""Shared fakes and fixtures for push-session tests."""

import asyncio

import pytest

from push_session.connection import ConnectionRegistry


class FakeConnection:
    """In-memory ConnectionHandle recording every call."""

    def __init__(self, origin):
        self.origin = origin
        self.connected = True
        self.sessions = []
        self.emitted = []
        self.sent = []
        self.disconnected = []
        self.reconnects = 0

    async def register_session(self, namespace, callback):
        self.sessions.append((namespace, callback))

    async def emit(self, namespace, event, args):
        self.emitted.append((namespace, event, args))

    async def send(self, namespace, payload):
        self.sent.append((namespace, payload))

    async def disconnect(self, namespace):
        self.disconnected.append(namespace)

    async def reconnect(self):
        self.reconnects += 1

    async def is_connected(self):
        return self.connected


class FakeConnectionManager:
    """ConnectionManager creating FakeConnections; can be told to fail."""

    def __init__(self):
        self.created = []
        self.failures = 0

    async def create_or_reuse(self, origin):
        # Yield so concurrent acquirers really interleave.
        await asyncio.sleep(0)
        if self.failures:
            self.failures -= 1
            raise OSError("resource exhausted")
        connection = FakeConnection(origin)
        self.created.append(connection)
        return connection


class RecordingSink:
    """EventSink recording inbound events."""

    def __init__(self, name="sink"):
        self.name = name
        self.events = []

    def on_connect(self):
        self.events.append(("connect",))

    def on_disconnect(self):
        self.events.append(("disconnect",))

    def on_message(self, data):
        self.events.append(("message", data))

    def on_event(self, event, *args):
        self.events.append(("event", event, args))

    def on_error(self, error):
        self.events.append(("error", error))

    def __repr__(self):
        return f"RecordingSink({self.name!r})"


@pytest.fixture
def connection_manager():
    return FakeConnectionManager()


@pytest.fixture
def registry(connection_manager):
    return ConnectionRegistry(connection_manager)


@pytest.fixture
def sink():
    return RecordingSink("primary")


@pytest.fixture
def other_sink():
    return RecordingSink("secondary")
