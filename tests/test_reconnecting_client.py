"""
Tests for the Reconnecting Client

Tests for the connection state machine: backoff schedule, giving up,
explicit disconnect, join gating and inbound classification.
"""

import asyncio
import json

import pytest

from src.client import (
    ConnectionState,
    ReconnectingClient,
    TransportEvent,
    reconnect_delay,
)


class FakeClientWebSocket:
    """Client-side connection fed by the test."""

    def __init__(self):
        self.sent_messages = []
        self.closed = False
        self._queue = asyncio.Queue()

    async def send(self, message):
        self.sent_messages.append(message)

    async def close(self):
        self.closed = True
        self._queue.put_nowait(None)

    def feed(self, data):
        self._queue.put_nowait(json.dumps(data))

    def drop(self):
        """Simulate the server closing the connection."""
        self._queue.put_nowait(None)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        return item


class FakeWebSocketFactory:
    """Returns queued outcomes; refuses the connection once they run out."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self, url):
        self.calls += 1
        outcome = self.outcomes.pop(0) if self.outcomes else None
        if outcome is None:
            raise OSError("connection refused")
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeTimerHandle:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeTimers:
    """Records scheduled reconnects instead of sleeping."""

    def __init__(self):
        self.handles = []

    def __call__(self, delay, callback):
        handle = FakeTimerHandle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def delays(self):
        return [handle.delay for handle in self.handles]

    def fire_last(self):
        handle = self.handles[-1]
        if not handle.cancelled:
            handle.callback()


async def settle():
    for _ in range(20):
        await asyncio.sleep(0)


def make_client(factory, timers):
    return ReconnectingClient(
        "ws://chat.test", websocket_factory=factory, timer_factory=timers
    )


def test_reconnect_delay_doubles():
    """Test the exponential backoff formula."""
    assert [reconnect_delay(n) for n in range(1, 6)] == [2, 4, 8, 16, 32]


@pytest.mark.asyncio
async def test_construction_connects():
    """Test that a new client moves to CONNECTING then CONNECTED."""
    ws = FakeClientWebSocket()
    factory = FakeWebSocketFactory(ws)
    client = make_client(factory, FakeTimers())

    assert client.state is ConnectionState.CONNECTING
    await settle()

    assert client.state is ConnectionState.CONNECTED
    assert client.session.connected
    assert client.reconnect_attempts == 0
    assert factory.calls == 1
    await client.disconnect()


@pytest.mark.asyncio
async def test_backoff_schedule_then_give_up():
    """Test delays 2, 4, 8, 16, 32 and no attempt after the sixth failure."""
    factory = FakeWebSocketFactory()
    timers = FakeTimers()
    client = make_client(factory, timers)
    await settle()

    for _ in range(5):
        assert client.state is ConnectionState.RECONNECTING
        timers.fire_last()
        assert client.state is ConnectionState.CONNECTING
        await settle()

    assert timers.delays == [2, 4, 8, 16, 32]
    assert client.state is ConnectionState.GAVE_UP
    assert factory.calls == 6
    assert not client.has_pending_reconnect


@pytest.mark.asyncio
async def test_successful_open_resets_retry_counter():
    """Test that the counter restarts after a connection succeeds."""
    ws1, ws2 = FakeClientWebSocket(), FakeClientWebSocket()
    factory = FakeWebSocketFactory(ws1, OSError("refused"), ws2)
    timers = FakeTimers()
    client = make_client(factory, timers)
    await settle()

    ws1.drop()
    await settle()
    timers.fire_last()
    await settle()
    assert client.reconnect_attempts == 2
    timers.fire_last()
    await settle()
    assert client.state is ConnectionState.CONNECTED
    assert client.reconnect_attempts == 0

    ws2.drop()
    await settle()

    assert timers.delays == [2, 4, 2]
    await client.disconnect()


@pytest.mark.asyncio
async def test_disconnect_cancels_pending_reconnect():
    """Test that no reconnect happens after an explicit disconnect."""
    factory = FakeWebSocketFactory()
    timers = FakeTimers()
    client = make_client(factory, timers)
    await settle()
    assert client.has_pending_reconnect

    await client.disconnect()
    timers.handles[-1].callback()
    await settle()

    assert timers.handles[-1].cancelled
    assert client.state is ConnectionState.DISCONNECTED
    assert factory.calls == 1
    assert len(timers.handles) == 1


@pytest.mark.asyncio
async def test_disconnect_while_connected_resets_session():
    """Test that an explicit disconnect closes and clears everything."""
    ws = FakeClientWebSocket()
    timers = FakeTimers()
    client = make_client(FakeWebSocketFactory(ws), timers)
    await settle()
    await client.join_room("alice")
    ws.feed({"type": "user_count", "count": 2})
    await settle()

    await client.disconnect()
    await settle()

    assert ws.closed
    assert client.state is ConnectionState.DISCONNECTED
    assert not client.session.in_room
    assert client.session.username is None
    assert client.session.messages == []
    assert timers.handles == []


@pytest.mark.asyncio
async def test_disconnect_while_connecting():
    """Test that disconnect during the opening handshake ends DISCONNECTED."""
    opened = asyncio.Event()

    async def slow_factory(url):
        opened.set()
        await asyncio.sleep(60)

    timers = FakeTimers()
    client = ReconnectingClient(
        "ws://chat.test", websocket_factory=slow_factory, timer_factory=timers
    )
    await opened.wait()

    await client.disconnect()

    assert client.state is ConnectionState.DISCONNECTED
    assert timers.handles == []


@pytest.mark.asyncio
async def test_join_room_requires_connection():
    """Test that join is rejected unless CONNECTED."""
    client = ReconnectingClient("ws://chat.test", auto_connect=False)

    assert client.state is ConnectionState.DISCONNECTED
    assert await client.join_room("alice") is False
    assert await client.send_message("hi") is False
    assert not client.session.in_room


@pytest.mark.asyncio
async def test_join_room_and_send_message_when_connected():
    """Test the envelopes written once connected."""
    ws = FakeClientWebSocket()
    client = make_client(FakeWebSocketFactory(ws), FakeTimers())
    await settle()

    assert await client.join_room("  alice ") is True
    assert await client.send_message("hello") is True

    assert [json.loads(m) for m in ws.sent_messages] == [
        {"type": "join", "username": "  alice "},
        {"type": "chat", "text": "hello"},
    ]
    assert client.session.in_room
    assert client.session.username == "alice"
    await client.disconnect()


@pytest.mark.asyncio
async def test_inbound_envelopes_update_session():
    """Test classification of received envelopes into session state."""
    ws = FakeClientWebSocket()
    client = make_client(FakeWebSocketFactory(ws), FakeTimers())
    await settle()

    ws.feed({"type": "history", "messages": [
        {"username": "bob", "message": "earlier", "timestamp": "t0"},
    ]})
    ws.feed({"type": "system_message", "message": "Welcome", "timestamp": "t1"})
    ws.feed({"type": "user_count", "count": 2})
    ws.feed({"type": "user_joined", "username": "carol", "timestamp": "t2"})
    ws.feed({"type": "chat", "username": "bob", "message": "hi", "timestamp": "t3"})
    ws.feed({"type": "user_left", "username": "carol", "timestamp": "t4"})
    ws.feed({"type": "error", "message": "Invalid message text"})
    ws._queue.put_nowait("not json")
    ws.feed({"type": "mystery"})
    await settle()

    assert client.session.user_count == 2
    assert [(e.kind, e.message) for e in client.session.messages] == [
        ("user", "earlier"),
        ("system", "Welcome"),
        ("system", "carol joined the room"),
        ("user", "hi"),
        ("system", "carol left the room"),
        ("error", "Invalid message text"),
    ]
    assert client.state is ConnectionState.CONNECTED
    await client.disconnect()


@pytest.mark.asyncio
async def test_rejoins_after_reconnect():
    """Test that the remembered username is sent again on reconnect."""
    ws1, ws2 = FakeClientWebSocket(), FakeClientWebSocket()
    timers = FakeTimers()
    client = make_client(FakeWebSocketFactory(ws1, ws2), timers)
    await settle()
    await client.join_room("alice")

    ws1.drop()
    await settle()
    assert not client.session.connected
    timers.fire_last()
    await settle()

    assert client.state is ConnectionState.CONNECTED
    assert [json.loads(m) for m in ws2.sent_messages] == [
        {"type": "join", "username": "alice"}
    ]
    await client.disconnect()


@pytest.mark.asyncio
async def test_events_ignored_outside_active_states():
    """Test that stray transport events do not schedule reconnects."""
    timers = FakeTimers()
    client = ReconnectingClient(
        "ws://chat.test", timer_factory=timers, auto_connect=False
    )

    client.handle_transport_event(TransportEvent.CLOSE)
    client.handle_transport_event(TransportEvent.ERROR, OSError("late"))
    client.handle_transport_event(TransportEvent.OPEN)

    assert client.state is ConnectionState.DISCONNECTED
    assert timers.handles == []


@pytest.mark.asyncio
async def test_send_message_requires_joining_first():
    """Test that chat is not sent before the client has joined."""
    ws = FakeClientWebSocket()
    client = make_client(FakeWebSocketFactory(ws), FakeTimers())
    await settle()

    assert client.state is ConnectionState.CONNECTED
    assert await client.send_message("hello") is False
    assert ws.sent_messages == []
    await client.disconnect()


@pytest.mark.asyncio
async def test_frame_with_non_string_type_is_ignored():
    """Test that an unusable type keeps the reader running."""
    ws = FakeClientWebSocket()
    client = make_client(FakeWebSocketFactory(ws), FakeTimers())
    await settle()

    ws.feed({"type": []})
    ws.feed({"type": "user_count", "count": 3})
    await settle()

    assert client.state is ConnectionState.CONNECTED
    assert client.session.user_count == 3
    await client.disconnect()


@pytest.mark.asyncio
async def test_failing_listener_triggers_reconnect():
    """Test that an error while handling a frame drops and retries the connection."""
    ws = FakeClientWebSocket()
    timers = FakeTimers()
    client = make_client(FakeWebSocketFactory(ws), timers)
    await settle()

    def on_update(category, session):
        if category == "user_count":
            raise RuntimeError("listener broke")

    client.session.set_on_update(on_update)
    ws.feed({"type": "user_count", "count": 2})
    await settle()

    assert ws.closed
    assert client.state is ConnectionState.RECONNECTING
    assert timers.delays == [2]
    assert not client.session.connected
    await client.disconnect()
