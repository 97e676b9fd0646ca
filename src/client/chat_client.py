"""
Reconnecting Chat Client

This module provides the ReconnectingClient class that extends the base
ClientService with connection lifecycle management. It owns one logical
connection to the chat server, classifies incoming envelopes into session
updates, and reconnects with exponential backoff after the connection drops.

Architecture:
    - Extends ClientService for basic WebSocket operations
    - Explicit state machine driven by handle_transport_event
    - At most one pending reconnect timer, always cancellable
    - Updates a ChatSession that the UI layer observes

States:
    DISCONNECTED -> CONNECTING -> CONNECTED -> RECONNECTING -> CONNECTING ...
    GAVE_UP once MAX_RECONNECT_ATTEMPTS consecutive failures are exhausted

Usage:
    client = ReconnectingClient("ws://localhost:8080")
    client.session.set_on_update(on_update)
    ...
    await client.join_room("alice")
    await client.send_message("hello")
    await client.disconnect()
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Callable, Optional

from websockets.exceptions import ConnectionClosed

from .schemas import parse_server_event
from .service import DEFAULT_SERVER_URL, ClientService
from .session import ChatSession

logger = logging.getLogger(__name__)

MAX_RECONNECT_ATTEMPTS = 5


class ConnectionState(Enum):
    """Lifecycle states of the client connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    GAVE_UP = "gave_up"


class TransportEvent(Enum):
    """Transport events that drive the state machine."""

    OPEN = "open"
    CLOSE = "close"
    ERROR = "error"


def reconnect_delay(attempt: int) -> float:
    """
    Backoff delay before the given reconnect attempt.

    Args:
        attempt: 1-based attempt number

    Returns:
        Delay in seconds: 2, 4, 8, 16, 32 for attempts 1 to 5
    """
    return float(2**attempt)


class ReconnectingClient(ClientService):
    """
    Chat client with automatic reconnection.

    Attributes:
        state: Current ConnectionState
        reconnect_attempts: Consecutive failed attempts since the last open
        max_reconnect_attempts: Attempts allowed before giving up
        session: Observable session state
    """

    def __init__(
        self,
        server_url: str = DEFAULT_SERVER_URL,
        websocket_factory: Optional[Callable] = None,
        session: Optional[ChatSession] = None,
        timer_factory: Optional[Callable[[float, Callable], Any]] = None,
        max_reconnect_attempts: int = MAX_RECONNECT_ATTEMPTS,
        auto_connect: bool = True,
    ):
        """
        Initialize the client.

        Args:
            server_url: WebSocket URL of the chat server
            websocket_factory: Optional factory for creating WebSocket
                             connections (for dependency injection/testing)
            session: Session to update, a new ChatSession if omitted
            timer_factory: Callable(delay, callback) returning a handle with
                           cancel(); defaults to the running loop's call_later
            max_reconnect_attempts: Attempts allowed before giving up
            auto_connect: Start connecting immediately; requires a running
                          event loop
        """
        super().__init__(server_url, websocket_factory)

        self.state = ConnectionState.DISCONNECTED
        self.reconnect_attempts = 0
        self.max_reconnect_attempts = max_reconnect_attempts
        self.session = session or ChatSession()
        self._timer_factory = timer_factory
        self._reconnect_handle = None
        self._transport_task: Optional[asyncio.Task] = None

        if auto_connect:
            self.start()

    def start(self) -> None:
        """
        Begin connecting to the server.

        Has no effect while a connection is already open or being opened.
        """
        if self.state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return
        self._transition(ConnectionState.CONNECTING)
        self._transport_task = asyncio.get_running_loop().create_task(
            self._run_transport()
        )

    @property
    def has_pending_reconnect(self) -> bool:
        return self._reconnect_handle is not None

    def _transition(self, state: ConnectionState) -> None:
        if state is not self.state:
            logger.debug("Connection state %s -> %s", self.state.value, state.value)
            self.state = state

    async def _run_transport(self) -> None:
        """Open the transport, then receive until it closes."""
        try:
            await self.connect()
        except ConnectionError as e:
            self.handle_transport_event(TransportEvent.ERROR, e)
            return

        self.handle_transport_event(TransportEvent.OPEN)

        if self.session.in_room and self.session.username:
            try:
                await self.join(self.session.username)
            except (ConnectionError, ConnectionClosed) as e:
                logger.warning("Could not rejoin after reconnect: %s", e)

        error = None
        try:
            async for message in self.websocket:
                self._process_incoming_message(message)
        except ConnectionClosed as e:
            error = e
        except Exception as e:
            logger.exception("Unexpected error while receiving")
            error = e
            await self.close_transport()
        finally:
            self.websocket = None
            self._connected = False

        if error is not None:
            self.handle_transport_event(TransportEvent.ERROR, error)
        else:
            self.handle_transport_event(TransportEvent.CLOSE)

    def handle_transport_event(
        self, event: TransportEvent, error: Optional[BaseException] = None
    ) -> None:
        """
        Single entry point for state transitions.

        Args:
            event: What happened to the transport
            error: The exception for ERROR events
        """
        if event is TransportEvent.OPEN:
            if self.state is not ConnectionState.CONNECTING:
                logger.debug("Ignoring open in state %s", self.state.value)
                return
            self._transition(ConnectionState.CONNECTED)
            self.reconnect_attempts = 0
            self.session.set_connected(True)
            logger.info("Connected to %s", self.server_url)
            return

        if self.state not in (
            ConnectionState.CONNECTED,
            ConnectionState.CONNECTING,
        ):
            logger.debug(
                "Ignoring %s in state %s", event.value, self.state.value
            )
            return

        if error is not None:
            logger.warning("Connection error: %s", error)
        else:
            logger.info("Connection closed")
        self.session.set_connected(False)

        if self.reconnect_attempts >= self.max_reconnect_attempts:
            self._transition(ConnectionState.GAVE_UP)
            logger.error("Max reconnection attempts reached")
            return

        self.reconnect_attempts += 1
        delay = reconnect_delay(self.reconnect_attempts)
        self._transition(ConnectionState.RECONNECTING)
        logger.info(
            "Attempting to reconnect in %.0fs (%d/%d)",
            delay,
            self.reconnect_attempts,
            self.max_reconnect_attempts,
        )
        self._schedule_reconnect(delay)

    def _schedule_reconnect(self, delay: float) -> None:
        self._cancel_reconnect()
        if self._timer_factory is not None:
            self._reconnect_handle = self._timer_factory(delay, self._reconnect)
        else:
            self._reconnect_handle = asyncio.get_running_loop().call_later(
                delay, self._reconnect
            )

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        if self.state is not ConnectionState.RECONNECTING:
            return
        self.start()

    def _process_incoming_message(self, message) -> None:
        """
        Classify one inbound frame and apply it to the session.

        Args:
            message: Raw JSON message string from WebSocket
        """
        try:
            data = json.loads(message)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse message JSON: %s", e)
            return

        if not isinstance(data, dict):
            logger.error("Ignoring non-object message")
            return

        event = parse_server_event(data)
        if event is not None:
            self.session.apply(event)

    async def join_room(self, username: str) -> bool:
        """
        Join the chat room.

        Args:
            username: Display name to join under

        Returns:
            True if the join was sent, False if not currently connected
        """
        if self.state is not ConnectionState.CONNECTED:
            logger.warning("WebSocket is not open. Cannot join room.")
            return False

        await self.join(username)
        self.session.mark_joined(username.strip())
        return True

    async def send_message(self, text: str) -> bool:
        """
        Send a chat message.

        Returns:
            True if the message was sent, False if not connected or not
            joined
        """
        if self.state is not ConnectionState.CONNECTED:
            logger.warning("WebSocket is not open. Cannot send message.")
            return False
        if not self.session.in_room:
            logger.warning("Not in the room. Join before sending messages.")
            return False

        await self.send_chat(text)
        return True

    async def disconnect(self) -> None:
        """
        Disconnect at the user's request.

        Cancels any pending reconnect, closes the transport and clears the
        session. Safe to call from any state; always ends DISCONNECTED.
        """
        self._transition(ConnectionState.DISCONNECTED)
        self._cancel_reconnect()
        self.reconnect_attempts = 0

        await self.close_transport()

        task = self._transport_task
        self._transport_task = None
        if (
            task is not None
            and not task.done()
            and task is not asyncio.current_task()
        ):
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        self.session.reset()
        logger.info("Disconnected by user")
