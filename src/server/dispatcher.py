"""
Protocol Dispatcher for the Chat Server

Handles every connection event (open, message, close, error) and routes
inbound envelopes to the join and chat operations.

Architecture:
    - One dispatch entry point, handle_event, switching over the event kind
    - A connection is "joined" exactly when it has a registry entry
    - Registry mutation and the broadcasts it triggers are serialized by a
      single asyncio.Lock; message store calls are awaited outside the lock
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from websockets.exceptions import ConnectionClosed

from .errors import PersistenceError, ProtocolError
from .persistence import DEFAULT_HISTORY_LIMIT, MessageStore, StoredMessage
from .registry import ConnectionRegistry
from .schemas import (
    ChatRequest,
    JoinRequest,
    create_chat_message,
    create_error_message,
    create_history_message,
    create_user_count_event,
    create_user_joined_event,
    create_user_left_event,
    create_welcome_message,
    parse_request,
)
from .utils import Broadcaster, validate_message_text, validate_username

logger = logging.getLogger(__name__)

NOT_JOINED = "You must join first"
SEND_FAILED = "Failed to send message"
JOIN_FAILED = "Failed to join chat"


class EventKind(Enum):
    """Kinds of transport events delivered to the dispatcher."""

    OPEN = "open"
    MESSAGE = "message"
    CLOSE = "close"
    ERROR = "error"


@dataclass
class ConnectionEvent:
    """
    A transport event for one connection.

    Attributes:
        kind: What happened
        connection: The connection the event belongs to
        payload: Raw frame for MESSAGE, exception for ERROR, else None
    """

    kind: EventKind
    connection: Any
    payload: Any = None


class ProtocolDispatcher:
    """
    Routes connection events to the chat room operations.

    Attributes:
        registry: Registry of joined connections
        store: Message store used for chat persistence and history
        broadcaster: Fan-out over the registry
        history_limit: Maximum number of messages replayed on join
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        store: MessageStore,
        broadcaster: Optional[Broadcaster] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ):
        self.registry = registry
        self.store = store
        self.broadcaster = broadcaster or Broadcaster(registry)
        self.history_limit = history_limit
        self._lock = asyncio.Lock()
        # Chats broadcast while a connection waits for its history
        self._joining: Dict[Any, List[StoredMessage]] = {}

    async def handle_event(self, event: ConnectionEvent):
        """
        Single entry point for transport events.

        Args:
            event: The connection event to process
        """
        if event.kind is EventKind.OPEN:
            await self.on_open(event.connection)
        elif event.kind is EventKind.MESSAGE:
            await self.on_message(event.connection, event.payload)
        elif event.kind is EventKind.CLOSE:
            await self.on_close(event.connection)
        elif event.kind is EventKind.ERROR:
            await self.on_error(event.connection, event.payload)

    async def on_open(self, websocket):
        """A new connection starts unjoined; nothing is registered yet."""
        logger.info(f"Client {id(websocket)} connected")

    async def on_message(self, websocket, raw):
        """
        Process one inbound frame from a connection.

        Args:
            websocket: The sending connection
            raw: The frame as received
        """
        try:
            request = parse_request(raw)
        except ProtocolError as e:
            logger.warning(f"Rejected frame from {id(websocket)}: {e.message}")
            await self.send(websocket, create_error_message(e.message))
            return

        if isinstance(request, JoinRequest):
            await self.handle_join(websocket, request)
        elif isinstance(request, ChatRequest):
            await self.handle_chat(websocket, request)

    async def handle_join(self, websocket, request: JoinRequest):
        """
        Handle a join request.

        Registers the trimmed username, replays history, greets the sender
        and announces the new member to everyone else.

        History is read outside the lock. Chats broadcast meanwhile are queued
        for the joiner and sent right after its history, minus any the
        history already holds, so the joiner sees each message once and
        never ahead of the history.
        """
        username, error = validate_username(request.username)
        if error:
            await self.send(websocket, create_error_message(error))
            return

        async with self._lock:
            self._joining[websocket] = []

        try:
            history = await self.store.recent(self.history_limit)
        except PersistenceError as e:
            logger.error(f"Failed to load history for {username}: {e}")
            async with self._lock:
                self._joining.pop(websocket, None)
            await self.send(websocket, create_error_message(JOIN_FAILED))
            return

        async with self._lock:
            queued = self._joining.pop(websocket, [])
            self.registry.register(websocket, username)

            await self.send(websocket, create_history_message(history))
            await self.send(websocket, create_welcome_message(username))
            await self.send(
                websocket, create_user_count_event(self.registry.count())
            )
            replayed = set(history)
            for stored in queued:
                if stored not in replayed:
                    await self.send(websocket, create_chat_message(stored))

            await self.broadcaster.broadcast(
                create_user_joined_event(username), exclude=websocket
            )
            await self.broadcaster.broadcast(
                create_user_count_event(self.registry.count())
            )

        logger.info(f"Client joined: {username}")

    async def handle_chat(self, websocket, request: ChatRequest):
        """
        Handle a chat request.

        The message is persisted first; only the stored record is broadcast,
        to every joined connection including the sender.
        """
        info = self.registry.get(websocket)
        if info is None:
            await self.send(websocket, create_error_message(NOT_JOINED))
            return

        text, error = validate_message_text(request.text)
        if error:
            await self.send(websocket, create_error_message(error))
            return

        try:
            stored = await self.store.append(info.username, text)
        except PersistenceError as e:
            logger.error(f"Failed to save message from {info.username}: {e}")
            await self.send(websocket, create_error_message(SEND_FAILED))
            return

        async with self._lock:
            await self.broadcaster.broadcast(create_chat_message(stored))
            for connection, queued in self._joining.items():
                if not self.registry.is_registered(connection):
                    queued.append(stored)

        logger.debug(f"Message from {info.username}: {text}")

    async def on_close(self, websocket):
        """
        Clean up after a connection closes.

        Joined connections are unregistered and the remaining clients get the
        new user count followed by a user_left event.
        """
        async with self._lock:
            info = self.registry.unregister(websocket)
            if info is None:
                logger.info(f"Client {id(websocket)} disconnected")
                return

            await self.broadcaster.broadcast(
                create_user_count_event(self.registry.count())
            )
            await self.broadcaster.broadcast(
                create_user_left_event(info.username)
            )

        logger.info(f"Client disconnected: {info.username}")

    async def on_error(self, websocket, error: BaseException):
        """Log a transport error; the following close performs cleanup."""
        logger.error(
            f"Error on client {id(websocket)}: {error!r}", exc_info=error
        )

    async def send(self, websocket, message: Dict[str, Any]):
        """
        Send an envelope to a single connection.

        Args:
            websocket: The recipient
            message: The envelope to send
        """
        try:
            await websocket.send(json.dumps(message))
        except ConnectionClosed:
            logger.info(
                f"Could not send {message.get('type')} to {id(websocket)}: "
                "connection closed"
            )
