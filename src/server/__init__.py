"""
Chat Server Package

This package provides the server side of the real-time chat room: the
connection registry, the protocol dispatcher, broadcast fan-out, message
persistence and the WebSocket transport.
"""

from .errors import ChatServerError, ProtocolError, PersistenceError
from .persistence import (
    StoredMessage,
    MessageStore,
    InMemoryMessageStore,
    JsonLinesMessageStore,
    MAX_MESSAGE_LENGTH,
    DEFAULT_HISTORY_LIMIT,
)
from .registry import ConnectionRegistry, ClientInfo
from .dispatcher import ProtocolDispatcher, ConnectionEvent, EventKind
from .utils import Broadcaster
from .websocket_server import WebSocketServer

__all__ = [
    "ChatServerError",
    "ProtocolError",
    "PersistenceError",
    "StoredMessage",
    "MessageStore",
    "InMemoryMessageStore",
    "JsonLinesMessageStore",
    "MAX_MESSAGE_LENGTH",
    "DEFAULT_HISTORY_LIMIT",
    "ConnectionRegistry",
    "ClientInfo",
    "ProtocolDispatcher",
    "ConnectionEvent",
    "EventKind",
    "Broadcaster",
    "WebSocketServer",
]
