"""
Client Package

This package provides the client side of the chat room: the ClientService
transport wrapper, the ReconnectingClient connection state machine, the
observable ChatSession and the protocol schemas.
"""

from .service import ClientService, DEFAULT_SERVER_URL
from .session import ChatSession, LogEntry
from .chat_client import (
    ReconnectingClient,
    ConnectionState,
    TransportEvent,
    MAX_RECONNECT_ATTEMPTS,
    reconnect_delay,
)
from .schemas import (
    # Base classes
    BaseRequest,
    BaseEvent,
    # Requests
    JoinRequest,
    ChatRequest,
    # Events
    EventCategory,
    ChatMessage,
    HistoryEvent,
    SystemMessageEvent,
    UserJoinedEvent,
    UserLeftEvent,
    UserCountEvent,
    ErrorEvent,
    parse_server_event,
)

__all__ = [
    # Service classes
    "ClientService",
    "DEFAULT_SERVER_URL",
    "ReconnectingClient",
    "ConnectionState",
    "TransportEvent",
    "MAX_RECONNECT_ATTEMPTS",
    "reconnect_delay",
    "ChatSession",
    "LogEntry",
    # Base schema classes
    "BaseRequest",
    "BaseEvent",
    # Requests
    "JoinRequest",
    "ChatRequest",
    # Events
    "EventCategory",
    "ChatMessage",
    "HistoryEvent",
    "SystemMessageEvent",
    "UserJoinedEvent",
    "UserLeftEvent",
    "UserCountEvent",
    "ErrorEvent",
    "parse_server_event",
]
