"""
Schemas Package

This package contains protocol message schemas for client-server communication.
Requests are sent by the client; events are pushed by the server and carry
the category the session uses to apply them.
"""

from .base import BaseRequest, BaseEvent
from .requests import JoinRequest, ChatRequest
from .events import (
    EventCategory,
    ChatMessage,
    HistoryEvent,
    SystemMessageEvent,
    UserJoinedEvent,
    UserLeftEvent,
    UserCountEvent,
    ErrorEvent,
    EVENT_TYPES,
    parse_server_event,
)

__all__ = [
    # Base classes
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
    "EVENT_TYPES",
    "parse_server_event",
]
