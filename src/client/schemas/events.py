"""
Event Schemas

Envelopes pushed by the chat server, and the categories the client session
sorts them into.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .base import BaseEvent

logger = logging.getLogger(__name__)


class EventCategory:
    """Session-facing categories of server events."""

    HISTORY = "history"
    SYSTEM = "system"
    PRESENCE_JOINED = "presence-joined"
    PRESENCE_LEFT = "presence-left"
    USER_COUNT = "user_count"
    CHAT = "chat"
    ERROR = "error"


@dataclass
class ChatMessage(BaseEvent):
    """
    A chat message broadcast by the server.

    Attributes:
        username: Username of the sender
        message: The message text
        timestamp: ISO 8601 timestamp assigned when the message was stored
    """

    username: str
    message: str
    timestamp: Optional[str] = None

    message_type = "chat"
    category = EventCategory.CHAT


@dataclass
class HistoryEvent(BaseEvent):
    """
    Recent messages replayed after joining, oldest first.

    Attributes:
        messages: List of ChatMessage objects
    """

    messages: List[ChatMessage] = field(default_factory=list)

    message_type = "history"
    category = EventCategory.HISTORY

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "HistoryEvent":
        messages = [
            ChatMessage.from_dict(item)
            for item in data.get("messages") or []
            if isinstance(item, dict)
        ]
        return cls(messages=messages)


@dataclass
class SystemMessageEvent(BaseEvent):
    """
    Informational message from the server, such as the welcome greeting.

    Attributes:
        message: Text to display
        timestamp: ISO 8601 timestamp
    """

    message: str
    timestamp: Optional[str] = None

    message_type = "system_message"
    category = EventCategory.SYSTEM


@dataclass
class UserJoinedEvent(BaseEvent):
    """Another user joined the room."""

    username: str
    timestamp: Optional[str] = None

    message_type = "user_joined"
    category = EventCategory.PRESENCE_JOINED


@dataclass
class UserLeftEvent(BaseEvent):
    """A user left the room."""

    username: str
    timestamp: Optional[str] = None

    message_type = "user_left"
    category = EventCategory.PRESENCE_LEFT


@dataclass
class UserCountEvent(BaseEvent):
    """Number of users currently in the room."""

    count: int = 0

    message_type = "user_count"
    category = EventCategory.USER_COUNT


@dataclass
class ErrorEvent(BaseEvent):
    """Error reported by the server for the last request."""

    message: str = "An error occurred"

    message_type = "error"
    category = EventCategory.ERROR


EVENT_TYPES = {
    event_class.message_type: event_class
    for event_class in (
        HistoryEvent,
        SystemMessageEvent,
        UserJoinedEvent,
        UserLeftEvent,
        UserCountEvent,
        ChatMessage,
        ErrorEvent,
    )
}


def parse_server_event(data: Dict[str, Any]) -> Optional[BaseEvent]:
    """
    Classify a decoded server envelope.

    Args:
        data: The decoded JSON object

    Returns:
        The typed event, or None if the type is unknown or fields are missing
    """
    message_type = data.get("type")
    if not isinstance(message_type, str):
        logger.warning("Message without a string type: %r", message_type)
        return None

    event_class = EVENT_TYPES.get(message_type)
    if event_class is None:
        logger.warning("Unknown message type: %s", message_type)
        return None

    try:
        return event_class.from_dict(data)
    except TypeError as e:
        logger.warning("Malformed %s event: %s", message_type, e)
        return None
