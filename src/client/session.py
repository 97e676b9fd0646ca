"""
Observable Chat Session State

This module holds what the user interface shows: the connection flag, the
message log, the number of users online and whether this client has joined.

Usage:
    session = ChatSession()
    session.set_on_update(lambda category, session: redraw())
    session.apply(event)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

from .schemas import (
    BaseEvent,
    ChatMessage,
    ErrorEvent,
    HistoryEvent,
    SystemMessageEvent,
    UserCountEvent,
    UserJoinedEvent,
    UserLeftEvent,
)

logger = logging.getLogger(__name__)

SYSTEM_USERNAME = "system"


@dataclass
class LogEntry:
    """
    One line of the message log.

    Attributes:
        kind: "user", "system" or "error"
        message: Text to display
        username: Sender, "system" for system lines, None for errors
        timestamp: ISO 8601 timestamp
    """

    kind: str
    message: str
    username: Optional[str] = None
    timestamp: Optional[str] = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChatSession:
    """
    Session state updated from classified server events.

    All updates happen on the event loop thread that receives messages;
    listeners are called synchronously after each change and must not block.

    Attributes:
        connected: Whether the transport is currently open
        user_count: Last user count reported by the server
        messages: Message log in arrival order
        in_room: Whether this client has sent a join
        username: Username used for the last join
    """

    def __init__(self):
        self.connected = False
        self.user_count = 0
        self.messages: List[LogEntry] = []
        self.in_room = False
        self.username: Optional[str] = None
        self._on_update: Optional[Callable[[str, "ChatSession"], None]] = None

    def set_on_update(
        self, callback: Callable[[str, "ChatSession"], None]
    ) -> None:
        """
        Register callback for session changes.

        Args:
            callback: Function receiving the change category and the session
        """
        self._on_update = callback

    def apply(self, event: BaseEvent) -> None:
        """
        Apply a server event to the session.

        Args:
            event: A parsed server event
        """
        if isinstance(event, HistoryEvent):
            self.messages = [
                LogEntry("user", item.message, item.username, item.timestamp)
                for item in event.messages
            ]
        elif isinstance(event, SystemMessageEvent):
            self._append_system(event.message, event.timestamp)
        elif isinstance(event, UserJoinedEvent):
            self._append_system(f"{event.username} joined the room")
        elif isinstance(event, UserLeftEvent):
            self._append_system(f"{event.username} left the room")
        elif isinstance(event, UserCountEvent):
            self.user_count = event.count or 0
        elif isinstance(event, ChatMessage):
            self.messages.append(
                LogEntry("user", event.message, event.username, event.timestamp)
            )
        elif isinstance(event, ErrorEvent):
            logger.warning("Server error: %s", event.message)
            self.messages.append(LogEntry("error", event.message, None, _now()))
        else:
            logger.debug("Ignoring event %r", event)
            return

        self._notify(event.category)

    def _append_system(self, message: str, timestamp: Optional[str] = None):
        self.messages.append(
            LogEntry("system", message, SYSTEM_USERNAME, timestamp or _now())
        )

    def set_connected(self, connected: bool) -> None:
        self.connected = connected
        self._notify("connection")

    def mark_joined(self, username: str) -> None:
        """Record that a join was sent under ``username``."""
        self.username = username
        self.in_room = True
        self._notify("membership")

    def reset(self) -> None:
        """Clear the log and membership, as after an explicit disconnect."""
        self.connected = False
        self.user_count = 0
        self.messages = []
        self.in_room = False
        self.username = None
        self._notify("reset")

    def _notify(self, category: str) -> None:
        if self._on_update:
            self._on_update(category, self)
