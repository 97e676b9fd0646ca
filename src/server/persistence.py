"""
Message Persistence for the Chat Server

This module provides the durable, append-only store of chat messages used to
replay recent history to newly joined clients.

Two implementations share the MessageStore interface:
    - InMemoryMessageStore: list-backed, lost on restart
    - JsonLinesMessageStore: one JSON object per line in a file; blocking
      file I/O runs in a thread pool so other connections keep flowing
"""

import asyncio
import json
import logging
import os
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional

from .errors import PersistenceError

logger = logging.getLogger(__name__)

# Limits enforced by every store
MAX_MESSAGE_LENGTH = 1000
DEFAULT_HISTORY_LIMIT = 50


@dataclass(frozen=True)
class StoredMessage:
    """
    A persisted chat message.

    Attributes:
        username: Trimmed username of the sender
        message: Message text (at most MAX_MESSAGE_LENGTH characters)
        timestamp: ISO 8601 timestamp assigned when the message was stored
    """

    username: str
    message: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "username": self.username,
            "message": self.message,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoredMessage":
        """Create from dictionary."""
        return cls(
            username=data["username"],
            message=data["message"],
            timestamp=data["timestamp"],
        )


def _check_message(username: str, text: str):
    if not username or not username.strip():
        raise PersistenceError("username is required")
    if not text:
        raise PersistenceError("message is required")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise PersistenceError(
            f"message exceeds {MAX_MESSAGE_LENGTH} characters"
        )


class MessageStore:
    """
    Interface for chat message storage.

    Both operations are coroutines and raise PersistenceError on failure.
    """

    async def append(self, username: str, text: str) -> StoredMessage:
        """Persist a message and return the stored record."""
        raise NotImplementedError

    async def recent(
        self, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> List[StoredMessage]:
        """Return up to ``limit`` most recent messages, oldest first."""
        raise NotImplementedError


class InMemoryMessageStore(MessageStore):
    """
    Message store kept in process memory.

    Attributes:
        max_messages: Optional retention cap; oldest messages are dropped
    """

    def __init__(self, max_messages: Optional[int] = None):
        self.max_messages = max_messages
        self._messages: List[StoredMessage] = []

    async def append(self, username: str, text: str) -> StoredMessage:
        _check_message(username, text)
        stored = StoredMessage(
            username=username.strip(),
            message=text,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        self._messages.append(stored)
        if self.max_messages and len(self._messages) > self.max_messages:
            del self._messages[: len(self._messages) - self.max_messages]
        return stored

    async def recent(
        self, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> List[StoredMessage]:
        if limit <= 0:
            return []
        return list(self._messages[-limit:])

    def __len__(self) -> int:
        return len(self._messages)


class JsonLinesMessageStore(MessageStore):
    """
    Message store backed by a JSON-lines file.

    Each stored message is appended as one line. Reads scan the file and keep
    the tail, so the store stays append-only on disk.
    """

    def __init__(self, path: str):
        """
        Initialize the store.

        Args:
            path: File to append messages to; created on first write
        """
        self.path = path
        self._executor = ThreadPoolExecutor(max_workers=1)

    def _write(self, stored: StoredMessage):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as handle:
            handle.write(json.dumps(stored.to_dict()) + "\n")

    def _read_tail(self, limit: int) -> List[StoredMessage]:
        if not os.path.exists(self.path):
            return []
        messages: Deque[StoredMessage] = deque(maxlen=limit)
        with open(self.path, "rb") as handle:
            for line_number, raw in enumerate(handle, start=1):
                try:
                    line = raw.decode("utf-8").strip()
                    if not line:
                        continue
                    messages.append(StoredMessage.from_dict(json.loads(line)))
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning(
                        "Skipping corrupt line %d in %s: %s",
                        line_number,
                        self.path,
                        e,
                    )
        return list(messages)

    async def append(self, username: str, text: str) -> StoredMessage:
        _check_message(username, text)
        stored = StoredMessage(
            username=username.strip(),
            message=text,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(self._executor, self._write, stored)
        except Exception as e:
            raise PersistenceError(f"Could not write {self.path}: {e}") from e
        return stored

    async def recent(
        self, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> List[StoredMessage]:
        if limit <= 0:
            return []
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                self._executor, self._read_tail, limit
            )
        except Exception as e:
            raise PersistenceError(f"Could not read {self.path}: {e}") from e

    def close(self):
        """Shut down the I/O executor."""
        self._executor.shutdown(wait=True)
