"""
Message Schema Definitions

Contains functions for creating the chat, history and error envelopes sent
to clients.
"""

from typing import Any, Dict, Iterable

from ..persistence import StoredMessage


def create_chat_message(stored: StoredMessage) -> Dict[str, Any]:
    """
    Create a chat broadcast from a persisted message.

    Args:
        stored: The record returned by the message store

    Returns:
        dict: {"type": "chat", "username", "message", "timestamp"}
    """
    return {"type": "chat", **stored.to_dict()}


def create_history_message(
    messages: Iterable[StoredMessage],
) -> Dict[str, Any]:
    """
    Create the history envelope sent to a newly joined client.

    Args:
        messages: Stored messages, oldest first

    Returns:
        dict: {"type": "history", "messages": [...]}
    """
    return {
        "type": "history",
        "messages": [stored.to_dict() for stored in messages],
    }


def create_error_message(error: str) -> Dict[str, Any]:
    """
    Create an error envelope for the sender.

    Args:
        error: Client-facing error text

    Returns:
        dict: {"type": "error", "message": error}
    """
    return {"type": "error", "message": error}
