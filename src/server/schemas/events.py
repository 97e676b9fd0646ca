"""
Event Schema Definitions

Contains functions for creating presence and system event envelopes.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def create_system_message(
    message: str, timestamp: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create a system_message event.

    Args:
        message: Text to show to the recipient
        timestamp: ISO 8601 timestamp, defaults to now

    Returns:
        dict: Event envelope
    """
    return {
        "type": "system_message",
        "message": message,
        "timestamp": timestamp or _now(),
    }


def create_welcome_message(username: str) -> Dict[str, Any]:
    """Create the greeting sent to a client after it joins."""
    return create_system_message(f"Welcome to the chat room, {username}!")


def create_user_joined_event(
    username: str, timestamp: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create a user_joined event.

    Args:
        username: Trimmed username of the joining client
        timestamp: ISO 8601 timestamp, defaults to now

    Returns:
        dict: Event envelope
    """
    return {
        "type": "user_joined",
        "username": username,
        "timestamp": timestamp or _now(),
    }


def create_user_left_event(
    username: str, timestamp: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create a user_left event.

    Args:
        username: Username of the client that disconnected
        timestamp: ISO 8601 timestamp, defaults to now

    Returns:
        dict: Event envelope
    """
    return {
        "type": "user_left",
        "username": username,
        "timestamp": timestamp or _now(),
    }


def create_user_count_event(count: int) -> Dict[str, Any]:
    """Create a user_count event."""
    return {"type": "user_count", "count": count}
