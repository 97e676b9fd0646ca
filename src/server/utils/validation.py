"""
Validation Utilities

Contains utility functions for validating usernames and message text.
"""

from typing import Any, Optional, Tuple

INVALID_USERNAME = "Invalid username"
INVALID_MESSAGE_TEXT = "Invalid message text"


def validate_username(username: Any) -> Tuple[Optional[str], Optional[str]]:
    """
    Validate a username from a join request.

    Args:
        username: The raw username value

    Returns:
        tuple: (username, error_message)
            - username: The trimmed username if valid, None otherwise
            - error_message: Error message if invalid, None if valid
    """
    if not isinstance(username, str):
        return None, INVALID_USERNAME

    trimmed = username.strip()
    if not trimmed:
        return None, INVALID_USERNAME

    return trimmed, None


def validate_message_text(text: Any) -> Tuple[Optional[str], Optional[str]]:
    """
    Validate the text of a chat request.

    Length limits are enforced by the message store, not here.

    Args:
        text: The raw text value

    Returns:
        tuple: (text, error_message)
            - text: The trimmed text if valid, None otherwise
            - error_message: Error message if invalid, None if valid
    """
    if not isinstance(text, str):
        return None, INVALID_MESSAGE_TEXT

    trimmed = text.strip()
    if not trimmed:
        return None, INVALID_MESSAGE_TEXT

    return trimmed, None
