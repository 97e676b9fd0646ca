"""
Utilities for the Chat Server

This module contains the broadcaster and the input validation helpers.
"""

from .broadcast import Broadcaster
from .validation import (
    validate_username,
    validate_message_text,
    INVALID_USERNAME,
    INVALID_MESSAGE_TEXT,
)

__all__ = [
    "Broadcaster",
    "validate_username",
    "validate_message_text",
    "INVALID_USERNAME",
    "INVALID_MESSAGE_TEXT",
]
