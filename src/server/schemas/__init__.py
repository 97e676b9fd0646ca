"""
Schemas for the Chat Server

This module contains the inbound request parser and the builders for every
outbound envelope type.
"""

from .requests import (
    JoinRequest,
    ChatRequest,
    InboundRequest,
    parse_request,
    INVALID_FORMAT,
    UNKNOWN_TYPE,
)
from .messages import (
    create_chat_message,
    create_history_message,
    create_error_message,
)
from .events import (
    create_system_message,
    create_welcome_message,
    create_user_joined_event,
    create_user_left_event,
    create_user_count_event,
)

__all__ = [
    "JoinRequest",
    "ChatRequest",
    "InboundRequest",
    "parse_request",
    "INVALID_FORMAT",
    "UNKNOWN_TYPE",
    "create_chat_message",
    "create_history_message",
    "create_error_message",
    "create_system_message",
    "create_welcome_message",
    "create_user_joined_event",
    "create_user_left_event",
    "create_user_count_event",
]
