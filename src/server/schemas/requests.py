"""
Inbound Request Parsing

Decodes raw WebSocket frames into typed join/chat requests.

Request Format:
    {"type": "join", "username": "..."}
    {"type": "chat", "text": "..."}
"""

import json
from dataclasses import dataclass
from typing import Any, Union

from ..errors import ProtocolError

INVALID_FORMAT = "Invalid message format"
UNKNOWN_TYPE = "Unknown message type"


@dataclass
class JoinRequest:
    """
    Request to join the chat room.

    Attributes:
        username: Raw username as sent by the client (validated later)
    """

    username: Any


@dataclass
class ChatRequest:
    """
    Request to post a chat message.

    Attributes:
        text: Raw message text as sent by the client (validated later)
    """

    text: Any


InboundRequest = Union[JoinRequest, ChatRequest]


def parse_request(raw) -> InboundRequest:
    """
    Parse a raw frame into an inbound request.

    Field values are passed through unvalidated so the dispatcher can report
    "Invalid username" and "Invalid message text" separately.

    Args:
        raw: Text or bytes frame received from the client

    Returns:
        JoinRequest or ChatRequest

    Raises:
        ProtocolError: If the frame is not a JSON object with a string type,
            or the type is neither join nor chat
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError):
        raise ProtocolError(INVALID_FORMAT)

    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise ProtocolError(INVALID_FORMAT)

    message_type = data["type"]
    if message_type == "join":
        return JoinRequest(username=data.get("username"))
    if message_type == "chat":
        return ChatRequest(text=data.get("text"))
    raise ProtocolError(UNKNOWN_TYPE)
