"""
Request Schemas

Requests sent from the client to the chat server.
"""

from dataclasses import dataclass

from .base import BaseRequest


@dataclass
class JoinRequest(BaseRequest):
    """
    Request to join the chat room.

    Attributes:
        username: Display name to join under
    """

    username: str

    @property
    def _message_type(self) -> str:
        return "join"


@dataclass
class ChatRequest(BaseRequest):
    """
    Request to post a message to the room.

    Attributes:
        text: The message text
    """

    text: str

    @property
    def _message_type(self) -> str:
        return "chat"
