"""
Error Types for the Chat Server

ProtocolError carries the text that is reported back to the sender in an
``error`` envelope. PersistenceError is raised by message stores and is never
forwarded verbatim to clients.
"""


class ChatServerError(Exception):
    """Base class for chat server errors."""


class ProtocolError(ChatServerError):
    """Raised when an inbound envelope is malformed or of an unknown type."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PersistenceError(ChatServerError):
    """Raised when the message store cannot append or read messages."""
