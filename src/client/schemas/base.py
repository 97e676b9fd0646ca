"""
Base Schema Classes

This module provides base classes for request and event schemas with
common serialization and deserialization methods to avoid code duplication.

Envelopes are flat JSON objects: the ``type`` key sits beside the fields.
"""

import json
from dataclasses import asdict, fields
from typing import Any, Dict, TypeVar

T = TypeVar("T", bound="BaseEvent")


class BaseRequest:
    """
    Base class for request schemas.

    Provides common serialization methods for converting request objects
    to dictionary and JSON formats.
    """

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary with the 'type' key followed by the request fields.
        """
        return {"type": self._message_type, **asdict(self)}

    def to_json(self) -> str:
        """
        Convert to JSON string.

        Returns:
            JSON string representation of the request.
        """
        return json.dumps(self.to_dict())

    @property
    def _message_type(self) -> str:
        """
        Message type identifier for the request.

        Should be overridden by subclasses to provide the specific type.
        """
        raise NotImplementedError("Subclasses must define _message_type")


class BaseEvent:
    """
    Base class for server event schemas.

    Subclasses set ``message_type`` (the wire ``type``) and ``category``
    (how the session classifies the event).
    """

    message_type: str = ""
    category: str = ""

    @classmethod
    def from_dict(cls: type[T], data: Dict[str, Any]) -> T:
        """
        Create instance from dictionary.

        Unknown keys (including ``type``) are ignored.

        Args:
            data: Dictionary containing the envelope.

        Returns:
            Instance of the event class.
        """
        return cls._from_data(data)

    @classmethod
    def _from_data(cls: type[T], data: Dict[str, Any]) -> T:
        """
        Create instance from envelope data.

        Should be overridden by subclasses for custom deserialization.
        """
        names = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in names})
