"""
Connection Registry

Tracks which live WebSocket connections have joined the chat room and under
which username. This is the single source of truth for "who is online".
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Hashable, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ClientInfo:
    """
    Identity bound to a joined connection.

    Attributes:
        username: Trimmed username supplied on join
        joined_at: ISO 8601 timestamp when the connection joined
    """

    username: str
    joined_at: str = field(default="")

    def __post_init__(self):
        """Initialize the join timestamp if not set."""
        if not self.joined_at:
            self.joined_at = datetime.now(timezone.utc).isoformat()


class ConnectionRegistry:
    """
    Registry of joined connections keyed by the connection object.

    Usernames are not required to be unique: two connections may join under
    the same display name.
    """

    def __init__(self):
        self._clients: Dict[Hashable, ClientInfo] = {}

    def register(self, connection: Hashable, username: str) -> ClientInfo:
        """
        Bind a username to a connection.

        Registering a connection that is already present replaces its entry.

        Args:
            connection: The connection handle
            username: Username to bind; stored trimmed

        Returns:
            The stored ClientInfo

        Raises:
            ValueError: If username is not a string or is blank
        """
        if not isinstance(username, str) or not username.strip():
            raise ValueError("username must be a non-empty string")

        info = ClientInfo(username=username.strip())
        self._clients[connection] = info
        logger.debug(f"Registered {info.username} ({len(self._clients)} online)")
        return info

    def unregister(self, connection: Hashable) -> Optional[ClientInfo]:
        """
        Remove a connection from the registry.

        Returns:
            The removed ClientInfo, or None if the connection was not present
        """
        info = self._clients.pop(connection, None)
        if info:
            logger.debug(
                f"Unregistered {info.username} ({len(self._clients)} online)"
            )
        return info

    def get(self, connection: Hashable) -> Optional[ClientInfo]:
        return self._clients.get(connection)

    def is_registered(self, connection: Hashable) -> bool:
        return connection in self._clients

    def count(self) -> int:
        return len(self._clients)

    def list_identities(self) -> List[str]:
        return [info.username for info in self._clients.values()]

    def connections(self) -> List[Hashable]:
        """Snapshot of the registered connections."""
        return list(self._clients)
