"""
Broadcast Utilities

Fan-out of outbound envelopes to the connections in the registry.
"""

import json
import logging
from typing import Any, Dict, Optional

from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from ..registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class Broadcaster:
    """
    Delivers an envelope to every joined connection.

    Delivery is fire-and-forget per connection: a failed send is logged and
    skipped, and the transport's own close handling removes the connection.
    """

    def __init__(self, registry: ConnectionRegistry):
        """
        Initialize the broadcaster.

        Args:
            registry: Registry whose connections receive broadcasts
        """
        self.registry = registry

    async def broadcast(
        self,
        message: Dict[str, Any],
        exclude: Optional[Any] = None,
    ) -> int:
        """
        Broadcast a message to all registered connections.

        Args:
            message: The envelope to broadcast
            exclude: Optional connection to skip

        Returns:
            Number of connections the message was written to
        """
        message_json = json.dumps(message)
        delivered = 0
        for websocket in self.registry.connections():
            if websocket is exclude:
                continue
            if websocket.state is not State.OPEN:
                continue
            try:
                await websocket.send(message_json)
                delivered += 1
            except ConnectionClosed:
                logger.debug(
                    f"Skipped {message.get('type')} for closed connection"
                )
            except Exception as e:
                logger.error(f"Failed to broadcast {message.get('type')}: {e}")

        logger.debug(f"Broadcasted {message.get('type')} to {delivered} clients")
        return delivered
