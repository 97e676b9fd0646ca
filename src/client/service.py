"""
Client Service for the Chat Room

This module provides the transport layer of the client: it opens and closes
the WebSocket connection to the chat server and sends requests over it.

Architecture:
    - Uses WebSocket for real-time bidirectional communication
    - Supports dependency injection for the network layer (for testability)
    - Async/await pattern for non-blocking I/O operations
"""

import logging
from typing import Callable, Optional

from websockets.asyncio.client import ClientConnection, connect

from .schemas import BaseRequest, ChatRequest, JoinRequest

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "ws://localhost:8080"


class ClientService:
    """
    Connection to the chat server.

    Attributes:
        server_url: WebSocket URL of the server (e.g., ws://localhost:8080)
        websocket: Active WebSocket connection (None if not connected)
    """

    def __init__(
        self,
        server_url: str = DEFAULT_SERVER_URL,
        websocket_factory: Optional[Callable] = None,
    ):
        """
        Initialize the client service.

        Args:
            server_url: WebSocket URL of the chat server
            websocket_factory: Optional factory for creating WebSocket
                             connections (for dependency injection/testing)
        """
        self.server_url = server_url
        self.websocket: Optional[ClientConnection] = None
        self._websocket_factory = websocket_factory or connect
        self._connected = False

        logger.info(f"ClientService initialized for server: {server_url}")

    async def connect(self) -> None:
        """
        Establish WebSocket connection to the chat server.

        Raises:
            ConnectionError: If connection fails
        """
        try:
            logger.info(f"Connecting to {self.server_url}...")
            self.websocket = await self._websocket_factory(self.server_url)
            self._connected = True
            logger.info("Successfully connected to chat server")
        except Exception as e:
            logger.error(f"Failed to connect to server: {e}")
            raise ConnectionError(f"Could not connect to {self.server_url}: {e}")

    async def close_transport(self) -> None:
        """Close the WebSocket connection if one is open."""
        websocket = self.websocket
        self.websocket = None
        self._connected = False
        if websocket is not None:
            await websocket.close()
            logger.info("Disconnected from chat server")

    @property
    def is_connected(self) -> bool:
        """Check if currently connected to the server."""
        return self._connected and self.websocket is not None

    async def send_request(self, request: BaseRequest) -> None:
        """
        Send a request to the server.

        Raises:
            ConnectionError: If not connected to the server
        """
        if not self.is_connected:
            raise ConnectionError("Not connected to the chat server")
        await self.websocket.send(request.to_json())

    async def join(self, username: str) -> None:
        """Send a join request (fire-and-forget)."""
        logger.info(f"Joining chat room as '{username}'")
        await self.send_request(JoinRequest(username))

    async def send_chat(self, text: str) -> None:
        """Send a chat message (fire-and-forget)."""
        logger.debug("Sending chat message")
        await self.send_request(ChatRequest(text))
