"""
WebSocket Server for the Chat Room

Accepts WebSocket connections from clients and feeds their events to the
protocol dispatcher. Plain HTTP requests for /health and /chat/info are
answered on the same port before the WebSocket handshake.
"""

import json
import logging
from http import HTTPStatus
from typing import Any, Dict, Optional, Set

from websockets.asyncio.server import ServerConnection, serve
from websockets.http11 import Request, Response

from .dispatcher import ConnectionEvent, EventKind, ProtocolDispatcher

logger = logging.getLogger(__name__)

HEALTH_PATH = "/health"
INFO_PATH = "/chat/info"


class WebSocketServer:
    """
    WebSocket server for handling client connections.

    Every open, message, close and error event of a connection is passed to
    the dispatcher in arrival order.
    """

    def __init__(
        self,
        dispatcher: ProtocolDispatcher,
        host: str,
        port: int,
    ):
        """
        Initialize the WebSocket server.

        Args:
            dispatcher: The protocol dispatcher handling connection events
            host: Host address to bind to
            port: Port to listen on (0 picks a free port)
        """
        self.dispatcher = dispatcher
        self.host = host
        self.port = port
        self.server = None

    @property
    def registry(self):
        return self.dispatcher.registry

    async def start(self):
        """Start the WebSocket server."""
        self.server = await serve(
            self.handle_client,
            self.host,
            self.port,
            process_request=self.process_request,
        )
        if self.port == 0:
            self.port = self.server.sockets[0].getsockname()[1]
        logger.info(f"WebSocket server started on ws://{self.host}:{self.port}")

    async def stop(self):
        """Stop the WebSocket server."""
        if self.server:
            self.server.close()
            await self.server.wait_closed()
            self.server = None
            logger.info("WebSocket server stopped")

    async def handle_client(self, websocket: ServerConnection):
        """
        Handle a client connection.

        Args:
            websocket: The WebSocket connection
        """
        await self.dispatcher.handle_event(
            ConnectionEvent(EventKind.OPEN, websocket)
        )

        try:
            async for message in websocket:
                await self.dispatcher.handle_event(
                    ConnectionEvent(EventKind.MESSAGE, websocket, message)
                )
        except Exception as e:
            await self.dispatcher.handle_event(
                ConnectionEvent(EventKind.ERROR, websocket, e)
            )
        finally:
            await self.dispatcher.handle_event(
                ConnectionEvent(EventKind.CLOSE, websocket)
            )

    def get_health(self) -> Dict[str, Any]:
        return {"status": "OK", "message": "Server is healthy"}

    def get_chat_info(self) -> Dict[str, Any]:
        return {
            "connectedUsers": self.registry.count(),
            "usernames": self.registry.list_identities(),
        }

    def process_request(
        self, connection: ServerConnection, request: Request
    ) -> Optional[Response]:
        """
        Answer HTTP endpoints before the WebSocket handshake.

        Returns:
            A JSON response for known paths, None to continue the handshake
        """
        path = request.path.split("?", 1)[0]
        if path == HEALTH_PATH:
            return self._json_response(connection, self.get_health())
        if path == INFO_PATH:
            return self._json_response(connection, self.get_chat_info())
        return None

    def _json_response(
        self, connection: ServerConnection, payload: Dict[str, Any]
    ) -> Response:
        response = connection.respond(HTTPStatus.OK, json.dumps(payload))
        del response.headers["Content-Type"]
        response.headers["Content-Type"] = "application/json"
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response
