#!/usr/bin/env python3
"""
Chat Room Server

Runs the single-room chat server: WebSocket endpoint, /health and /chat/info.
"""

import asyncio
import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

from .dispatcher import ProtocolDispatcher
from .persistence import (
    DEFAULT_HISTORY_LIMIT,
    InMemoryMessageStore,
    JsonLinesMessageStore,
    MessageStore,
)
from .registry import ConnectionRegistry
from .websocket_server import WebSocketServer

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid {name}={value!r}, using {default}")
        return default


@dataclass
class ServerSettings:
    """
    Server configuration.

    Attributes:
        host: WebSocket host address to bind to
        port: WebSocket port to listen on
        history_limit: Number of messages replayed to a joining client
        store_path: JSON-lines file for messages, None for in-memory storage
        log_level: Logging level name
    """

    host: str = "0.0.0.0"
    port: int = 8080
    history_limit: int = DEFAULT_HISTORY_LIMIT
    store_path: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None):
        """
        Read settings from environment variables.

        WEBSOCKET_HOST, WEBSOCKET_PORT, CHAT_HISTORY_LIMIT, CHAT_STORE_PATH
        and LOG_LEVEL are recognised; anything unset keeps its default.
        """
        environ = os.environ if environ is None else environ
        return cls(
            host=environ.get("WEBSOCKET_HOST", cls.host),
            port=_int_setting(environ, "WEBSOCKET_PORT", cls.port),
            history_limit=_int_setting(
                environ, "CHAT_HISTORY_LIMIT", cls.history_limit
            ),
            store_path=environ.get("CHAT_STORE_PATH") or None,
            log_level=environ.get("LOG_LEVEL", cls.log_level).upper(),
        )


def create_store(settings: ServerSettings) -> MessageStore:
    """Build the message store selected by the settings."""
    if settings.store_path:
        logger.info(f"Persisting messages to {settings.store_path}")
        return JsonLinesMessageStore(settings.store_path)
    logger.info("Persisting messages in memory")
    return InMemoryMessageStore()


def create_server(
    settings: ServerSettings, store: Optional[MessageStore] = None
) -> WebSocketServer:
    """
    Wire the registry, dispatcher and transport together.

    Args:
        settings: Server configuration
        store: Optional message store, built from settings if omitted

    Returns:
        A WebSocketServer that has not been started yet
    """
    registry = ConnectionRegistry()
    dispatcher = ProtocolDispatcher(
        registry,
        store or create_store(settings),
        history_limit=settings.history_limit,
    )
    return WebSocketServer(dispatcher, settings.host, settings.port)


async def run_server(settings: ServerSettings):
    """
    Run the chat server until cancelled.

    Args:
        settings: Server configuration
    """
    ws_server = create_server(settings)
    await ws_server.start()

    logger.info(f"Chat server is ready on ws://{settings.host}:{ws_server.port}")
    logger.info(
        f"Health check at http://{settings.host}:{ws_server.port}/health"
    )

    try:
        await asyncio.Event().wait()
    except asyncio.CancelledError:
        logger.info("Server shutdown requested")
    finally:
        await ws_server.stop()
        store = ws_server.dispatcher.store
        if isinstance(store, JsonLinesMessageStore):
            store.close()
        logger.info("Chat server stopped")


def main():
    """Main entry point for the chat server."""
    settings = ServerSettings.from_env()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
    )
    logger.info("Starting chat server...")

    try:
        asyncio.run(run_server(settings))
    except KeyboardInterrupt:
        logger.info("Shutting down chat server...")
        sys.exit(0)


if __name__ == "__main__":
    main()
