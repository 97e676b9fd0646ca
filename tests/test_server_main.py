"""
Tests for Server Configuration and Wiring
"""

from src.server import InMemoryMessageStore, JsonLinesMessageStore
from src.server.main import ServerSettings, create_server, create_store


def test_settings_defaults():
    """Test defaults when nothing is configured."""
    settings = ServerSettings.from_env({})
    assert settings.host == "0.0.0.0"
    assert settings.port == 8080
    assert settings.history_limit == 50
    assert settings.store_path is None
    assert settings.log_level == "INFO"


def test_settings_from_environment():
    """Test that environment variables override defaults."""
    settings = ServerSettings.from_env(
        {
            "WEBSOCKET_HOST": "127.0.0.1",
            "WEBSOCKET_PORT": "9001",
            "CHAT_HISTORY_LIMIT": "20",
            "CHAT_STORE_PATH": "/tmp/chat.jsonl",
            "LOG_LEVEL": "debug",
        }
    )
    assert settings.host == "127.0.0.1"
    assert settings.port == 9001
    assert settings.history_limit == 20
    assert settings.store_path == "/tmp/chat.jsonl"
    assert settings.log_level == "DEBUG"


def test_invalid_integers_fall_back_to_defaults():
    """Test that unparsable numbers keep the defaults."""
    settings = ServerSettings.from_env(
        {"WEBSOCKET_PORT": "eighty", "CHAT_HISTORY_LIMIT": ""}
    )
    assert settings.port == 8080
    assert settings.history_limit == 50


def test_create_store_selects_implementation(tmp_path):
    """Test that a store path selects the JSON-lines store."""
    assert isinstance(create_store(ServerSettings()), InMemoryMessageStore)

    store = create_store(ServerSettings(store_path=str(tmp_path / "m.jsonl")))
    assert isinstance(store, JsonLinesMessageStore)
    store.close()


def test_create_server_wires_history_limit():
    """Test that settings flow into the dispatcher and transport."""
    server = create_server(ServerSettings(port=9100, history_limit=10))
    assert server.port == 9100
    assert server.dispatcher.history_limit == 10
    assert server.registry.count() == 0
