"""
Tests for the Connection Registry

Tests for registering, unregistering and listing joined connections.
"""

import pytest

from src.server import ConnectionRegistry, ClientInfo


class MockWebSocket:
    """Hashable stand-in for a connection."""


def test_registry_starts_empty():
    """Test that a new registry has no connections."""
    registry = ConnectionRegistry()
    assert registry.count() == 0
    assert registry.list_identities() == []
    assert registry.connections() == []


def test_register_stores_trimmed_username():
    """Test that usernames are stored trimmed."""
    registry = ConnectionRegistry()
    ws = MockWebSocket()

    info = registry.register(ws, "  bob  ")

    assert info.username == "bob"
    assert info.joined_at != ""
    assert registry.get(ws) is info
    assert registry.is_registered(ws)
    assert registry.count() == 1
    assert registry.list_identities() == ["bob"]


@pytest.mark.parametrize("username", ["", "   ", None, 42, ["alice"]])
def test_register_rejects_invalid_username(username):
    """Test that blank or non-string usernames are refused."""
    registry = ConnectionRegistry()

    with pytest.raises(ValueError):
        registry.register(MockWebSocket(), username)

    assert registry.count() == 0


def test_register_same_connection_replaces_entry():
    """Test that one connection never has two entries."""
    registry = ConnectionRegistry()
    ws = MockWebSocket()

    registry.register(ws, "alice")
    registry.register(ws, "alicia")

    assert registry.count() == 1
    assert registry.list_identities() == ["alicia"]


def test_duplicate_usernames_are_allowed():
    """Test that two connections may share a display name."""
    registry = ConnectionRegistry()

    registry.register(MockWebSocket(), "sam")
    registry.register(MockWebSocket(), "sam")

    assert registry.count() == 2
    assert registry.list_identities() == ["sam", "sam"]


def test_unregister_returns_removed_entry():
    """Test that unregister hands back the removed identity."""
    registry = ConnectionRegistry()
    ws = MockWebSocket()
    registry.register(ws, "alice")

    info = registry.unregister(ws)

    assert isinstance(info, ClientInfo)
    assert info.username == "alice"
    assert registry.count() == 0
    assert not registry.is_registered(ws)


def test_unregister_twice_is_a_noop():
    """Test that a double close does not raise."""
    registry = ConnectionRegistry()
    ws = MockWebSocket()
    registry.register(ws, "alice")

    registry.unregister(ws)
    assert registry.unregister(ws) is None
    assert registry.unregister(MockWebSocket()) is None
    assert registry.count() == 0