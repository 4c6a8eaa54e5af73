import pytest

from bananas.messaging.mock import MockConnection


@pytest.fixture
def manager(session_manager):
    return session_manager


@pytest.fixture
def connect(manager):
    """Register a fresh MockConnection with the manager."""

    def _connect(connection_id: str | None = None) -> MockConnection:
        connection = MockConnection(connection_id)
        manager.register_connection(connection)
        return connection

    return _connect
