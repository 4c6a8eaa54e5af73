import pytest

from bananas.session.manager import SessionManager


@pytest.fixture
def session_manager(game_service):
    # long enough that a reconnect through the test client always lands inside it
    return SessionManager(game_service, rejoin_grace_seconds=5.0)
