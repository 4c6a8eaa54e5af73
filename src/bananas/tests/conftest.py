import pytest

from bananas.logic.rng import create_rng
from bananas.logic.service import BananasGameService
from bananas.messaging.mock import MockConnection
from bananas.messaging.router import MessageRouter
from bananas.server.app import create_app
from bananas.server.settings import ServerSettings
from bananas.session.manager import SessionManager

TEST_SEED = 20240611


@pytest.fixture
def rng():
    return create_rng(TEST_SEED)


@pytest.fixture
def game_service(rng):
    return BananasGameService(rng=rng)


@pytest.fixture
def session_manager(game_service):
    return SessionManager(game_service, rejoin_grace_seconds=0.05)


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def server_settings():
    return ServerSettings(cors_origins=["*"], rejoin_grace_seconds=0.05, max_rooms=10)


@pytest.fixture
def app(server_settings, game_service, session_manager, message_router):
    return create_app(
        settings=server_settings,
        game_service=game_service,
        session_manager=session_manager,
        message_router=message_router,
    )
