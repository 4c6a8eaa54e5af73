from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute

from bananas.logic.service import BananasGameService
from bananas.messaging.router import MessageRouter
from bananas.server.settings import ServerSettings
from bananas.server.websocket import websocket_endpoint
from bananas.session.manager import SessionManager
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.requests import Request
    from starlette.websockets import WebSocket


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"ok": True})


async def status(request: Request) -> JSONResponse:
    game_service: BananasGameService = request.app.state.game_service
    session_manager: SessionManager = request.app.state.session_manager
    settings: ServerSettings = request.app.state.settings
    return JSONResponse(
        {
            "ok": True,
            "rooms": game_service.room_count,
            "players": game_service.player_count,
            "connections": session_manager.connection_count,
            "max_rooms": settings.max_rooms,
        },
    )


def create_app(
    settings: ServerSettings | None = None,
    game_service: BananasGameService | None = None,
    session_manager: SessionManager | None = None,
    message_router: MessageRouter | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = ServerSettings()

    if game_service is None:
        game_service = BananasGameService(max_rooms=settings.max_rooms)

    if session_manager is None:
        session_manager = SessionManager(game_service, rejoin_grace_seconds=settings.rejoin_grace_seconds)

    if message_router is None:
        message_router = MessageRouter(session_manager)

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, message_router)

    routes = [
        Route("/healthz", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        WebSocketRoute("/ws", ws_endpoint),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        yield
        session_manager.cancel_all_grace_timers()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.game_service = game_service
    app.state.session_manager = session_manager

    logger.info("game server ready", max_rooms=settings.max_rooms, grace_seconds=settings.rejoin_grace_seconds)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    settings = ServerSettings()
    setup_logging(log_dir=settings.log_dir)
    return create_app(settings=settings)


def main() -> None:  # pragma: no cover
    settings = ServerSettings()
    setup_logging(log_dir=settings.log_dir)
    uvicorn.run(create_app(settings=settings), host=settings.host, port=settings.port, log_config=None)
