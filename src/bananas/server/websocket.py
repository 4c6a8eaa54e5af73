from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from bananas.messaging.encoder import DecodeError, decode
from bananas.messaging.protocol import ConnectionProtocol
from bananas.messaging.types import ErrorMessage, SessionErrorCode
from bananas.server.rate_limit import TokenBucket

logger = structlog.get_logger()

if TYPE_CHECKING:
    from bananas.messaging.router import MessageRouter

# Board updates stream while a player drags tiles, so bursts are generous.
RATE_LIMIT_RATE = 30.0
RATE_LIMIT_BURST = 60

# Close the socket after this many consecutive undecodable frames.
MAX_DECODE_ERRORS = 5
DECODE_ERROR_CLOSE_CODE = 4004


class WebSocketConnection(ConnectionProtocol):
    """Starlette websocket adapted to the connection protocol."""

    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._connection_id = connection_id or str(uuid4())

    @property
    def connection_id(self) -> str:
        return self._connection_id

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_bytes(self) -> bytes:
        try:
            return await self._websocket.receive_bytes()
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


async def _reject(connection: WebSocketConnection, code: SessionErrorCode, message: str) -> None:
    await connection.send_message(ErrorMessage(code=code, message=message).model_dump())


async def websocket_endpoint(websocket: WebSocket, router: MessageRouter) -> None:
    """
    Serve one client socket until it disconnects.

    Each binary frame is one MessagePack map. Frames that fail to decode count
    as strikes and frames over the rate limit are dropped; both are answered
    with an error message.
    """
    await websocket.accept()

    connection = WebSocketConnection(websocket)
    structlog.contextvars.bind_contextvars(connection_id=connection.connection_id)
    logger.info("websocket connected")
    await router.handle_connect(connection)

    bucket = TokenBucket(rate=RATE_LIMIT_RATE, burst=RATE_LIMIT_BURST)
    strikes = 0

    try:
        while True:
            raw = await connection.receive_bytes()

            try:
                data = decode(raw)
            except DecodeError as e:
                strikes += 1
                logger.warning("decode error", error=str(e), strikes=strikes)
                await _reject(connection, SessionErrorCode.INVALID_MESSAGE, str(e))
                if strikes >= MAX_DECODE_ERRORS:
                    logger.info("too many decode errors, disconnecting")
                    await connection.close(code=DECODE_ERROR_CLOSE_CODE, reason="too_many_decode_errors")
                    return
                continue
            strikes = 0

            if not bucket.consume():
                await _reject(connection, SessionErrorCode.RATE_LIMITED, "Too many messages")
                continue
            await router.handle_message(connection, data)
    except (WebSocketDisconnect, RuntimeError, ConnectionError):  # fmt: skip
        pass
    finally:
        logger.info("websocket disconnected")
        await router.handle_disconnect(connection)
        structlog.contextvars.clear_contextvars()
