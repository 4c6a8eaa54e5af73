from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from bananas.logic.exceptions import GameRuleError
from bananas.messaging.types import (
    GAME_ACTIONS,
    ErrorMessage,
    JoinRoomMessage,
    LeaveRoomMessage,
    PingMessage,
    SessionErrorCode,
    action_payload,
    parse_client_message,
)

if TYPE_CHECKING:
    from bananas.messaging.protocol import ConnectionProtocol
    from bananas.messaging.types import GameActionMessage
    from bananas.session.manager import SessionManager

logger = logging.getLogger(__name__)


class MessageRouter:
    """
    Routes incoming messages to appropriate handlers.

    This class contains pure business logic and can be tested
    without real WebSocket connections.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, KeyError, TypeError, ValueError) as e:
            logger.warning("invalid message from %s: %s", connection.connection_id, e)
            await connection.send_message(
                ErrorMessage(code=SessionErrorCode.INVALID_MESSAGE, message=str(e)).model_dump(),
            )
            return

        if isinstance(message, JoinRoomMessage):
            await self._session_manager.join_room(
                connection=connection,
                room_id=message.room_id,
                player_name=message.player_name,
                rejoin_key=message.rejoin_key,
            )
        elif isinstance(message, LeaveRoomMessage):
            await self._session_manager.leave_room(connection, message.room_id)
        elif isinstance(message, PingMessage):
            await self._session_manager.handle_ping(connection)
        else:
            await self._handle_game_action(connection, message)

    async def _handle_game_action(self, connection: ConnectionProtocol, message: GameActionMessage) -> None:
        """Route a game action message, handling expected and fatal errors."""
        try:
            await self._session_manager.handle_game_action(
                connection=connection,
                room_id=message.room_id,
                action=GAME_ACTIONS[message.type],
                data=action_payload(message),
            )
        except (GameRuleError, ValueError, KeyError, TypeError) as e:
            logger.warning("action failed for %s: %s", connection.connection_id, e)
            await self._session_manager.send_error(
                connection, SessionErrorCode.ACTION_FAILED, str(e), message.room_id
            )
        except Exception:
            logger.exception("fatal error during game action for %s", connection.connection_id)
            await self._session_manager.send_error(
                connection, SessionErrorCode.ACTION_FAILED, "Internal server error", message.room_id
            )

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.handle_disconnect(connection)
