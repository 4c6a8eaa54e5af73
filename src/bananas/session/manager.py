from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

import structlog

from bananas.logic.events import BroadcastTarget, PlayerTarget
from bananas.logic.exceptions import RoomLimitError
from bananas.logic.roster import normalize_rejoin_key
from bananas.messaging.event_payload import service_event_payload
from bananas.messaging.types import ErrorMessage, PongMessage, RoomJoinedMessage, SessionErrorCode
from bananas.session.grace_timer import DEFAULT_GRACE_SECONDS, GraceTimer
from bananas.session.models import PlayerSession, RoomSessions

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from bananas.logic.enums import GameAction, GameErrorCode
    from bananas.logic.events import ServiceEvent
    from bananas.logic.service import BananasGameService
    from bananas.messaging.protocol import ConnectionProtocol

logger = structlog.get_logger()


class SessionManager:
    """
    Connection-facing side of the game server.

    Owns the live connections, the per-room locks, the player sessions that
    bind internal player ids to connections, and their rejoin grace timers.
    Every mutation of a room runs under that room's lock, so the game service
    never sees two concurrent actions for the same room.
    """

    def __init__(
        self,
        game_service: BananasGameService,
        *,
        rejoin_grace_seconds: float = DEFAULT_GRACE_SECONDS,
    ) -> None:
        self._game_service = game_service
        self._rejoin_grace_seconds = rejoin_grace_seconds
        self._connections: dict[str, ConnectionProtocol] = {}
        self._rooms: dict[str, RoomSessions] = {}  # room_id -> RoomSessions
        self._memberships: dict[str, dict[str, str]] = {}  # connection_id -> {room_id: player_id}

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection
        self._memberships.setdefault(connection.connection_id, {})

    def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)
        self._memberships.pop(connection.connection_id, None)

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    @property
    def room_count(self) -> int:
        return self._game_service.room_count

    def get_room_sessions(self, room_id: str) -> RoomSessions | None:
        return self._rooms.get(room_id)

    def get_player_id(self, connection_id: str, room_id: str) -> str | None:
        return self._memberships.get(connection_id, {}).get(room_id)

    def room_ids_for(self, connection_id: str) -> list[str]:
        return list(self._memberships.get(connection_id, {}))

    @contextlib.asynccontextmanager
    async def _locked_room(self, room_id: str, *, create: bool = False) -> AsyncIterator[RoomSessions | None]:
        """Hold the room lock, yielding None when the room does not exist.

        A room record dropped while we waited for its lock is re-fetched, so
        callers never act on a closed room.
        """
        while True:
            room = self._rooms.get(room_id)
            if room is None:
                if not create:
                    yield None
                    return
                room = RoomSessions(room_id=room_id)
                self._rooms[room_id] = room
            async with room.lock:
                if self._rooms.get(room_id) is room:
                    structlog.contextvars.bind_contextvars(room_id=room_id)
                    yield room
                    return

    def _close_room_if_empty(self, room: RoomSessions) -> None:
        """Drop the room record once the game service no longer holds the room."""
        if self._game_service.get_room_state(room.room_id) is not None:
            return
        room.cancel_all_timers()
        for session in room.players.values():
            if session.connection_id is not None:
                self._memberships.get(session.connection_id, {}).pop(room.room_id, None)
        room.players.clear()
        if self._rooms.get(room.room_id) is room:
            del self._rooms[room.room_id]
            logger.info("room closed")

    async def _send_error(
        self,
        connection: ConnectionProtocol,
        code: SessionErrorCode | GameErrorCode,
        message: str,
        room_id: str | None = None,
    ) -> None:
        logger.info("error sent to client", error_code=code.value, error_message=message)
        with contextlib.suppress(RuntimeError, OSError):
            await connection.send_message(ErrorMessage(code=code, message=message, room_id=room_id).model_dump())

    # ------------------------------------------------------------------
    # Room membership
    # ------------------------------------------------------------------

    async def join_room(
        self,
        connection: ConnectionProtocol,
        room_id: str,
        player_name: str | None,
        rejoin_key: str | None,
    ) -> None:
        """
        Join a room, resuming an existing seat when possible.

        A connection already seated in the room, or a rejoin key matching a
        seated player, resumes that seat. A matching player that is still
        connected elsewhere is refused.
        """
        async with self._locked_room(room_id, create=True) as room:
            if room is None:
                return
            key = normalize_rejoin_key(rejoin_key)
            name = player_name.strip() if player_name else None

            player_id, already_connected = self._find_resumable_player(connection, room, key)
            if already_connected:
                await self._send_error(
                    connection,
                    SessionErrorCode.ALREADY_CONNECTED,
                    "That player is already connected. Close the old tab or use a different name.",
                    room_id,
                )
                self._close_room_if_empty(room)
                return

            if player_id is not None:
                await self._resume(connection, room, player_id, name)
                return

            try:
                player_id, events = self._game_service.add_player(room_id, name or None, key)
            except RoomLimitError as e:
                await self._send_error(connection, e.code, e.message, room_id)
                self._close_room_if_empty(room)
                return

            room.players[player_id] = PlayerSession(room_id=room_id, player_id=player_id, connection=connection)
            self._memberships.setdefault(connection.connection_id, {})[room_id] = player_id
            structlog.contextvars.bind_contextvars(player_id=player_id)
            with contextlib.suppress(RuntimeError, OSError):
                await connection.send_message(RoomJoinedMessage(room_id=room_id, player_id=player_id).model_dump())
            await self._broadcast_events(room, events)

    def _find_resumable_player(
        self, connection: ConnectionProtocol, room: RoomSessions, rejoin_key: str | None
    ) -> tuple[str | None, bool]:
        """Return (player id to resume or None for a fresh seat, whether the seat is taken elsewhere)."""
        current = self.get_player_id(connection.connection_id, room.room_id)
        if current is not None and self._game_service.get_player(room.room_id, current) is not None:
            return current, False
        if rejoin_key is None:
            return None, False

        existing = self._game_service.find_player_by_rejoin_key(room.room_id, rejoin_key)
        if existing is None:
            return None, False
        session = room.players.get(existing.player_id)
        bound_elsewhere = session is not None and session.connection_id not in (None, connection.connection_id)
        if existing.connected and bound_elsewhere:
            return None, True
        return existing.player_id, False

    async def _resume(
        self,
        connection: ConnectionProtocol,
        room: RoomSessions,
        player_id: str,
        player_name: str | None,
    ) -> None:
        session = room.players.get(player_id)
        if session is None:
            session = PlayerSession(room_id=room.room_id, player_id=player_id, connection=connection)
            room.players[player_id] = session
        session.cancel_grace_timer()
        session.connection = connection
        self._memberships.setdefault(connection.connection_id, {})[room.room_id] = player_id
        structlog.contextvars.bind_contextvars(player_id=player_id)

        events = self._game_service.resume_player(room.room_id, player_id, player_name)
        with contextlib.suppress(RuntimeError, OSError):
            await connection.send_message(
                RoomJoinedMessage(room_id=room.room_id, player_id=player_id, resumed=True).model_dump()
            )
        await self._broadcast_events(room, events)

    async def leave_room(self, connection: ConnectionProtocol, room_id: str) -> None:
        """Remove the connection's player from the room at once."""
        async with self._locked_room(room_id) as room:
            if room is None:
                return
            player_id = self._memberships.get(connection.connection_id, {}).pop(room_id, None)
            if player_id is None:
                return
            await self._remove_player(room, player_id)

    async def _remove_player(self, room: RoomSessions, player_id: str) -> None:
        """Remove a player under the room lock and notify the remaining members."""
        session = room.players.pop(player_id, None)
        if session is not None:
            session.cancel_grace_timer()
        events = self._game_service.remove_player(room.room_id, player_id)
        await self._broadcast_events(room, events)
        self._close_room_if_empty(room)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        """
        Handle a dropped connection in every room it was seated in.

        Players without a rejoin key are removed at once; the others keep
        their seat for the grace period.
        """
        for room_id in self.room_ids_for(connection.connection_id):
            async with self._locked_room(room_id) as room:
                if room is None:
                    continue
                player_id = self._memberships.get(connection.connection_id, {}).pop(room_id, None)
                if player_id is None:
                    continue
                session = room.players.get(player_id)
                if session is None or session.connection_id != connection.connection_id:
                    continue
                await self._disconnect_player(room, session)
        self.unregister_connection(connection)

    async def _disconnect_player(self, room: RoomSessions, session: PlayerSession) -> None:
        player = self._game_service.get_player(room.room_id, session.player_id)
        if player is None:
            room.players.pop(session.player_id, None)
            return
        session.connection = None
        if player.rejoin_key is None:
            await self._remove_player(room, session.player_id)
            return

        events = self._game_service.mark_disconnected(room.room_id, session.player_id)
        timer = GraceTimer(self._rejoin_grace_seconds)
        session.cancel_grace_timer()
        session.grace_timer = timer
        timer.start(lambda: self._on_grace_expired(room.room_id, session.player_id, timer))
        logger.info("player disconnected, grace period started", player_id=session.player_id, seconds=timer.seconds)
        await self._broadcast_events(room, events)

    async def _on_grace_expired(self, room_id: str, player_id: str, timer: GraceTimer) -> None:
        async with self._locked_room(room_id) as room:
            if room is None:
                return
            session = room.players.get(player_id)
            if session is None or session.grace_timer is not timer:
                return
            player = self._game_service.get_player(room_id, player_id)
            if player is None or player.connected:
                session.grace_timer = None
                return
            session.grace_timer = None
            logger.info("grace period expired", player_id=player_id)
            await self._remove_player(room, player_id)

    # ------------------------------------------------------------------
    # Game actions
    # ------------------------------------------------------------------

    async def handle_game_action(
        self,
        connection: ConnectionProtocol,
        room_id: str,
        action: GameAction,
        data: dict[str, Any],
    ) -> None:
        """Run a game action under the room lock. Unknown rooms and players are ignored."""
        async with self._locked_room(room_id) as room:
            if room is None:
                return
            player_id = self.get_player_id(connection.connection_id, room_id)
            if player_id is None:
                return
            structlog.contextvars.bind_contextvars(player_id=player_id)
            events = self._game_service.handle_action(room_id, player_id, action, data)
            await self._broadcast_events(room, events)

    async def handle_ping(self, connection: ConnectionProtocol) -> None:
        with contextlib.suppress(RuntimeError, OSError):
            await connection.send_message(PongMessage().model_dump())

    async def send_error(
        self, connection: ConnectionProtocol, code: SessionErrorCode, message: str, room_id: str | None = None
    ) -> None:
        await self._send_error(connection, code, message, room_id)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def _broadcast_events(self, room: RoomSessions, events: list[ServiceEvent]) -> None:
        """Deliver events with target-based filtering using typed targets."""
        for event in events:
            message = service_event_payload(event, room.room_id)
            if isinstance(event.target, BroadcastTarget):
                await self._broadcast_to_sessions(room.connected_sessions, message)
            elif isinstance(event.target, PlayerTarget):
                session = room.players.get(event.target.player_id)
                if session is not None and session.connection is not None:
                    with contextlib.suppress(RuntimeError, OSError):
                        await session.connection.send_message(message)

    async def _broadcast_to_sessions(self, sessions: list[PlayerSession], message: dict[str, Any]) -> None:
        """Send a message to every session in a snapshot list taken before the first send."""
        for session in sessions:
            if session.connection is not None:
                with contextlib.suppress(RuntimeError, OSError):
                    await session.connection.send_message(message)

    def cancel_all_grace_timers(self) -> None:
        for room in self._rooms.values():
            room.cancel_all_timers()
