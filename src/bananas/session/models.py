from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bananas.messaging.protocol import ConnectionProtocol
    from bananas.session.grace_timer import GraceTimer


@dataclass
class PlayerSession:
    """Bind a room player to its current connection.

    Lifecycle:
    - Created when the player first joins the room
    - On disconnect: connection is cleared and a grace timer may be started
    - On resume: the grace timer is cancelled and the new connection bound
    - On leave or grace expiry: removed from the room entirely
    """

    room_id: str
    player_id: str
    connection: ConnectionProtocol | None
    grace_timer: GraceTimer | None = None

    @property
    def connection_id(self) -> str | None:
        return self.connection.connection_id if self.connection is not None else None

    @property
    def is_connected(self) -> bool:
        return self.connection is not None

    def cancel_grace_timer(self) -> None:
        if self.grace_timer is not None:
            self.grace_timer.cancel()
            self.grace_timer = None


@dataclass
class RoomSessions:
    """Connection-side view of one room: its lock and its player sessions."""

    room_id: str
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    players: dict[str, PlayerSession] = field(default_factory=dict)  # player_id -> PlayerSession

    @property
    def connected_sessions(self) -> list[PlayerSession]:
        return [s for s in self.players.values() if s.connection is not None]

    def cancel_all_timers(self) -> None:
        for session in self.players.values():
            session.cancel_grace_timer()
