from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any

from .runtime_constants import MAX_PLAYERS, MAX_TRACKED_MUSHROOMS, ROOM_CODE_ATTEMPTS
from .runtime_errors import PlayerIdTaken, RoomFull, RoomNotFound
from .runtime_spawner import spawner_alive, stop_spawner
from .runtime_types import Broadcast, ClientConnection, RoomPlayer, RoomRuntime
from .runtime_utils import (
    build_players_payload,
    now_ms,
    random_room_code,
    sanitize_player_id,
    sanitize_player_name,
    sanitize_room_code,
)

logger = logging.getLogger(__name__)


class RoomDirectory:
    """Room code -> room mapping, with a reverse index from connection to rooms.

    Lock order: a room lock may be held while taking ``rooms_lock``, never the
    other way round. Nothing awaits I/O while holding either lock.
    """

    def __init__(self, max_players: int = MAX_PLAYERS) -> None:
        self.max_players = max_players
        self.rooms: dict[str, RoomRuntime] = {}
        self.rooms_lock = asyncio.Lock()
        self.connection_rooms: dict[str, set[str]] = {}

    @property
    def active_rooms_count(self) -> int:
        return len(self.rooms)

    def get_room(self, room_code: Any) -> RoomRuntime | None:
        room = self.rooms.get(sanitize_room_code(room_code))
        if room is None or room.closed:
            return None
        return room

    def is_registered(self, room: RoomRuntime) -> bool:
        return not room.closed and self.rooms.get(room.room_code) is room

    def rooms_for_connection(self, connection: ClientConnection) -> set[str]:
        return set(self.connection_rooms.get(connection.connection_id, ()))

    def _index_connection(self, connection: ClientConnection, room_code: str) -> None:
        self.connection_rooms.setdefault(connection.connection_id, set()).add(room_code)

    def _new_room(self, room_code: str) -> RoomRuntime:
        return RoomRuntime(
            room_code=room_code,
            created_at=now_ms(),
            mushrooms=deque(maxlen=MAX_TRACKED_MUSHROOMS),
        )

    async def create_room(
        self,
        connection: ClientConnection,
        player_id: Any,
        player_name: Any,
    ) -> RoomRuntime:
        player = RoomPlayer(
            player_id=sanitize_player_id(player_id),
            name=sanitize_player_name(player_name),
            connection=connection,
        )
        created_room: RoomRuntime | None = None

        async with self.rooms_lock:
            for _ in range(ROOM_CODE_ATTEMPTS):
                room_code = random_room_code()
                if room_code in self.rooms:
                    continue
                room = self._new_room(room_code)
                room.players.append(player)
                self.rooms[room_code] = room
                self._index_connection(connection, room_code)
                created_room = room
                break

        if created_room is None:
            raise RuntimeError("Failed to allocate room code")

        logger.info(
            "Room %s created by player %s (%s)",
            created_room.room_code,
            player.player_id,
            player.name,
        )
        return created_room

    async def join_room(
        self,
        connection: ClientConnection,
        room_code: Any,
        player_id: Any,
        player_name: Any,
    ) -> Broadcast:
        normalized_code = sanitize_room_code(room_code)
        async with self.rooms_lock:
            room = self.rooms.get(normalized_code)

        if room is None:
            raise RoomNotFound(normalized_code)

        normalized_player_id = sanitize_player_id(player_id)
        async with room.lock:
            # The last member may have left between the lookup and this point.
            if room.closed:
                raise RoomNotFound(normalized_code)
            if len(room.players) >= self.max_players:
                raise RoomFull(
                    normalized_code,
                    f"Room is full (max {self.max_players} players)",
                )
            if room.find_player(normalized_player_id) is not None:
                raise PlayerIdTaken(normalized_code)

            room.players.append(
                RoomPlayer(
                    player_id=normalized_player_id,
                    name=sanitize_player_name(player_name),
                    connection=connection,
                )
            )
            async with self.rooms_lock:
                self._index_connection(connection, room.room_code)

            return Broadcast(
                payload={"type": "players_update", "players": build_players_payload(room.players)},
                recipients=tuple(room.connections()),
                room_code=room.room_code,
            )

    async def remove_connection(self, connection: ClientConnection) -> list[str]:
        """Drop every player entry held by ``connection``; return codes of rooms deleted."""
        async with self.rooms_lock:
            room_codes = self.connection_rooms.pop(connection.connection_id, set())
            rooms = [self.rooms[code] for code in sorted(room_codes) if code in self.rooms]

        removed_codes: list[str] = []
        for room in rooms:
            async with room.lock:
                room.players = [p for p in room.players if p.connection is not connection]
                if room.players:
                    continue
                room.closed = True
                stop_spawner(room)
                async with self.rooms_lock:
                    if self.rooms.get(room.room_code) is room:
                        self.rooms.pop(room.room_code, None)
                removed_codes.append(room.room_code)

        return removed_codes

    def rooms_summary(self) -> list[dict[str, Any]]:
        return [self.room_summary(room) for room in self.rooms.values() if not room.closed]

    def room_summary(self, room: RoomRuntime) -> dict[str, Any]:
        return {
            "roomCode": room.room_code,
            "phase": room.phase,
            "players": build_players_payload(room.players),
            "playerCount": len(room.players),
            "maxPlayers": self.max_players,
            "spawnerActive": spawner_alive(room),
            "createdAt": room.created_at,
        }

    async def shutdown(self) -> None:
        async with self.rooms_lock:
            rooms = list(self.rooms.values())
            self.rooms.clear()
            self.connection_rooms.clear()

        spawners = []
        for room in rooms:
            async with room.lock:
                room.closed = True
                if room.spawner is not None:
                    spawners.append(room.spawner)
                stop_spawner(room)

        if spawners:
            await asyncio.gather(*spawners, return_exceptions=True)
        logger.info("Directory shut down, %s rooms dropped", len(rooms))
