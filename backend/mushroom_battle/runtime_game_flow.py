from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .runtime_spawner import spawner_alive, start_spawner
from .runtime_types import Broadcast
from .runtime_utils import build_players_payload, sanitize_player_id

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .runtime import MushroomRuntime


async def start_game(runtime: "MushroomRuntime", room_code: str) -> Broadcast | None:
    room = runtime.directory.get_room(room_code)
    if room is None:
        logger.debug("start_game ignored, room=%s not found", room_code)
        return None

    async with room.lock:
        if room.closed:
            return None
        if room.phase == "playing" and spawner_alive(room):
            logger.debug("start_game ignored, room=%s already playing", room.room_code)
            return None

        room.phase = "playing"
        start_spawner(runtime, room)
        return Broadcast(
            payload={"type": "game_started"},
            recipients=tuple(room.connections()),
            room_code=room.room_code,
        )


async def hit_mushroom(
    runtime: "MushroomRuntime",
    room_code: str,
    player_id: str,
    points: int,
) -> Broadcast | None:
    # Points come straight from the client; nothing here checks them against spawns.
    room = runtime.directory.get_room(room_code)
    if room is None:
        logger.debug("hit_mushroom ignored, room=%s not found", room_code)
        return None

    async with room.lock:
        if room.closed:
            return None
        player = room.find_player(sanitize_player_id(player_id))
        if player is None:
            logger.debug("hit_mushroom ignored, player=%s not in room=%s", player_id, room.room_code)
            return None

        player.score += points
        return Broadcast(
            payload={"type": "score_update", "players": build_players_payload(room.players)},
            recipients=tuple(room.connections()),
            room_code=room.room_code,
        )
