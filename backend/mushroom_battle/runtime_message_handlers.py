from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from .runtime_errors import RoomError
from .runtime_game_flow import hit_mushroom, start_game
from .runtime_utils import now_ms
from .schemas.messages import (
    INBOUND_MESSAGES,
    CreateRoomMessage,
    HitMushroomMessage,
    JoinRoomMessage,
    StartGameMessage,
)

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .runtime import MushroomRuntime
    from .runtime_types import ClientConnection


def _describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "payload"
        parts.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(parts)[:200]


async def handle_message(
    runtime: "MushroomRuntime",
    connection: "ClientConnection",
    data: dict[str, Any],
) -> None:
    message_type = data.get("type")

    if message_type == "ping":
        await runtime.send_safe(connection, {"type": "pong", "serverTime": now_ms()})
        return

    model = INBOUND_MESSAGES.get(message_type) if isinstance(message_type, str) else None
    if model is None:
        logger.debug(
            "Ignoring unknown message type %r from connection %s",
            message_type,
            connection.connection_id,
        )
        return

    try:
        message = model.model_validate(data)
    except ValidationError as exc:
        runtime.increment_stat("invalidPayloads")
        runtime.log_ws_event(
            "invalid_payload",
            level=logging.WARNING,
            connectionId=connection.connection_id,
            messageType=message_type,
        )
        await runtime.send_safe(
            connection,
            {
                "type": "error",
                "code": "INVALID_PAYLOAD",
                "message": f"Invalid {message_type} message: {_describe_validation_error(exc)}",
            },
        )
        return

    if isinstance(message, CreateRoomMessage):
        room = await runtime.directory.create_room(connection, message.playerId, message.playerName)
        runtime.log_ws_event(
            "room_created",
            roomCode=room.room_code,
            connectionId=connection.connection_id,
            playerId=room.players[0].player_id,
        )
        await runtime.send_safe(
            connection,
            {"type": "room_created", "roomCode": room.room_code},
            room_code=room.room_code,
        )
        return

    if isinstance(message, JoinRoomMessage):
        try:
            broadcast = await runtime.directory.join_room(
                connection,
                message.roomCode,
                message.playerId,
                message.playerName,
            )
        except RoomError as exc:
            runtime.increment_stat("joinRejected")
            runtime.log_ws_event(
                "join_rejected",
                level=logging.WARNING,
                roomCode=exc.room_code or "-",
                code=exc.code,
                connectionId=connection.connection_id,
            )
            await runtime.send_safe(connection, exc.to_payload(), room_code=exc.room_code)
            return

        runtime.log_ws_event(
            "room_joined",
            roomCode=broadcast.room_code,
            connectionId=connection.connection_id,
            players=len(broadcast.payload["players"]),
        )
        await runtime.broadcast(broadcast)
        return

    if isinstance(message, StartGameMessage):
        broadcast = await start_game(runtime, message.roomCode)
        if broadcast is None:
            return
        runtime.log_ws_event(
            "game_started",
            roomCode=broadcast.room_code,
            connectionId=connection.connection_id,
        )
        await runtime.broadcast(broadcast)
        return

    if isinstance(message, HitMushroomMessage):
        broadcast = await hit_mushroom(runtime, message.roomCode, message.playerId, message.points)
        if broadcast is None:
            return
        await runtime.broadcast(broadcast)
        return
