from __future__ import annotations


class RoomError(Exception):
    """Join failure reported to the requesting connection only."""

    code = "ROOM_ERROR"
    default_message = "Room error"

    def __init__(self, room_code: str, message: str | None = None) -> None:
        self.room_code = room_code
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, str]:
        return {"type": "error", "code": self.code, "message": self.message}


class RoomNotFound(RoomError):
    code = "ROOM_NOT_FOUND"
    default_message = "Room not found"


class RoomFull(RoomError):
    code = "ROOM_FULL"
    default_message = "Room is full"


class PlayerIdTaken(RoomError):
    code = "PLAYER_ID_TAKEN"
    default_message = "This player is already in the room"
