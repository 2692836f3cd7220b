from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class CreateRoomMessage(BaseModel):
    type: Literal["create_room"] = "create_room"
    playerId: str = Field(min_length=1)
    playerName: str


class JoinRoomMessage(BaseModel):
    type: Literal["join_room"] = "join_room"
    roomCode: str = Field(min_length=1, max_length=32)
    playerId: str = Field(min_length=1)
    playerName: str

    @field_validator("roomCode")
    @classmethod
    def normalize_room_code(cls, value: str) -> str:
        return value.strip().upper()


class StartGameMessage(BaseModel):
    type: Literal["start_game"] = "start_game"
    roomCode: str = Field(min_length=1, max_length=32)


class HitMushroomMessage(BaseModel):
    type: Literal["hit_mushroom"] = "hit_mushroom"
    roomCode: str = Field(min_length=1, max_length=32)
    playerId: str = Field(min_length=1)
    # Any non-negative amount is accepted; scores only ever grow.
    points: int = Field(ge=0)


INBOUND_MESSAGES: dict[str, type[BaseModel]] = {
    "create_room": CreateRoomMessage,
    "join_room": JoinRoomMessage,
    "start_game": StartGameMessage,
    "hit_mushroom": HitMushroomMessage,
}
