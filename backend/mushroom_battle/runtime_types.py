from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Literal

from fastapi import WebSocket

Phase = Literal["lobby", "playing"]


@dataclass(eq=False)
class ClientConnection:
    connection_id: str
    websocket: WebSocket
    connected_at: int
    send_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


@dataclass
class RoomPlayer:
    player_id: str
    name: str
    connection: ClientConnection
    score: int = 0


@dataclass(frozen=True)
class Mushroom:
    mushroom_id: int
    x: float
    y: float
    points: int

    def to_payload(self) -> dict[str, Any]:
        return {"id": self.mushroom_id, "x": self.x, "y": self.y, "points": self.points}


@dataclass
class RoomRuntime:
    room_code: str
    created_at: int
    players: list[RoomPlayer] = field(default_factory=list)
    phase: Phase = "lobby"
    mushrooms: deque[Mushroom] = field(default_factory=deque)
    last_mushroom_id: int = 0
    spawner: asyncio.Task[None] | None = None
    closed: bool = False
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def find_player(self, player_id: str) -> RoomPlayer | None:
        return next((p for p in self.players if p.player_id == player_id), None)

    def connections(self) -> list[ClientConnection]:
        # One connection may hold several entries after repeated joins; send once.
        seen: dict[str, ClientConnection] = {}
        for player in self.players:
            seen.setdefault(player.connection.connection_id, player.connection)
        return list(seen.values())


@dataclass(frozen=True)
class Broadcast:
    """Outbound payload plus the recipients snapshotted while the room was locked."""

    payload: dict[str, Any]
    recipients: tuple[ClientConnection, ...]
    room_code: str = "-"
