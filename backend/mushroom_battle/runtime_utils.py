from __future__ import annotations

import random
import re
import time
import uuid
from typing import Any

from .runtime_constants import (
    DEFAULT_PLAYER_NAME,
    MUSHROOM_POINT_VALUES,
    MUSHROOM_X_RANGE,
    MUSHROOM_Y_RANGE,
    PLAYER_ID_MAX_LENGTH,
    PLAYER_NAME_MAX_LENGTH,
    ROOM_CODE_CHARS,
    ROOM_CODE_LENGTH,
)
from .runtime_types import Mushroom, RoomPlayer


def now_ms() -> int:
    return int(time.time() * 1000)


def random_id() -> str:
    return str(uuid.uuid4())


def random_room_code(length: int = ROOM_CODE_LENGTH) -> str:
    return "".join(random.choice(ROOM_CODE_CHARS) for _ in range(max(4, length)))


def sanitize_room_code(raw: Any) -> str:
    value = str(raw or "").strip().upper()
    filtered = "".join(ch for ch in value if ch.isascii() and ch.isalnum())
    return filtered[:16]


def sanitize_player_id(raw: Any) -> str:
    return str(raw or "").strip()[:PLAYER_ID_MAX_LENGTH]


def sanitize_player_name(raw: Any) -> str:
    value = str(raw or "").strip()
    if not value:
        return DEFAULT_PLAYER_NAME
    cleaned = re.sub(r"\s+", " ", value)[:PLAYER_NAME_MAX_LENGTH].strip()
    return cleaned or DEFAULT_PLAYER_NAME


def next_mushroom_id(last_id: int) -> int:
    """Millisecond timestamp, bumped so ids within a room strictly increase."""
    return max(now_ms(), last_id + 1)


def random_mushroom(last_id: int = 0, rng: random.Random | None = None) -> Mushroom:
    source = rng or random
    x_min, x_max = MUSHROOM_X_RANGE
    y_min, y_max = MUSHROOM_Y_RANGE
    return Mushroom(
        mushroom_id=next_mushroom_id(last_id),
        x=x_min + source.random() * (x_max - x_min),
        y=y_min + source.random() * (y_max - y_min),
        points=source.choice(MUSHROOM_POINT_VALUES),
    )


def build_players_payload(players: list[RoomPlayer]) -> list[dict[str, Any]]:
    return [
        {"id": player.player_id, "name": player.name, "score": player.score}
        for player in players
    ]
