from __future__ import annotations

from .config import settings

MAX_PLAYERS = settings.max_players
SPAWN_INTERVAL_MS = settings.spawn_interval_ms
SEND_TIMEOUT_SECONDS = settings.send_timeout_seconds
ROOM_CODE_LENGTH = 6
ROOM_CODE_CHARS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
ROOM_CODE_ATTEMPTS = 24
PLAYER_NAME_MAX_LENGTH = 24
DEFAULT_PLAYER_NAME = "Player"
PLAYER_ID_MAX_LENGTH = 64
MUSHROOM_X_RANGE: tuple[float, float] = (10.0, 90.0)
MUSHROOM_Y_RANGE: tuple[float, float] = (20.0, 80.0)
MUSHROOM_POINT_VALUES: tuple[int, int, int] = (1, 2, 3)
MAX_TRACKED_MUSHROOMS = 32
