from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


class Settings:
    def __init__(self) -> None:
        self.host = os.getenv("HOST", "0.0.0.0").strip() or "0.0.0.0"
        self.port = int(os.getenv("PORT", "3001"))
        self.max_players = max(1, int(os.getenv("MAX_PLAYERS", "5")))
        self.spawn_interval_ms = max(
            50,
            int(os.getenv("SPAWN_INTERVAL_MS", "1500")),
        )
        self.send_timeout_seconds = max(
            0.1,
            float(os.getenv("SEND_TIMEOUT_SECONDS", "2.0")),
        )
        self.log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"
        raw_origins = os.getenv("CORS_ORIGINS", "*")
        self.cors_origins = [
            origin.strip() for origin in raw_origins.split(",") if origin.strip()
        ] or ["*"]


settings = Settings()
