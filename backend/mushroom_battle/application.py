from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mushroom_battle.api.router import api_router
from mushroom_battle.config import settings
from mushroom_battle.runtime import MushroomRuntime
from mushroom_battle.runtime import runtime as default_runtime

logging.basicConfig(level=settings.log_level)

logger = logging.getLogger(__name__)


def create_app(runtime: MushroomRuntime | None = None) -> FastAPI:
    app = FastAPI(title="Mushroom Battle Backend", version="1.0.0")
    app.state.runtime = runtime or default_runtime

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.on_event("startup")
    async def on_startup() -> None:
        logger.info(
            "Mushroom Battle ready: max_players=%s spawn_interval_ms=%s",
            app.state.runtime.directory.max_players,
            app.state.runtime.spawn_interval_ms,
        )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.runtime.shutdown()

    return app


app = create_app()
