from __future__ import annotations

import uvicorn

from mushroom_battle.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        reload_dirs=["backend"],
    )
