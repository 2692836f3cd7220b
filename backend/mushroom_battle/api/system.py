from __future__ import annotations

from fastapi import APIRouter, Depends

from mushroom_battle.api.dependencies import get_runtime
from mushroom_battle.runtime import MushroomRuntime

router = APIRouter(tags=["system"])


@router.get("/api/health")
async def health(runtime: MushroomRuntime = Depends(get_runtime)) -> dict[str, object]:
    ws_stats = runtime.get_ws_stats()
    ws_summary = {
        "activeConnections": ws_stats["stats"].get("activeConnections", 0),
        "peakConnections": ws_stats["stats"].get("peakConnections", 0),
        "connectAttempts": ws_stats["stats"].get("connectAttempts", 0),
    }
    return {
        "ok": True,
        "activeRooms": runtime.active_rooms_count,
        "websocket": ws_summary,
    }


@router.get("/api/ws-stats")
async def websocket_stats(runtime: MushroomRuntime = Depends(get_runtime)) -> dict[str, object]:
    return runtime.get_ws_stats()
