from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from mushroom_battle.api.dependencies import get_runtime
from mushroom_battle.runtime import MushroomRuntime

router = APIRouter(tags=["rooms"])


@router.get("/api/rooms/{room_code}")
async def room_summary(
    room_code: str,
    runtime: MushroomRuntime = Depends(get_runtime),
) -> dict[str, object]:
    room = runtime.directory.get_room(room_code)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return runtime.directory.room_summary(room)
