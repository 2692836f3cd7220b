from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from .runtime_types import Broadcast
from .runtime_utils import random_mushroom

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from .runtime import MushroomRuntime
    from .runtime_types import RoomRuntime


def spawner_alive(room: "RoomRuntime") -> bool:
    return room.spawner is not None and not room.spawner.done()


def start_spawner(runtime: "MushroomRuntime", room: "RoomRuntime") -> asyncio.Task[None]:
    """Start the room's spawner unless one is already running. Call with ``room.lock`` held."""
    if spawner_alive(room):
        return room.spawner
    room.spawner = asyncio.create_task(
        run_spawner(runtime, room),
        name=f"{room.room_code}:spawner",
    )
    return room.spawner


def stop_spawner(room: "RoomRuntime") -> None:
    task = room.spawner
    if task and not task.done():
        task.cancel()
    room.spawner = None


async def spawn_tick(runtime: "MushroomRuntime", room: "RoomRuntime") -> Broadcast | None:
    """Generate one mushroom, or return None when the room stopped playing."""
    async with room.lock:
        if not runtime.directory.is_registered(room) or room.phase != "playing":
            return None
        mushroom = random_mushroom(room.last_mushroom_id)
        room.last_mushroom_id = mushroom.mushroom_id
        room.mushrooms.append(mushroom)
        return Broadcast(
            payload={"type": "mushroom_spawn", "mushroom": mushroom.to_payload()},
            recipients=tuple(room.connections()),
            room_code=room.room_code,
        )


async def run_spawner(runtime: "MushroomRuntime", room: "RoomRuntime") -> None:
    interval_s = max(0.01, runtime.spawn_interval_ms / 1000)
    logger.info("Spawner started room=%s interval=%.3fs", room.room_code, interval_s)
    loop = asyncio.get_running_loop()
    next_at = loop.time()
    ticks = 0
    # Sends run beside the loop so a slow member cannot stretch the cadence.
    sending: set[asyncio.Task[int]] = set()
    try:
        while True:
            next_at += interval_s
            await asyncio.sleep(max(0.0, next_at - loop.time()))
            broadcast = await spawn_tick(runtime, room)
            if broadcast is None:
                break
            ticks += 1
            task = asyncio.create_task(runtime.broadcast(broadcast))
            sending.add(task)
            task.add_done_callback(sending.discard)
    except asyncio.CancelledError:
        for task in sending:
            task.cancel()
        logger.info("Spawner cancelled room=%s ticks=%s", room.room_code, ticks)
        raise
    finally:
        if room.spawner is asyncio.current_task():
            room.spawner = None
    logger.info("Spawner stopped room=%s ticks=%s", room.room_code, ticks)
