from __future__ import annotations

from starlette.requests import HTTPConnection

from mushroom_battle.runtime import MushroomRuntime


def get_runtime(connection: HTTPConnection) -> MushroomRuntime:
    return connection.app.state.runtime
