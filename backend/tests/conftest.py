import asyncio
from typing import Any

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from mushroom_battle.application import create_app
from mushroom_battle.runtime import MushroomRuntime

FAST_SPAWN_INTERVAL_MS = 20


class FakeWebSocket:
    """Stands in for a FastAPI WebSocket; records every JSON payload sent to it."""

    def __init__(self, fail: bool = False, stall: bool = False) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail = fail
        self.stall = stall

    async def send_json(self, data: dict[str, Any]) -> None:
        if self.fail:
            raise RuntimeError("socket already closed")
        if self.stall:
            await asyncio.sleep(3600)
        self.sent.append(data)

    def of_type(self, message_type: str) -> list[dict[str, Any]]:
        return [message for message in self.sent if message.get("type") == message_type]

    def types(self) -> list[str]:
        return [str(message.get("type")) for message in self.sent]


@pytest_asyncio.fixture()
async def live_runtime():
    runtime = MushroomRuntime(
        spawn_interval_ms=FAST_SPAWN_INTERVAL_MS,
        send_timeout_seconds=0.2,
    )
    yield runtime
    await runtime.shutdown()


@pytest.fixture()
def connect(live_runtime):
    def _connect(**kwargs):
        websocket = FakeWebSocket(**kwargs)
        return live_runtime.registry.register(websocket), websocket

    return _connect


@pytest.fixture()
def client():
    runtime = MushroomRuntime(spawn_interval_ms=FAST_SPAWN_INTERVAL_MS, send_timeout_seconds=1.0)
    with TestClient(create_app(runtime)) as test_client:
        yield test_client


@pytest.fixture()
def receive_until():
    def _receive_until(ws, message_type: str, limit: int = 200) -> dict[str, Any]:
        # Spawns keep arriving while a round runs; skip past them.
        for _ in range(limit):
            message = ws.receive_json()
            if message.get("type") == message_type:
                return message
        raise AssertionError(f"no {message_type} message within {limit} messages")

    return _receive_until
