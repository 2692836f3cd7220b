from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from .runtime_constants import MAX_PLAYERS, SEND_TIMEOUT_SECONDS, SPAWN_INTERVAL_MS
from .runtime_directory import RoomDirectory
from .runtime_message_handlers import handle_message
from .runtime_registry import ConnectionRegistry
from .runtime_types import Broadcast, ClientConnection
from .runtime_utils import now_ms

logger = logging.getLogger(__name__)


class MushroomRuntime:
    def __init__(
        self,
        max_players: int = MAX_PLAYERS,
        spawn_interval_ms: int = SPAWN_INTERVAL_MS,
        send_timeout_seconds: float = SEND_TIMEOUT_SECONDS,
    ) -> None:
        self.spawn_interval_ms = spawn_interval_ms
        self.send_timeout_seconds = send_timeout_seconds
        self.registry = ConnectionRegistry()
        self.directory = RoomDirectory(max_players=max_players)
        self._ws_stats: dict[str, int] = {
            "connectAttempts": 0,
            "connectSuccess": 0,
            "disconnects": 0,
            "messageReceived": 0,
            "invalidJson": 0,
            "invalidPayloads": 0,
            "joinRejected": 0,
            "sendFailures": 0,
            "sendTimeouts": 0,
            "roomsRemoved": 0,
        }

    @property
    def active_rooms_count(self) -> int:
        return self.directory.active_rooms_count

    def increment_stat(self, key: str, amount: int = 1) -> None:
        self._ws_stats[key] = int(self._ws_stats.get(key, 0)) + amount

    def log_ws_event(self, event: str, level: int = logging.INFO, **fields: object) -> None:
        logger.log(
            level,
            "ws.%s %s",
            event,
            json.dumps(fields, ensure_ascii=False, separators=(",", ":")),
        )

    def get_ws_stats(self) -> dict[str, Any]:
        room_summaries = self.directory.rooms_summary()
        room_summaries.sort(key=lambda item: int(item.get("playerCount", 0)), reverse=True)
        stats = dict(self._ws_stats)
        stats["activeConnections"] = self.registry.active_count
        stats["peakConnections"] = self.registry.peak_connections
        return {
            "generatedAt": now_ms(),
            "activeRooms": self.active_rooms_count,
            "stats": stats,
            "rooms": room_summaries[:50],
        }

    async def send_safe(
        self,
        connection: ClientConnection,
        data: dict[str, Any],
        room_code: str | None = None,
    ) -> bool:
        async def send_locked() -> None:
            async with connection.send_lock:
                await connection.websocket.send_json(data)

        try:
            # The timeout also covers waiting behind a stalled send on the same socket.
            await asyncio.wait_for(send_locked(), timeout=self.send_timeout_seconds)
            return True
        except asyncio.TimeoutError:
            self.increment_stat("sendTimeouts")
            self.log_ws_event(
                "send_failed",
                level=logging.WARNING,
                roomCode=room_code or "-",
                connectionId=connection.connection_id,
                messageType=data.get("type"),
                reason="timeout",
            )
        except Exception as exc:
            # Connection may already be closed.
            self.increment_stat("sendFailures")
            logger.debug(
                "[SEND_FAIL] room=%s connection=%s reason=%s",
                room_code or "-",
                connection.connection_id,
                repr(exc),
            )
        return False

    async def broadcast(self, broadcast: Broadcast) -> int:
        """Send to every recipient concurrently; return how many sends succeeded."""
        if not broadcast.recipients:
            return 0
        results = await asyncio.gather(
            *(
                self.send_safe(connection, broadcast.payload, room_code=broadcast.room_code)
                for connection in broadcast.recipients
            )
        )
        return sum(1 for delivered in results if delivered)

    async def handle_websocket(self, websocket: WebSocket) -> None:
        self.increment_stat("connectAttempts")
        await websocket.accept()
        connection = self.registry.register(websocket)
        self.increment_stat("connectSuccess")
        self.log_ws_event(
            "connect",
            connectionId=connection.connection_id,
            activeConnections=self.registry.active_count,
        )

        disconnect_code: int | None = None
        disconnect_reason = "unknown"

        try:
            while True:
                raw = await self._receive_frame(websocket)
                if raw is None:
                    self.increment_stat("invalidJson")
                    continue
                try:
                    data = json.loads(raw)
                except json.JSONDecodeError:
                    self.increment_stat("invalidJson")
                    continue
                if not isinstance(data, dict):
                    continue
                self.increment_stat("messageReceived")
                await handle_message(self, connection, data)
        except WebSocketDisconnect as exc:
            disconnect_code = exc.code
            disconnect_reason = "websocket_disconnect"
        except Exception:
            disconnect_reason = "server_error"
            logger.exception("Unexpected websocket error for connection %s", connection.connection_id)
        finally:
            await self._cleanup_connection(
                connection,
                reason=disconnect_reason,
                close_code=disconnect_code,
            )

    async def _receive_frame(self, websocket: WebSocket) -> str | None:
        """Next text or binary frame as text; None when a binary frame is not UTF-8."""
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
        text = message.get("text")
        if text is not None:
            return text
        try:
            return (message.get("bytes") or b"").decode("utf-8")
        except UnicodeDecodeError:
            return None

    async def _cleanup_connection(
        self,
        connection: ClientConnection,
        reason: str = "unknown",
        close_code: int | None = None,
    ) -> None:
        room_codes = sorted(self.directory.rooms_for_connection(connection))
        removed_rooms = await self.directory.remove_connection(connection)
        self.registry.unregister(connection)
        self.increment_stat("disconnects")

        self.log_ws_event(
            "disconnect",
            connectionId=connection.connection_id,
            rooms=room_codes,
            reason=reason,
            closeCode=close_code,
        )
        for room_code in removed_rooms:
            self.increment_stat("roomsRemoved")
            self.log_ws_event("room_empty", roomCode=room_code)

    async def shutdown(self) -> None:
        await self.directory.shutdown()
        self.registry.clear()


runtime = MushroomRuntime()
