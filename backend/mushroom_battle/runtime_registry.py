from __future__ import annotations

import logging

from fastapi import WebSocket

from .runtime_types import ClientConnection
from .runtime_utils import now_ms, random_id

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Accepted sockets, each wrapped with a server-side connection id."""

    def __init__(self) -> None:
        self.connections: dict[str, ClientConnection] = {}
        self.peak_connections = 0

    @property
    def active_count(self) -> int:
        return len(self.connections)

    def register(self, websocket: WebSocket) -> ClientConnection:
        connection = ClientConnection(
            connection_id=random_id(),
            websocket=websocket,
            connected_at=now_ms(),
        )
        self.connections[connection.connection_id] = connection
        if len(self.connections) > self.peak_connections:
            self.peak_connections = len(self.connections)
        return connection

    def unregister(self, connection: ClientConnection) -> bool:
        removed = self.connections.pop(connection.connection_id, None)
        return removed is not None

    def clear(self) -> None:
        if self.connections:
            logger.info("Dropping %s tracked connections", len(self.connections))
        self.connections.clear()
