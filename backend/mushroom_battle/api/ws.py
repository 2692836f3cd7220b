from __future__ import annotations

from fastapi import APIRouter, WebSocket

from mushroom_battle.api.dependencies import get_runtime

router = APIRouter(tags=["websocket"])


@router.websocket("/api/ws")
async def websocket_api(ws: WebSocket) -> None:
    await get_runtime(ws).handle_websocket(ws)


@router.websocket("/ws")
async def websocket_compat(ws: WebSocket) -> None:
    await get_runtime(ws).handle_websocket(ws)


@router.websocket("/")
async def websocket_root(ws: WebSocket) -> None:
    # Browser clients open the socket on the bare host.
    await get_runtime(ws).handle_websocket(ws)
