"""
starcup.services.room_broadcaster
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

WebSocket 连接广播器 —— 维护某个房间的在线观众列表与广播能力。
"""
from __future__ import annotations

import asyncio
from collections.abc import Iterable

from fastapi import WebSocket

from starcup.core.logging import get_logger
from starcup.schemas.vote_interactions import RoomEvent

logger = get_logger(__name__)


class RoomBroadcaster:
    """WebSocket 连接广播器。

    每个 ``VoteRoom`` 持有一个独立的 ``RoomBroadcaster`` 实例，
    负责管理该房间内的在线观众（DJ 页、大屏、投票手机）和事件广播。

    Attributes:
        active_connections: 当前在线的所有 WebSocket 连接。
    """

    def __init__(self) -> None:
        self.active_connections: set[WebSocket] = set()

    async def connect(self, websocket: WebSocket) -> None:
        """接受新连接并加入在线集合。"""
        await websocket.accept()
        self.active_connections.add(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        """从在线集合移除断开的连接。"""
        self.active_connections.discard(websocket)

    async def send_to(self, websocket: WebSocket, event: RoomEvent) -> None:
        """只向单个连接发送事件（加入房间时推送当前快照）。"""
        await websocket.send_text(event.model_dump_json())

    async def broadcast(self, message: str) -> None:
        """向本房间所有在线观众广播消息。"""
        targets = list(self.active_connections)
        tasks = [ws.send_text(message) for ws in targets]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for ws, result in zip(targets, results):
            if isinstance(result, Exception):
                logger.warning("广播失败，移除断开的连接")
                self.active_connections.discard(ws)

    async def publish(self, events: Iterable[RoomEvent]) -> None:
        """按顺序广播一组房间事件。"""
        for event in events:
            await self.broadcast(event.model_dump_json())

    @property
    def online_count(self) -> int:
        """当前在线观众数。"""
        return len(self.active_connections)
