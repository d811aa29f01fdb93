"""
starcup.services.vote_room
~~~~~~~~~~~~~~~~~~~~~~~~~~

投票房间领域模型 —— 封装一个房间的轮次状态、计票台账和观众连接。

房间之间互不干扰；所有状态修改都由 ``RoundController`` 在 ``lock`` 内完成，
``VoteSystem`` 在 ``emit_lock`` 内完成修改与广播。
"""
from __future__ import annotations

import asyncio
import threading
import uuid
from enum import Enum

from starcup.schemas.vote_interactions import RoomInfoData, RoomSnapshot, Track
from starcup.services.room_broadcaster import RoomBroadcaster


class RoundState(str, Enum):
    """房间的轮次状态。"""

    IDLE = "IDLE"
    OPEN = "OPEN"
    CLOSED = "CLOSED"


def new_round_id(previous: str | None = None) -> str:
    """生成新的轮次标识，保证与上一轮不同。"""
    while True:
        round_id = uuid.uuid4().hex[:8]
        if round_id != previous:
            return round_id


class VoteRoom:
    """一个投票房间。

    Attributes:
        room_code: 规范化（大写）后的房间码。
        round_open: 本轮是否正在接受投票。
        round_id: 当前轮次标识，每次重新抽曲或重置时更换。
        suggestions: 本轮候选曲目。
        tally: 曲目 ID → 票数，只记录当前轮次。
        voted_tokens: 本轮已投票的令牌集合，与 ``tally`` 同时清空。
        last_winner: 最近一次结束的轮次的胜出曲目。
        history: 历史胜出曲目 ID，只追加。
        broadcaster: 本房间的 WebSocket 广播器。
        lock: 保护上述状态的互斥锁。
        emit_lock: 串行化「修改 → 广播」，保证观众按修改顺序收到事件。
    """

    def __init__(self, room_code: str) -> None:
        self.room_code = room_code
        self.round_open: bool = False
        self.round_id: str = new_round_id()
        self.suggestions: list[Track] = []
        self.tally: dict[str, int] = {}
        self.voted_tokens: set[str] = set()
        self.last_winner: Track | None = None
        self.history: list[str] = []
        self.broadcaster = RoomBroadcaster()
        self.lock = threading.Lock()
        self.emit_lock = asyncio.Lock()

    @property
    def state(self) -> RoundState:
        """由字段推导出的轮次状态。"""
        if self.round_open:
            return RoundState.OPEN
        if self.suggestions:
            return RoundState.CLOSED
        return RoundState.IDLE

    @property
    def online_count(self) -> int:
        """当前在线连接数。"""
        return self.broadcaster.online_count

    def snapshot(self) -> RoomSnapshot:
        """返回公开状态快照（拷贝，不共享可变容器）。"""
        return RoomSnapshot(
            room_code=self.room_code,
            round_open=self.round_open,
            round_id=self.round_id,
            suggestions=list(self.suggestions),
            tally=dict(self.tally),
            last_winner=self.last_winner,
        )

    def info(self) -> RoomInfoData:
        """返回房间摘要信息。"""
        return RoomInfoData(
            room_code=self.room_code,
            state=self.state.value,
            online_count=self.online_count,
            rounds_played=len(self.history),
        )
