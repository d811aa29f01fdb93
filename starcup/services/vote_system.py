"""
starcup.services.vote_system
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

投票系统门面 —— 持有曲库、房间仓库和轮次控制器，对外提供与传输无关的操作。

每个修改状态的操作都是「锁内修改 → 释放锁 → 广播事件 → 返回结果」，
同一房间的操作由 ``VoteRoom.emit_lock`` 串行化。
在 FastAPI lifespan 中初始化并挂载于 ``app.state.vote_system``。
"""
from __future__ import annotations

from collections.abc import Callable, Sequence

from fastapi import WebSocket

from starcup.core.logging import get_logger
from starcup.core.settings import settings
from starcup.schemas.vote_interactions import RoomEvent, RoomInfoData, RoomSnapshot, Track
from starcup.services.qr import build_vote_url
from starcup.services.room_store import RoomStore
from starcup.services.round_controller import RoundController, Transition
from starcup.services.vote_room import VoteRoom

logger = get_logger(__name__)


class VoteSystem:
    """投票系统。

    - ``create_room()``                  → 用新房间码创建房间
    - ``open_round / close_round / reset_round(code)`` → DJ 操作
    - ``join(code, websocket)``          → 订阅房间广播并立即收到快照
    - ``vote(code, round_id, track_id, voter_token)`` → 观众投票

    Attributes:
        catalog: 只读曲库。
        store: 房间仓库。
        controller: 轮次控制器。
        vote_page: 观众投票页路径。
    """

    def __init__(
        self,
        catalog: Sequence[Track],
        store: RoomStore | None = None,
        controller: RoundController | None = None,
        vote_page: str | None = None,
    ) -> None:
        self.catalog: tuple[Track, ...] = tuple(catalog)
        self.store: RoomStore = store or RoomStore(code_length=settings.ROOM_CODE_LENGTH)
        self.controller: RoundController = controller or RoundController(
            self.catalog,
            suggestion_count=settings.SUGGESTION_COUNT,
            history_window=settings.HISTORY_WINDOW,
            strict_track_validation=settings.STRICT_TRACK_VALIDATION,
        )
        self.vote_page: str = vote_page or settings.VOTE_PAGE

    # ── 房间 ──────────────────────────────────────────────────────────

    def create_room(self) -> VoteRoom:
        """创建一个新房间。"""
        return self.store.create_room()

    def get_room(self, room_code: str) -> VoteRoom:
        """获取指定房间（不存在则自动创建）。"""
        return self.store.get_or_create(room_code)

    def snapshot(self, room_code: str) -> RoomSnapshot:
        """返回房间当前公开状态。"""
        room = self.get_room(room_code)
        with room.lock:
            return room.snapshot()

    def list_rooms(self) -> list[RoomInfoData]:
        """列出所有房间的摘要信息。"""
        return [room.info() for room in self.store.list_rooms()]

    def vote_url(self, room_code: str, base_url: str) -> str:
        """观众投票页 URL（供二维码使用）。"""
        room = self.get_room(room_code)
        return build_vote_url(base_url, room.room_code, self.vote_page)

    # ── DJ 操作 ───────────────────────────────────────────────────────

    async def open_round(self, room_code: str) -> RoomSnapshot:
        """开启新一轮投票。"""
        room = self.get_room(room_code)
        transition = await self._apply(room, self.controller.open_round)
        return transition.snapshot

    async def close_round(self, room_code: str) -> Track | None:
        """结束本轮投票，返回胜出曲目（从未开轮时为上一次的胜出曲目或 ``None``）。"""
        room = self.get_room(room_code)
        transition = await self._apply(room, self.controller.close_round)
        return transition.winner

    async def reset_round(self, room_code: str) -> RoomSnapshot:
        """回到空闲状态（保留上一次胜出曲目）。"""
        room = self.get_room(room_code)
        transition = await self._apply(room, self.controller.reset_round)
        return transition.snapshot

    # ── 实时通道 ──────────────────────────────────────────────────────

    async def join(self, room_code: str, websocket: WebSocket) -> VoteRoom:
        """接受连接、订阅房间广播，并立即推送当前快照。"""
        room = self.get_room(room_code)
        await room.broadcaster.connect(websocket)
        await self.send_snapshot(room, websocket)
        return room

    async def send_snapshot(self, room: VoteRoom, websocket: WebSocket) -> None:
        """只向单个连接推送房间快照。

        等待进行中的广播结束后再取快照，连接最后收到的一定是最新状态。
        """
        async with room.emit_lock:
            with room.lock:
                snapshot = room.snapshot()
            await room.broadcaster.send_to(websocket, RoomEvent.round_update(snapshot))

    def leave(self, room: VoteRoom, websocket: WebSocket) -> None:
        """取消订阅。"""
        room.broadcaster.disconnect(websocket)

    async def vote(
        self, room_code: str, round_id: str, track_id: str, voter_token: str,
    ) -> bool:
        """观众投票。被拒绝时静默返回 ``False``，不广播。"""
        room = self.get_room(room_code)
        transition = await self._apply(
            room, self.controller.cast_vote, round_id, track_id, voter_token,
        )
        return transition.accepted

    async def _apply(
        self, room: VoteRoom, operation: Callable[..., Transition], *args: str,
    ) -> Transition:
        """在 ``emit_lock`` 内执行修改并广播事件。

        ``operation`` 在房间的线程锁内修改状态并返回后才广播，
        同一房间的下一次修改要等本次广播发完，观众收到的事件顺序与修改顺序一致。
        """
        async with room.emit_lock:
            transition = operation(room, *args)
            if transition.events:
                await room.broadcaster.publish(transition.events)
        return transition
