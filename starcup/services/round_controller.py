"""
starcup.services.round_controller
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

轮次状态机与计票规则。

状态: ``IDLE``（从未开轮或已重置）→ ``OPEN``（接受投票）→ ``CLOSED``（已出结果），
无终态，可无限循环。每个操作都在房间锁内完成修改并生成快照，
返回的 ``Transition.events`` 由调用方在释放锁之后广播。
"""
from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass

from starcup.core.logging import get_logger
from starcup.schemas.vote_interactions import RoomEvent, RoomSnapshot, Track
from starcup.services.selector import HISTORY_WINDOW, SUGGESTION_COUNT, select_suggestions
from starcup.services.vote_room import VoteRoom, new_round_id

logger = get_logger(__name__)


@dataclass(frozen=True)
class Transition:
    """一次状态操作的结果。

    Attributes:
        accepted: 操作是否生效（只有投票会被拒绝）。
        winner: ``close_round`` 报告的胜出曲目。
        snapshot: 操作完成时（锁内）的房间快照，被拒绝的投票为 ``None``。
        events: 需要按顺序广播的事件，被拒绝的投票为空。
    """

    accepted: bool = True
    winner: Track | None = None
    snapshot: RoomSnapshot | None = None
    events: tuple[RoomEvent, ...] = ()


REJECTED = Transition(accepted=False)


def pick_winner(suggestions: Sequence[Track], tally: dict[str, int]) -> Track | None:
    """票数严格最高者胜出；平票时取候选顺序中靠前的一首（全 0 票则为第一首）。"""
    winner: Track | None = None
    best = -1
    for track in suggestions:
        count = tally.get(track.id, 0)
        if count > best:
            best = count
            winner = track
    return winner


class RoundController:
    """轮次控制器，所有房间共用一个实例。

    Attributes:
        catalog: 只读曲库。
        suggestion_count: 每轮候选数。
        history_window: 选曲时回避的最近胜出数。
        strict_track_validation: 为 True 时只接受投给本轮候选曲目的票。
    """

    def __init__(
        self,
        catalog: Sequence[Track],
        suggestion_count: int = SUGGESTION_COUNT,
        history_window: int = HISTORY_WINDOW,
        strict_track_validation: bool = True,
        rng: random.Random | None = None,
    ) -> None:
        if len(catalog) < suggestion_count:
            raise ValueError(
                f"Catalog has {len(catalog)} tracks, need at least {suggestion_count}",
            )
        self.catalog: tuple[Track, ...] = tuple(catalog)
        self.suggestion_count = suggestion_count
        self.history_window = history_window
        self.strict_track_validation = strict_track_validation
        self._rng = rng

    def open_round(self, room: VoteRoom) -> Transition:
        """抽取新候选、清空台账、更换轮次标识并开始接受投票。任何状态下均可调用。"""
        with room.lock:
            room.suggestions = select_suggestions(
                self.catalog,
                room.history,
                count=self.suggestion_count,
                window=self.history_window,
                rng=self._rng,
            )
            room.tally = {}
            room.voted_tokens = set()
            room.round_id = new_round_id(room.round_id)
            room.round_open = True
            snapshot = room.snapshot()

        logger.info(
            "投票已开启 | room=%s | round=%s | suggestions=%s",
            room.room_code, snapshot.round_id, [t.id for t in snapshot.suggestions],
        )
        return Transition(snapshot=snapshot, events=(RoomEvent.round_update(snapshot),))

    def close_round(self, room: VoteRoom) -> Transition:
        """结束投票并计算胜出曲目。

        没有候选曲目时不计算，保留并报告上一次的胜出曲目（可能为 ``None``）。
        """
        with room.lock:
            room.round_open = False
            winner = pick_winner(room.suggestions, room.tally)
            if winner is not None:
                room.last_winner = winner
                room.history.append(winner.id)
            reported = room.last_winner
            tally = dict(room.tally)
            snapshot = room.snapshot()

        logger.info(
            "投票已结束 | room=%s | round=%s | winner=%s | tally=%s",
            room.room_code, snapshot.round_id, reported.id if reported else None, tally,
        )
        return Transition(
            winner=reported,
            snapshot=snapshot,
            events=(RoomEvent.validated(reported), RoomEvent.round_update(snapshot)),
        )

    def reset_round(self, room: VoteRoom) -> Transition:
        """回到空闲状态：清空候选和台账，保留上一次胜出曲目与历史。"""
        with room.lock:
            room.round_open = False
            room.suggestions = []
            room.tally = {}
            room.voted_tokens = set()
            room.round_id = new_round_id(room.round_id)
            snapshot = room.snapshot()

        logger.info("房间已重置 | room=%s | round=%s", room.room_code, snapshot.round_id)
        return Transition(snapshot=snapshot, events=(RoomEvent.round_update(snapshot),))

    def cast_vote(
        self, room: VoteRoom, round_id: str, track_id: str, voter_token: str,
    ) -> Transition:
        """登记一张选票。

        同时满足以下条件才接受：本轮开放、``round_id`` 与当前一致、
        令牌非空且本轮未投过（严格模式下还要求 ``track_id`` 属于本轮候选）。
        被拒绝的投票不修改任何状态、不广播。
        """
        reason: str | None = None
        snapshot = None
        with room.lock:
            if not room.round_open:
                reason = "round closed"
            elif round_id != room.round_id:
                reason = "stale round"
            elif not voter_token:
                reason = "missing voter token"
            elif voter_token in room.voted_tokens:
                reason = "already voted"
            elif self.strict_track_validation and track_id not in {
                t.id for t in room.suggestions
            }:
                reason = "unknown track"
            else:
                room.voted_tokens.add(voter_token)
                room.tally[track_id] = room.tally.get(track_id, 0) + 1
                snapshot = room.snapshot()

        if snapshot is None:
            logger.debug("投票被忽略 | room=%s | reason=%s", room.room_code, reason)
            return REJECTED

        logger.debug(
            "投票已登记 | room=%s | track=%s | votes=%d",
            room.room_code, track_id, sum(snapshot.tally.values()),
        )
        return Transition(snapshot=snapshot, events=(RoomEvent.round_update(snapshot),))
