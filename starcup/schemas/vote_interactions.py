"""
starcup.schemas.vote_interactions
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

投票房间相关的 Pydantic 模型：曲目、房间快照、广播事件与客户端消息。

对外 JSON 一律使用 camelCase（``roomCode`` / ``roundOpen`` ...），
Python 侧字段保持 snake_case。
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EventName = Literal["round_update", "validated"]


class CamelModel(BaseModel):
    """对外序列化为 camelCase、对内接受 snake_case 的基类。"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Track(CamelModel):
    """曲库中的一首曲目，加载后不可变。"""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="曲目稳定标识")
    title: str = Field(..., description="曲名")
    artist: str = Field(..., description="艺人")


class RoomSnapshot(CamelModel):
    """广播给房间内所有观众的公开状态。"""

    room_code: str = Field(..., description="房间码（大写）")
    round_open: bool = Field(..., description="本轮是否正在接受投票")
    round_id: str = Field(..., description="本轮投票标识")
    suggestions: list[Track] = Field(default_factory=list, description="本轮候选曲目")
    tally: dict[str, int] = Field(default_factory=dict, description="曲目 ID → 票数")
    last_winner: Track | None = Field(default=None, description="上一轮胜出曲目")


class RoomInfoData(CamelModel):
    """房间摘要信息。"""

    room_code: str = Field(..., description="房间码")
    state: str = Field(..., description="轮次状态：IDLE / OPEN / CLOSED")
    online_count: int = Field(..., description="当前在线连接数")
    rounds_played: int = Field(..., description="已结束的轮次数")


class RoomEvent(BaseModel):
    """一次需要广播的房间事件。"""

    event: EventName = Field(..., description="事件名")
    data: dict[str, Any] = Field(default_factory=dict, description="事件数据")

    @classmethod
    def round_update(cls, snapshot: RoomSnapshot) -> RoomEvent:
        """构造 ``round_update`` 事件。"""
        return cls(event="round_update", data=snapshot.model_dump(mode="json", by_alias=True))

    @classmethod
    def validated(cls, winner: Track | None) -> RoomEvent:
        """构造 ``validated`` 事件（携带本轮胜出曲目）。"""
        payload = winner.model_dump(mode="json", by_alias=True) if winner else None
        return cls(event="validated", data={"winner": payload})


# ── 客户端 → 服务端 ───────────────────────────────────────────────────

class VoteMessage(CamelModel):
    """观众通过 WebSocket 发来的投票消息。"""

    type: Literal["vote"] = Field(default="vote", description="消息类型")
    round_id: str = Field(default="", description="客户端看到的轮次标识")
    track_id: str = Field(default="", description="所投曲目 ID")
    voter_token: str = Field(
        default="",
        validation_alias=AliasChoices("voterToken", "voterId", "voter_token"),
        description="客户端自生成的投票人令牌",
    )


# ── HTTP 响应数据 ─────────────────────────────────────────────────────

class CreateRoomData(CamelModel):
    """创建房间响应数据。"""

    room_code: str = Field(..., description="新房间码")


class WinnerData(CamelModel):
    """结束投票响应数据。"""

    winner: Track | None = Field(default=None, description="胜出曲目，没有时为 null")


class VoteUrlData(CamelModel):
    """投票链接响应数据。"""

    room_code: str = Field(..., description="房间码")
    vote_url: str = Field(..., description="观众投票页 URL")
