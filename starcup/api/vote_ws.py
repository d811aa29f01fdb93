"""
starcup.api.vote_ws
~~~~~~~~~~~~~~~~~~~

WebSocket 实时通道 —— 多房间投票模式。

提供 ``/ws/rooms/{room_code}`` 端点：连接即加入房间并立即收到当前快照，
之后房间内的每次状态变化都会以 JSON 推送给所有连接。

服务端 → 客户端:
  - ``{"event": "round_update", "data": {roomCode, roundOpen, roundId, suggestions, tally, lastWinner}}``
  - ``{"event": "validated", "data": {"winner": {...} | null}}``

客户端 → 服务端:
  - ``{"type": "vote", "roundId": ..., "trackId": ..., "voterToken": ...}``
  - ``{"type": "join"}`` —— 重新获取快照
  - ``ping`` —— 心跳，返回 ``pong``

投票没有单独的确认消息；被接受的投票会触发一次 ``round_update`` 广播。
"""
from __future__ import annotations

import json
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError

from starcup.core.exceptions import InvalidRoomCode
from starcup.core.logging import get_logger, request_id_ctx_var
from starcup.core.rate_limit import WebSocketRateLimiter
from starcup.core.settings import settings
from starcup.schemas.vote_interactions import VoteMessage
from starcup.services.vote_room import VoteRoom
from starcup.services.vote_system import VoteSystem

logger = get_logger(__name__)

router: APIRouter = APIRouter()


async def _handle_message(
    system: VoteSystem,
    room: VoteRoom,
    websocket: WebSocket,
    raw: str,
    ws_limiter: WebSocketRateLimiter,
) -> None:
    """处理单条客户端消息。无法识别的消息直接忽略。"""
    if raw == "ping":
        await websocket.send_text("pong")
        return

    try:
        payload = json.loads(raw)
    except ValueError:
        logger.debug("忽略非 JSON 消息 | room=%s", room.room_code)
        return
    if not isinstance(payload, dict):
        return

    msg_type = payload.get("type")
    if msg_type == "join":
        await system.send_snapshot(room, websocket)
        return
    if msg_type != "vote":
        logger.debug("忽略未知消息类型 | room=%s | type=%s", room.room_code, msg_type)
        return

    try:
        message = VoteMessage.model_validate(payload)
    except ValidationError:
        logger.debug("忽略格式错误的投票 | room=%s", room.room_code)
        return

    client_id = id(websocket)
    if not ws_limiter.is_allowed(client_id):
        logger.debug("投票过快，已丢弃 | room=%s", room.room_code)
        return

    accepted = await system.vote(
        room.room_code, message.round_id, message.track_id, message.voter_token,
    )
    if accepted:
        ws_limiter.record(client_id)


@router.websocket("/ws/rooms/{room_code}")
async def websocket_vote_endpoint(websocket: WebSocket, room_code: str) -> None:
    """WebSocket 投票端点。

    通过 URL 中的 ``room_code`` 加入房间（大小写不敏感，不存在则自动创建）。

    Args:
        websocket: FastAPI WebSocket 连接对象。
        room_code: 房间码。
    """
    ws_req_id = f"ws-{uuid.uuid4().hex[:8]}"
    token = request_id_ctx_var.set(ws_req_id)

    try:
        system: VoteSystem = websocket.app.state.vote_system
        try:
            room = await system.join(room_code, websocket)
        except InvalidRoomCode:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        logger.info("观众进入房间 | room=%s | 在线: %d", room.room_code, room.online_count)

        ws_limiter = WebSocketRateLimiter(interval_seconds=settings.WS_VOTE_INTERVAL)
        try:
            while True:
                raw: str = await websocket.receive_text()
                await _handle_message(system, room, websocket, raw, ws_limiter)
        except WebSocketDisconnect:
            pass  # 正常断开
        except Exception as e:
            logger.error("WebSocket 异常: %s | room=%s", e, room.room_code, exc_info=True)
        finally:
            system.leave(room, websocket)
            ws_limiter.remove_client(id(websocket))
            logger.info("观众退出房间 | room=%s | 在线: %d", room.room_code, room.online_count)
    finally:
        request_id_ctx_var.reset(token)
