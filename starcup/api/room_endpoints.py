"""
starcup.api.room_endpoints
~~~~~~~~~~~~~~~~~~~~~~~~~~

投票房间 REST 接口 —— DJ 操作 + 投票链接 + 二维码。

路由前缀 ``/api``，所有房间相关操作统一在此处。

端点:
  - ``POST /rooms``                    → 创建房间
  - ``GET  /rooms``                    → 获取房间列表
  - ``GET  /rooms/{code}``             → 获取房间快照（不存在则创建）
  - ``POST /rooms/{code}/open-vote``   → 开启投票（抽取 4 首候选）
  - ``POST /rooms/{code}/close-vote``  → 结束投票并公布胜出曲目
  - ``POST /rooms/{code}/reset``       → 回到空闲状态（保留上一次胜出曲目）
  - ``GET  /rooms/{code}/vote-url``    → 观众投票页 URL
  - ``GET  /rooms/{code}/qr``          → 投票页二维码 PNG
"""
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from starcup.api.deps import get_vote_system
from starcup.core.exceptions import QrRenderError
from starcup.core.logging import get_logger
from starcup.core.rate_limit import limiter
from starcup.core.settings import settings
from starcup.schemas.api_response import ApiResponse, error_response
from starcup.schemas.vote_interactions import (
    CreateRoomData,
    RoomInfoData,
    RoomSnapshot,
    VoteUrlData,
    WinnerData,
)
from starcup.services.qr import render_qr_png
from starcup.services.vote_system import VoteSystem

logger = get_logger(__name__)

router: APIRouter = APIRouter()


def _base_url(request: Request) -> str:
    """对外基础 URL：优先使用 ``BASE_URL`` 配置，否则取请求地址。"""
    return settings.BASE_URL or str(request.base_url).rstrip("/")


# ── 房间管理端点 ──────────────────────────────────────────────────────

@router.post("/rooms", summary="创建房间")
@limiter.limit(settings.ROOM_CREATE_RATE_LIMIT)
async def create_room(
    request: Request, system: VoteSystem = Depends(get_vote_system),
) -> ApiResponse[CreateRoomData]:
    """生成一个新的唯一房间码并创建空闲房间。"""
    room = system.create_room()
    return ApiResponse.ok(data=CreateRoomData(room_code=room.room_code))


@router.get("/rooms", summary="获取房间列表")
async def list_rooms(
    system: VoteSystem = Depends(get_vote_system),
) -> ApiResponse[list[RoomInfoData]]:
    """返回所有已创建房间的摘要。"""
    return ApiResponse.ok(data=system.list_rooms())


@router.get("/rooms/{code}", summary="获取房间快照")
async def room_snapshot(
    code: str, system: VoteSystem = Depends(get_vote_system),
) -> ApiResponse[RoomSnapshot]:
    """返回房间当前公开状态，房间不存在时自动创建。"""
    return ApiResponse.ok(data=system.snapshot(code))


# ── DJ 操作端点 ───────────────────────────────────────────────────────

@router.post("/rooms/{code}/open-vote", summary="开启投票")
async def open_vote(
    code: str, system: VoteSystem = Depends(get_vote_system),
) -> ApiResponse[RoomSnapshot]:
    """抽取新候选、清空票数并开始接受投票，广播 ``round_update``。"""
    snapshot = await system.open_round(code)
    return ApiResponse.ok(data=snapshot)


@router.post("/rooms/{code}/close-vote", summary="结束投票")
async def close_vote(
    code: str, system: VoteSystem = Depends(get_vote_system),
) -> ApiResponse[WinnerData]:
    """结束投票并返回胜出曲目，依次广播 ``validated`` 与 ``round_update``。"""
    winner = await system.close_round(code)
    return ApiResponse.ok(data=WinnerData(winner=winner))


@router.post("/rooms/{code}/reset", summary="重置为空闲")
async def reset_vote(
    code: str, system: VoteSystem = Depends(get_vote_system),
) -> ApiResponse[RoomSnapshot]:
    """清空候选与票数（不清除上一次胜出曲目），广播 ``round_update``。"""
    snapshot = await system.reset_round(code)
    return ApiResponse.ok(data=snapshot)


# ── 投票链接端点 ──────────────────────────────────────────────────────

@router.get("/rooms/{code}/vote-url", summary="获取投票链接")
async def vote_url(
    code: str, request: Request, system: VoteSystem = Depends(get_vote_system),
) -> ApiResponse[VoteUrlData]:
    """返回观众扫码后打开的投票页 URL。"""
    room = system.get_room(code)
    url = system.vote_url(room.room_code, _base_url(request))
    return ApiResponse.ok(data=VoteUrlData(room_code=room.room_code, vote_url=url))


@router.get(
    "/rooms/{code}/qr",
    summary="投票页二维码",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
@limiter.limit(settings.API_RATE_LIMIT)
async def vote_qr(
    code: str, request: Request, system: VoteSystem = Depends(get_vote_system),
) -> Response:
    """把投票页 URL 渲染为 PNG 二维码。渲染失败返回 500，不影响房间状态。"""
    url = system.vote_url(code, _base_url(request))
    try:
        png: bytes = await run_in_threadpool(
            render_qr_png, url, settings.QR_BOX_SIZE, settings.QR_BORDER,
        )
    except QrRenderError as e:
        logger.error("二维码生成失败 | room=%s | %s", code, e, exc_info=True)
        return error_response("QR error", 500)
    return Response(content=png, media_type="image/png")
