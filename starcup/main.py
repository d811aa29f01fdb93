"""
starcup.main
~~~~~~~~~~~~

FastAPI 应用入口 —— 注册路由、挂载中间件、定义生命周期。
"""
from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from starcup.api import room_endpoints, vote_ws
from starcup.core.exceptions import InvalidRoomCode, StarcupError
from starcup.core.logging import get_logger, request_id_ctx_var, setup_logging
from starcup.core.rate_limit import limiter
from starcup.core.settings import settings
from starcup.schemas.api_response import error_response
from starcup.services.catalog import load_catalog
from starcup.services.vote_system import VoteSystem

# 初始化日志系统（必须在其他模块之前）
setup_logging()
logger = get_logger(__name__)


# ── 生命周期 ──────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期钩子。曲库加载失败（CatalogError）直接终止启动。"""
    # ── 启动 ──
    catalog = load_catalog(settings.tracks_path, min_tracks=settings.SUGGESTION_COUNT)
    app.state.vote_system = VoteSystem(catalog=catalog)
    logger.info(
        "🚀 应用已启动 | env=%s | debug=%s | log_level=%s | tracks=%d",
        settings.ENVIRONMENT,
        settings.debug,
        settings.effective_log_level,
        len(catalog),
    )
    yield
    # ── 关闭 ──
    logger.info("👋 应用已关闭")


# ── 创建 FastAPI 实例 ─────────────────────────────────────────────────

app: FastAPI = FastAPI(
    title=settings.PROJECT_NAME,
    description="派对实时点歌投票后端 API",
    version=settings.VERSION,
    debug=settings.debug,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

if settings.allow_cors_all_origins:
    # dev / test 环境：允许所有来源，方便本地调试
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def request_id_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """为每个 HTTP 请求分配 request_id，写入日志上下文和响应头。"""
    req_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
    token = request_id_ctx_var.set(req_id)
    try:
        response = await call_next(request)
    finally:
        request_id_ctx_var.reset(token)
    response.headers["X-Request-ID"] = req_id
    return response


# ── 路由挂载 ──────────────────────────────────────────────────────────
app.include_router(room_endpoints.router, prefix="/api", tags=["Rooms & Rounds"])
app.include_router(vote_ws.router, tags=["WebSocket Vote"])


# ── 全局异常处理器 ────────────────────────────────────────────────────

@app.exception_handler(StarcupError)
async def starcup_exception_handler(request: Request, exc: StarcupError) -> JSONResponse:
    """业务异常：非法房间码返回 400，其余返回 500。"""
    status_code = 400 if isinstance(exc, InvalidRoomCode) else 500
    logger.warning("业务异常: %s %s -> %s", request.method, request.url, exc)
    return error_response(str(exc), status_code)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """兜底：未处理异常统一返回 500 信封。"""
    logger.error("未捕获异常: %s %s -> %s", request.method, request.url, exc, exc_info=True)
    # prod 环境隐藏内部细节
    return error_response(str(exc) if not settings.is_prod else "服务器内部错误")


@app.get("/health", tags=["System"])
async def health_check(request: Request) -> JSONResponse:
    """验证服务是否正常运行。"""
    system: VoteSystem = request.app.state.vote_system
    return JSONResponse(
        content={
            "status": "ok",
            "environment": settings.ENVIRONMENT,
            "debug": settings.debug,
            "log_level": settings.effective_log_level,
            "tracks": len(system.catalog),
            "rooms": len(system.store),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "starcup.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.reload,  # 仅 dev 环境开启热重载
        log_level=settings.effective_log_level.lower(),
    )
