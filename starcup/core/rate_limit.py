"""
starcup.core.rate_limit
~~~~~~~~~~~~~~~~~~~~~~~

HTTP 接口与 WebSocket 投票的限流配置。
"""
from __future__ import annotations

import time

from slowapi import Limiter
from slowapi.util import get_remote_address

# --------- HTTP 接口限流器 ---------
# 基于客户端 IP 地址进行限流，具体额度在各端点装饰器上指定
limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
)


# --------- WebSocket 限流器 ---------
class WebSocketRateLimiter:
    """基于内存的简单 WebSocket 投票限流器。

    只记录每个连接上一次 **被接受** 的投票时间：被拒绝的投票（例如携带了
    旧的 ``roundId``）不占用额度，客户端可以立即用正确的数据重试。
    过快的投票直接丢弃，与其他被拒绝的投票一样静默处理。
    """

    def __init__(self, interval_seconds: float = 0.5) -> None:
        self.interval_seconds = interval_seconds
        self._last_vote_time: dict[int, float] = {}

    def is_allowed(self, client_id: int) -> bool:
        """检查距上一次被接受的投票是否已超过间隔（只检查，不记录）。

        Args:
            client_id: 客户端唯一标识（如 ``id(websocket)``）。
        """
        last_time = self._last_vote_time.get(client_id)
        return last_time is None or time.monotonic() - last_time >= self.interval_seconds

    def record(self, client_id: int) -> None:
        """登记一次被接受的投票。"""
        self._last_vote_time[client_id] = time.monotonic()

    def remove_client(self, client_id: int) -> None:
        """清理断开连接的客户端记录。"""
        self._last_vote_time.pop(client_id, None)
