"""
starcup.core.exceptions
~~~~~~~~~~~~~~~~~~~~~~~

自定义异常类别，集中管理，方便 API 层统一处理。

被拒绝的投票不是异常：``cast_vote`` 只返回 ``False``。
"""
from __future__ import annotations


class StarcupError(Exception):
    """所有业务异常的基类。"""


class CatalogError(StarcupError):
    """曲库文件缺失、为空、表头错误或有效曲目不足，启动时致命。"""


class InvalidRoomCode(StarcupError):
    """房间码为空或无法规范化。"""

    def __init__(self, code: object) -> None:
        self.code = code
        super().__init__(f"Invalid room code: {code!r}")


class QrRenderError(StarcupError):
    """二维码渲染失败。"""
