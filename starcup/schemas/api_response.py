"""
starcup.schemas.api_response
~~~~~~~~~~~~~~~~~~~~~~~~~~~~

HTTP 应答信封 ``{code, data, msg}``。

成功由各端点返回 ``ApiResponse.ok(...)``；失败统一走 ``error_response``，
异常处理器和二维码端点共用同一个出口。
"""
from __future__ import annotations

from typing import Any, Generic, TypeVar

from fastapi.responses import JSONResponse
from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """HTTP 应答信封。``code`` 与 HTTP 状态码保持一致。"""

    code: int = 200
    data: T
    msg: str = "success"

    @classmethod
    def ok(cls, data: T) -> ApiResponse[T]:
        return cls(data=data)

    @classmethod
    def fail(cls, msg: str, code: int = 500) -> ApiResponse[Any]:
        return cls(code=code, data=None, msg=msg)


def error_response(msg: str, status_code: int = 500) -> JSONResponse:
    """构造失败应答，HTTP 状态码与信封内 ``code`` 相同。"""
    body = ApiResponse.fail(msg, code=status_code)
    return JSONResponse(status_code=status_code, content=body.model_dump())
