"""
tests.test_qr
~~~~~~~~~~~~~

投票链接与二维码生成单元测试。
"""
from __future__ import annotations

from unittest.mock import patch

import pytest

from starcup.core.exceptions import QrRenderError
from starcup.services.qr import build_vote_url, render_qr_png

PNG_SIGNATURE: bytes = b"\x89PNG\r\n\x1a\n"


class TestBuildVoteUrl:
    """测试投票页 URL 拼接。"""

    def test_room_code_as_query_param(self) -> None:
        """房间码作为 room 查询参数。"""
        assert build_vote_url("https://party.example", "ABC123") == (
            "https://party.example/vote.html?room=ABC123"
        )

    def test_slashes_are_normalized(self) -> None:
        """基础 URL 末尾和页面路径开头的斜杠不会重复。"""
        assert build_vote_url("http://host/", "X", "/vote.html") == "http://host/vote.html?room=X"

    def test_room_code_is_url_encoded(self) -> None:
        """房间码中的特殊字符被编码。"""
        assert build_vote_url("http://host", "A B&C").endswith("?room=A+B%26C")


class TestRenderQrPng:
    """测试二维码渲染。"""

    def test_returns_png_bytes(self) -> None:
        """返回 PNG 格式的字节串。"""
        png = render_qr_png("https://party.example/vote.html?room=ABC123")

        assert png.startswith(PNG_SIGNATURE)

    def test_failure_is_wrapped(self) -> None:
        """底层库异常被包装为 QrRenderError。"""
        with patch("starcup.services.qr.qrcode.QRCode", side_effect=RuntimeError("boom")):
            with pytest.raises(QrRenderError, match="boom"):
                render_qr_png("data")
