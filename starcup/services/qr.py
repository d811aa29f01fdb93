"""
starcup.services.qr
~~~~~~~~~~~~~~~~~~~

投票链接与二维码生成。
"""
from __future__ import annotations

import io
from urllib.parse import urlencode

import qrcode

from starcup.core.exceptions import QrRenderError


def build_vote_url(base_url: str, room_code: str, vote_page: str = "vote.html") -> str:
    """拼出观众投票页 URL，房间码作为 ``room`` 查询参数。

    Example:
        >>> build_vote_url("https://party.example/", "ABC123")
        'https://party.example/vote.html?room=ABC123'
    """
    return f"{base_url.rstrip('/')}/{vote_page.lstrip('/')}?{urlencode({'room': room_code})}"


def render_qr_png(data: str, box_size: int = 8, border: int = 1) -> bytes:
    """把文本渲染为 PNG 二维码。

    Raises:
        QrRenderError: 渲染失败。
    """
    try:
        qr = qrcode.QRCode(box_size=box_size, border=border)
        qr.add_data(data)
        qr.make(fit=True)
        img = qr.make_image(fill_color="black", back_color="white")
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
    except Exception as e:
        raise QrRenderError(f"QR rendering failed: {e}") from e
    return buffer.getvalue()
