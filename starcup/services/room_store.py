"""
starcup.services.room_store
~~~~~~~~~~~~~~~~~~~~~~~~~~~

房间仓库 —— 房间码到 ``VoteRoom`` 的内存映射，进程生命周期内不淘汰。
"""
from __future__ import annotations

import secrets
import string
import threading

from starcup.core.exceptions import InvalidRoomCode
from starcup.core.logging import get_logger
from starcup.services.vote_room import VoteRoom

logger = get_logger(__name__)

ROOM_CODE_ALPHABET: str = string.ascii_uppercase + string.digits


def normalize_room_code(code: object) -> str:
    """房间码大小写不敏感，统一转为去空白的大写形式。

    Raises:
        InvalidRoomCode: 规范化后为空。
    """
    normalized = str(code or "").strip().upper()
    if not normalized:
        raise InvalidRoomCode(code)
    return normalized


def generate_room_code(length: int = 6) -> str:
    """生成随机房间码（大写字母 + 数字），不检查唯一性。"""
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(length))


class RoomStore:
    """房间仓库。

    - ``get_or_create(code)`` → 获取/懒创建房间（幂等）
    - ``create_room()``      → 用新生成的唯一房间码创建房间
    """

    def __init__(self, code_length: int = 6) -> None:
        self.code_length = code_length
        self._rooms: dict[str, VoteRoom] = {}
        self._lock = threading.Lock()

    def get_or_create(self, code: object) -> VoteRoom:
        """获取指定房间，不存在则创建一个全新的空闲房间。"""
        room_code = normalize_room_code(code)
        with self._lock:
            room = self._rooms.get(room_code)
            if room is None:
                room = VoteRoom(room_code)
                self._rooms[room_code] = room
                logger.info("房间已创建 | room=%s", room_code)
        return room

    def create_room(self) -> VoteRoom:
        """生成一个未被占用的房间码并创建房间。"""
        with self._lock:
            room_code = generate_room_code(self.code_length)
            while room_code in self._rooms:
                logger.warning("房间码冲突，重新生成 | room=%s", room_code)
                room_code = generate_room_code(self.code_length)
            room = VoteRoom(room_code)
            self._rooms[room_code] = room
        logger.info("房间已创建 | room=%s", room_code)
        return room

    def list_rooms(self) -> list[VoteRoom]:
        """按创建顺序列出所有房间。"""
        with self._lock:
            return list(self._rooms.values())

    def __len__(self) -> int:
        return len(self._rooms)
