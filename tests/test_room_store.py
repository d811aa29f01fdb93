"""
tests.test_room_store
~~~~~~~~~~~~~~~~~~~~~

房间仓库单元测试。
"""
from __future__ import annotations

from unittest.mock import patch

import pytest

from starcup.core.exceptions import InvalidRoomCode
from starcup.services.room_store import (
    ROOM_CODE_ALPHABET,
    RoomStore,
    generate_room_code,
    normalize_room_code,
)
from starcup.services.vote_room import RoundState


class TestNormalizeRoomCode:
    """测试房间码规范化。"""

    def test_uppercases_and_strips(self) -> None:
        """房间码转为大写并去除首尾空白。"""
        assert normalize_room_code("  ab1c ") == "AB1C"

    @pytest.mark.parametrize("code", ["", "   ", None])
    def test_empty_code_rejected(self, code: object) -> None:
        """空房间码应报错。"""
        with pytest.raises(InvalidRoomCode):
            normalize_room_code(code)


class TestGenerateRoomCode:
    """测试房间码生成。"""

    def test_length_and_alphabet(self) -> None:
        """房间码长度正确，只包含大写字母和数字。"""
        code = generate_room_code(6)

        assert len(code) == 6
        assert set(code) <= set(ROOM_CODE_ALPHABET)


class TestRoomStore:
    """测试房间懒创建与查询。"""

    def test_get_or_create_is_idempotent(self) -> None:
        """同一房间码（大小写不敏感）始终返回同一实例。"""
        store = RoomStore()

        room_a = store.get_or_create("party")
        room_b = store.get_or_create("PARTY")
        room_c = store.get_or_create(" Party ")

        assert room_a is room_b is room_c
        assert room_a.room_code == "PARTY"
        assert len(store) == 1

    def test_fresh_room_is_idle(self) -> None:
        """新房间处于空闲状态，各字段为空。"""
        room = RoomStore().get_or_create("abc")

        assert room.state is RoundState.IDLE
        assert room.round_open is False
        assert room.round_id
        assert room.suggestions == []
        assert room.tally == {}
        assert room.voted_tokens == set()
        assert room.last_winner is None
        assert room.history == []

    def test_different_codes_are_independent(self) -> None:
        """不同房间码对应不同房间。"""
        store = RoomStore()

        assert store.get_or_create("one") is not store.get_or_create("two")

    def test_new_store_is_empty(self) -> None:
        """新仓库没有任何房间。"""
        store = RoomStore()

        assert len(store) == 0
        assert store.list_rooms() == []

    def test_create_room_generates_unique_code(self) -> None:
        """create_room 生成指定长度的新房间码并登记房间。"""
        store = RoomStore(code_length=8)

        room = store.create_room()

        assert len(room.room_code) == 8
        assert store.list_rooms() == [room]
        assert store.get_or_create(room.room_code.lower()) is room

    def test_create_room_regenerates_on_collision(self) -> None:
        """生成的房间码已被占用时重新生成。"""
        store = RoomStore()
        existing = store.get_or_create("AAAAAA")

        with patch(
            "starcup.services.room_store.generate_room_code",
            side_effect=["AAAAAA", "AAAAAA", "BBBBBB"],
        ):
            room = store.create_room()

        assert room.room_code == "BBBBBB"
        assert store.list_rooms() == [existing, room]
        assert len(store) == 2

    def test_list_rooms_in_creation_order(self) -> None:
        """list_rooms 按创建顺序返回。"""
        store = RoomStore()
        store.get_or_create("b")
        store.get_or_create("a")

        assert [r.room_code for r in store.list_rooms()] == ["B", "A"]
