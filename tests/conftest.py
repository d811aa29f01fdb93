"""
tests.conftest
~~~~~~~~~~~~~~

共享 pytest fixtures —— 在导入应用之前准备好测试环境变量和临时曲库，
使测试无需真实 ``tracks.csv`` 即可运行。
"""
from __future__ import annotations

import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

# ── 在所有测试导入前设置环境变量 ─────────────────────────────────────
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["WS_VOTE_INTERVAL"] = "0"
os.environ["ROOM_CREATE_RATE_LIMIT"] = "1000/minute"
os.environ["API_RATE_LIMIT"] = "1000/minute"
os.environ.pop("BASE_URL", None)

APP_TRACK_COUNT: int = 8

_TRACKS_DIR = Path(tempfile.mkdtemp(prefix="starcup-tests-"))
_TRACKS_FILE = _TRACKS_DIR / "tracks.csv"
_TRACKS_FILE.write_text(
    "title,artist\n"
    + "".join(f"Song {i},Artist {i}\n" for i in range(1, APP_TRACK_COUNT + 1)),
    encoding="utf-8",
)
os.environ["TRACKS_FILE"] = str(_TRACKS_FILE)

from starcup.schemas.vote_interactions import Track  # noqa: E402


def make_tracks(count: int) -> list[Track]:
    """生成 ``t1..tN`` 的测试曲目。"""
    return [
        Track(id=f"t{i}", title=f"Song {i}", artist=f"Artist {i}")
        for i in range(1, count + 1)
    ]


@pytest.fixture()
def track_factory() -> Callable[[int], list[Track]]:
    """返回 ``make_tracks``，供需要不同曲库大小的测试使用。"""
    return make_tracks


@pytest.fixture()
def tracks() -> list[Track]:
    """8 首曲目的测试曲库。"""
    return make_tracks(8)


@pytest.fixture()
def four_tracks() -> list[Track]:
    """刚好 4 首曲目的最小曲库。"""
    return make_tracks(4)


@pytest.fixture()
def sample_tracks_file(tmp_path: Any) -> Path:
    """在临时目录创建一个测试用曲库 CSV，返回文件路径。"""
    content = (
        "title,artist,genre\n"
        "Around the World,Daft Punk,house\n"
        "Music Sounds Better With You,Stardust,house\n"
        "\n"
        "Lady (Hear Me Tonight),Modjo,house\n"
        "Show Me Love,Robin S,house\n"
        "Finally,CeCe Peniston,house\n"
    )
    file_path = tmp_path / "tracks.csv"
    file_path.write_text(content, encoding="utf-8")
    return file_path
