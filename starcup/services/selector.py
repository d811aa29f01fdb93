"""
starcup.services.selector
~~~~~~~~~~~~~~~~~~~~~~~~~

选曲器 —— 为新一轮投票抽取互不相同的候选曲目，并回避最近的胜出曲目。
"""
from __future__ import annotations

import random
from collections.abc import Sequence

from starcup.schemas.vote_interactions import Track

SUGGESTION_COUNT: int = 4
HISTORY_WINDOW: int = 5

_system_random = random.SystemRandom()


def sample_distinct(
    pool: Sequence[Track], count: int, rng: random.Random | None = None,
) -> list[Track]:
    """部分 Fisher–Yates 洗牌：从 ``pool`` 中无放回地均匀抽取 ``count`` 个元素。"""
    if count > len(pool):
        raise ValueError(f"Cannot pick {count} tracks from a pool of {len(pool)}")
    rng = rng or _system_random
    items = list(pool)
    for i in range(count):
        j = rng.randrange(i, len(items))
        items[i], items[j] = items[j], items[i]
    return items[:count]


def select_suggestions(
    catalog: Sequence[Track],
    history: Sequence[str],
    count: int = SUGGESTION_COUNT,
    window: int = HISTORY_WINDOW,
    rng: random.Random | None = None,
) -> list[Track]:
    """为新一轮投票挑选候选曲目。

    排除 ``history`` 最近 ``window`` 个胜出 ID；排除后不足 ``count`` 首时
    退回使用完整曲库。

    Args:
        catalog: 完整曲库。
        history: 按时间顺序的历史胜出曲目 ID。
        count: 候选曲目数。
        window: 回避的最近胜出数。
        rng: 可选随机源（测试时传入带种子的 ``random.Random``）。

    Returns:
        ``count`` 首 ID 互不相同的曲目。
    """
    banned = set(history[-window:]) if window > 0 else set()
    pool = [track for track in catalog if track.id not in banned]
    if len(pool) < count:
        pool = list(catalog)
    return sample_distinct(pool, count, rng=rng)
