"""
tests.test_selector
~~~~~~~~~~~~~~~~~~~

选曲器单元测试：候选互不重复、回避最近胜出曲目、曲库不足时回退。
"""
from __future__ import annotations

import random
from collections.abc import Callable

import pytest

from starcup.schemas.vote_interactions import Track
from starcup.services.selector import sample_distinct, select_suggestions

TrackFactory = Callable[[int], list[Track]]


class TestSampleDistinct:
    """测试无放回抽样。"""

    def test_returns_requested_count_without_duplicates(self, tracks: list[Track]) -> None:
        """抽样结果数量正确且不重复。"""
        for seed in range(50):
            picked = sample_distinct(tracks, 4, rng=random.Random(seed))

            assert len(picked) == 4
            assert len({t.id for t in picked}) == 4

    def test_seeded_rng_is_deterministic(self, tracks: list[Track]) -> None:
        """相同种子得到相同结果。"""
        a = sample_distinct(tracks, 4, rng=random.Random(7))
        b = sample_distinct(tracks, 4, rng=random.Random(7))

        assert a == b

    def test_does_not_mutate_pool(self, tracks: list[Track]) -> None:
        """抽样不修改传入的序列。"""
        original = list(tracks)

        sample_distinct(tracks, 4, rng=random.Random(1))

        assert tracks == original

    def test_whole_pool_is_a_permutation(self, four_tracks: list[Track]) -> None:
        """抽取全部元素时结果是原序列的一个排列。"""
        picked = sample_distinct(four_tracks, 4)

        assert sorted(t.id for t in picked) == ["t1", "t2", "t3", "t4"]

    def test_count_larger_than_pool_raises(self, four_tracks: list[Track]) -> None:
        """数量超过池大小应报错。"""
        with pytest.raises(ValueError):
            sample_distinct(four_tracks, 5)

    def test_every_track_can_be_picked(self, tracks: list[Track]) -> None:
        """多次抽样后每首曲目都应出现过。"""
        rng = random.Random(123)
        seen: set[str] = set()
        for _ in range(200):
            seen.update(t.id for t in sample_distinct(tracks, 4, rng=rng))

        assert seen == {t.id for t in tracks}


class TestSelectSuggestions:
    """测试候选曲目选择规则。"""

    def test_suggestions_are_unique(self, tracks: list[Track]) -> None:
        """任意历史下候选 ID 都两两不同。"""
        rng = random.Random(99)
        history: list[str] = []
        for _ in range(100):
            picked = select_suggestions(tracks, history, rng=rng)

            assert len(picked) == 4
            assert len({t.id for t in picked}) == 4
            history.append(picked[0].id)

    def test_recent_winners_are_avoided(self, track_factory: TrackFactory) -> None:
        """曲库 ≥ 9 首时，最近 5 个胜出曲目不会再次出现。"""
        catalog = track_factory(9)
        history = ["t1", "t2", "t3", "t4", "t5"]
        for seed in range(50):
            picked = select_suggestions(catalog, history, rng=random.Random(seed))

            assert {t.id for t in picked} == {"t6", "t7", "t8", "t9"}

    def test_only_last_five_winners_are_considered(self, track_factory: TrackFactory) -> None:
        """更早的胜出曲目不受限制。"""
        catalog = track_factory(9)
        history = ["t9", "t1", "t2", "t3", "t4", "t5"]

        picked = select_suggestions(catalog, history)

        assert {t.id for t in picked} == {"t6", "t7", "t8", "t9"}

    def test_repeated_history_entries_count_once(self, track_factory: TrackFactory) -> None:
        """历史中重复出现的 ID 只排除一次，窗口按条目数计算。"""
        catalog = track_factory(6)
        history = ["t1", "t1", "t1", "t1", "t2"]

        for seed in range(20):
            picked = select_suggestions(catalog, history, rng=random.Random(seed))

            assert {t.id for t in picked} == {"t3", "t4", "t5", "t6"}

    def test_falls_back_to_full_catalog(self, four_tracks: list[Track]) -> None:
        """排除后不足 4 首时使用完整曲库。"""
        picked = select_suggestions(four_tracks, ["t2"])

        assert sorted(t.id for t in picked) == ["t1", "t2", "t3", "t4"]

    def test_fallback_still_unique(self, track_factory: TrackFactory) -> None:
        """回退到完整曲库时候选仍不重复。"""
        catalog = track_factory(6)
        history = ["t1", "t2", "t3", "t4", "t5"]
        for seed in range(50):
            picked = select_suggestions(catalog, history, rng=random.Random(seed))

            assert len({t.id for t in picked}) == 4

    def test_custom_count_and_window(self, track_factory: TrackFactory) -> None:
        """候选数和回避窗口可配置。"""
        catalog = track_factory(5)

        picked = select_suggestions(catalog, ["t1", "t2"], count=3, window=1)

        assert len(picked) == 3
        assert "t2" not in {t.id for t in picked}

    def test_zero_window_disables_avoidance(self, four_tracks: list[Track]) -> None:
        """窗口为 0 时不排除任何曲目。"""
        picked = select_suggestions(four_tracks, ["t1", "t2", "t3"], window=0)

        assert len(picked) == 4
