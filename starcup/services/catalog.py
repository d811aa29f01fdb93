"""
starcup.services.catalog
~~~~~~~~~~~~~~~~~~~~~~~~

曲库加载器 —— 启动时从 CSV 读取候选曲目，之后只读。

CSV 至少需要 ``title`` 和 ``artist`` 两列（大小写不敏感），可选 ``id`` 列。
没有 ``id`` 时使用 ``t{行号}``（按非空数据行从 1 开始计数），
因此跳过无效行不会改变其他曲目的 ID。
"""
from __future__ import annotations

import csv
import io
from pathlib import Path

from starcup.core.exceptions import CatalogError
from starcup.core.logging import get_logger
from starcup.schemas.vote_interactions import Track

logger = get_logger(__name__)

# 一轮投票需要的最少曲目数
MIN_TRACKS: int = 4


def parse_catalog(raw: str, min_tracks: int = MIN_TRACKS) -> tuple[Track, ...]:
    """把 CSV 文本解析为曲目元组。

    Args:
        raw: CSV 文本内容。
        min_tracks: 至少需要的有效曲目数。

    Returns:
        按文件顺序排列的 ``Track`` 元组。

    Raises:
        CatalogError: 内容为空、表头缺列、ID 重复或有效曲目不足。
    """
    rows = [
        [cell.strip() for cell in row]
        for row in csv.reader(io.StringIO(raw))
        if any(cell.strip() for cell in row)
    ]
    if len(rows) < 2:
        raise CatalogError("Track catalog is empty.")

    header = [h.lower() for h in rows[0]]
    if "title" not in header or "artist" not in header:
        raise CatalogError("Invalid catalog header: expected at least title,artist.")

    title_idx = header.index("title")
    artist_idx = header.index("artist")
    id_idx = header.index("id") if "id" in header else None

    def cell(row: list[str], idx: int | None) -> str:
        if idx is None or idx >= len(row):
            return ""
        return row[idx]

    tracks: list[Track] = []
    seen: set[str] = set()
    for line_no, row in enumerate(rows[1:], start=1):
        title = cell(row, title_idx)
        artist = cell(row, artist_idx)
        if not title or not artist:
            logger.debug("跳过无效曲目行 | line=%d", line_no)
            continue

        track_id = cell(row, id_idx) or f"t{line_no}"
        if track_id in seen:
            raise CatalogError(f"Duplicate track id in catalog: {track_id}")
        seen.add(track_id)
        tracks.append(Track(id=track_id, title=title, artist=artist))

    if len(tracks) < min_tracks:
        raise CatalogError(
            f"Catalog needs at least {min_tracks} valid tracks, got {len(tracks)}.",
        )
    return tuple(tracks)


def load_catalog(file_path: str | Path, min_tracks: int = MIN_TRACKS) -> tuple[Track, ...]:
    """读取并解析曲库文件。

    Raises:
        CatalogError: 文件不存在或不可读，以及 :func:`parse_catalog` 的所有错误。
    """
    path = Path(file_path)
    if not path.is_file():
        raise CatalogError(f"Track catalog not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise CatalogError(f"Cannot read track catalog {path}: {e}") from e

    tracks = parse_catalog(raw, min_tracks=min_tracks)
    logger.info("✅ 曲库已加载 | file=%s | tracks=%d", path, len(tracks))
    return tracks
