"""
Pure transformations from raw YouTube payload values to the stored shape.

Nothing in here raises: a malformed field on one video must not abort an
otherwise healthy sync, so bad input degrades to a default instead.
"""
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any, List, Optional

import isodate

if TYPE_CHECKING:
    from videosync.services.youtube_service import VideoInfo

EMPTY_DURATION = "0:00"


@dataclass
class NormalizedVideo:
    video_id: str
    title: str
    description: Optional[str]
    thumbnail_url: Optional[str]
    published_at: str
    duration: str
    view_count: int = 0
    like_count: int = 0
    tags: List[str] = field(default_factory=list)


def format_duration(period: Any) -> str:
    """Render an ISO 8601 period ("PT1H2M3S") as "1:02:03" / "5:00"."""
    if not isinstance(period, str) or not period:
        return EMPTY_DURATION

    try:
        parsed = isodate.parse_duration(period)
    except (isodate.ISO8601Error, ValueError, TypeError, ArithmeticError):
        return EMPTY_DURATION

    # Year/month components have no fixed length; keep the time part only
    if isinstance(parsed, isodate.Duration):
        parsed = parsed.tdelta
    if not isinstance(parsed, timedelta) or parsed < timedelta(0):
        return EMPTY_DURATION

    total = int(parsed.total_seconds())
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)

    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


def parse_count(value: Any) -> int:
    """Statistics arrive as decimal strings; anything else counts as 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value if value >= 0 else 0
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return 0
    return parsed if parsed >= 0 else 0


def normalize_video(info: "VideoInfo") -> NormalizedVideo:
    return NormalizedVideo(
        video_id=info.video_id,
        title=info.title,
        description=info.description,
        thumbnail_url=info.thumbnail_url,
        published_at=info.published_at,
        duration=format_duration(info.duration),
        view_count=parse_count(info.view_count),
        like_count=parse_count(info.like_count),
        tags=[str(tag) for tag in (info.tags or [])],
    )
