import re
from contextlib import ExitStack
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

import structlog

from videosync.core.deadline import Deadline
from videosync.core.exceptions import CatalogSyncError, ConflictError, NotFoundError
from videosync.db.models.channel import Channel
from videosync.services.catalog_store import CatalogStore
from videosync.services.locks import get_lock_provider
from videosync.services.normalizer import normalize_video
from videosync.services.youtube_service import VideoInfo, YouTubeService

logger = structlog.get_logger()

CHANNEL_ID_PREFIX = "UC"
DEFAULT_PAGE_SIZE = 50

_CHANNEL_URL_PATTERNS = [
    (re.compile(r"youtube\.com/channel/([A-Za-z0-9_-]+)"), "channel_id"),
    (re.compile(r"youtube\.com/@([A-Za-z0-9_.-]+)"), "handle"),
    (re.compile(r"youtube\.com/(?:c|user)/([A-Za-z0-9_.-]+)"), "handle"),
]


@dataclass
class SyncResult:
    channel: Channel
    created_count: int
    updated_count: int
    total_fetched: int


def parse_channel_reference(raw: str) -> Tuple[str, str]:
    """Classify user input as ("channel_id", "UC...") or ("handle", "name").

    Accepts bare IDs, "@handles", plain names and channel URLs.
    """
    value = raw.strip()

    for pattern, kind in _CHANNEL_URL_PATTERNS:
        match = pattern.search(value)
        if match:
            value = match.group(1)
            if kind == "channel_id" and value.startswith(CHANNEL_ID_PREFIX):
                return ("channel_id", value)
            return ("handle", value)

    if value.startswith("@") or not value.startswith(CHANNEL_ID_PREFIX):
        return ("handle", value.lstrip("@"))
    return ("channel_id", value)


class ChannelSyncService:
    """Mirror one YouTube channel's uploads into the local catalog.

    Re-running a sync is always safe: videos are matched on their YouTube ID,
    so a second pass over the same uploads only updates rows. Writes are
    committed one video at a time; if a pass dies halfway, the videos it
    already wrote stay and the rest are picked up by the next pass.
    """

    def __init__(
        self,
        store: CatalogStore,
        youtube: YouTubeService,
        lock=None,
        page_size: int = DEFAULT_PAGE_SIZE,
        deadline_seconds: Optional[float] = None,
    ):
        self.store = store
        self.youtube = youtube
        self.lock = lock
        self.page_size = page_size
        self.deadline_seconds = deadline_seconds

    def sync_channel(self, raw_identifier: str) -> SyncResult:
        deadline = Deadline.after(self.deadline_seconds)

        channel_id = self._run_stage("resolve", self._resolve_channel_id, raw_identifier, deadline)

        with ExitStack() as stack:
            if self.lock is not None:
                wait = deadline.remaining() if deadline is not None else None
                self._run_stage("lock", stack.enter_context, self.lock.hold(channel_id, wait))

            channel = self._run_stage("channel", self._ensure_channel, channel_id, deadline)

            videos = self._run_stage(
                "fetch", self.youtube.list_channel_videos, channel_id, self.page_size, deadline
            )

            created, updated = self._run_stage("reconcile", self._reconcile, channel, videos, deadline)

            self._run_stage("stamp", self.store.mark_channel_synced, channel.id)

        logger.info("Channel sync complete",
                    channel_id=channel_id,
                    created=created,
                    updated=updated,
                    fetched=len(videos))

        return SyncResult(
            channel=channel,
            created_count=created,
            updated_count=updated,
            total_fetched=len(videos),
        )

    def _run_stage(self, stage: str, func: Callable[..., Any], *args) -> Any:
        try:
            return func(*args)
        except CatalogSyncError as e:
            if e.stage is None:
                e.stage = stage
            logger.error("Channel sync failed", stage=stage, error=str(e))
            raise

    def _resolve_channel_id(self, raw_identifier: str, deadline: Optional[Deadline]) -> str:
        kind, value = parse_channel_reference(raw_identifier)
        if kind == "channel_id":
            return value

        resolved = self.youtube.resolve_handle(value, deadline=deadline)
        if not resolved:
            raise NotFoundError("channel", raw_identifier)

        logger.info("Resolved channel handle", handle=value, channel_id=resolved)
        return resolved

    def _ensure_channel(self, channel_id: str, deadline: Optional[Deadline]) -> Channel:
        channel = self.store.find_channel_by_external_id(channel_id)
        if channel:
            return channel

        info = self.youtube.get_channel_info(channel_id, deadline=deadline)
        if info is None:
            raise NotFoundError("channel", channel_id)

        try:
            channel = self.store.create_channel(info)
        except ConflictError:
            # Another sync inserted it first; use that row
            channel = self.store.find_channel_by_external_id(info.channel_id)
            if channel is None:
                raise
            return channel

        logger.info("Created channel", channel_id=channel_id, name=channel.name)
        return channel

    def _reconcile(
        self,
        channel: Channel,
        videos: List[VideoInfo],
        deadline: Optional[Deadline],
    ) -> Tuple[int, int]:
        created = 0
        updated = 0

        for info in videos:
            if deadline is not None:
                deadline.check("reconcile")

            data = normalize_video(info)
            try:
                if self.store.find_video_by_external_id(data.video_id):
                    self.store.update_video_by_external_id(data.video_id, channel.id, data)
                    updated += 1
                else:
                    self.store.create_video(channel.id, data)
                    created += 1
            except CatalogSyncError:
                logger.error("Video reconciliation failed",
                             youtube_id=data.video_id,
                             created=created,
                             updated=updated)
                raise

        return created, updated


def build_sync_service(db, settings) -> ChannelSyncService:
    return ChannelSyncService(
        store=CatalogStore(db),
        youtube=YouTubeService.from_settings(settings),
        lock=get_lock_provider(settings),
        page_size=settings.sync_page_size,
        deadline_seconds=settings.sync_deadline_seconds,
    )
