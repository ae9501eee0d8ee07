from datetime import datetime, timezone
from typing import List, Optional

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from videosync.core.exceptions import ConflictError, RecordNotFoundError, StoreError
from videosync.db.models.channel import Channel, utcnow
from videosync.db.models.video import Video
from videosync.services.normalizer import NormalizedVideo
from videosync.services.youtube_service import ChannelInfo

logger = structlog.get_logger()


def parse_published_at(value) -> datetime:
    """Parse an RFC 3339 timestamp ("2024-03-01T12:00:00Z") into an aware datetime"""
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
        except ValueError as e:
            raise StoreError(f"invalid published_at: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class CatalogStore:
    """Single-row reads and writes over the channels/videos tables.

    Each write commits on its own; there is no transaction spanning calls.
    """

    def __init__(self, db: Session):
        self.db = db

    def _commit(self, action: str, **context) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning("Unique constraint violated", action=action, **context)
            raise ConflictError(f"{action} conflicts with an existing row") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Store write failed", action=action, error=str(e), **context)
            raise StoreError(f"{action} failed") from e

    def _query_one(self, model, *criteria):
        try:
            return self.db.query(model).filter(*criteria).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"lookup on {model.__tablename__} failed") from e

    # Channels

    def find_channel_by_external_id(self, youtube_channel_id: str) -> Optional[Channel]:
        return self._query_one(Channel, Channel.youtube_channel_id == youtube_channel_id)

    def get_channel(self, channel_pk: str) -> Optional[Channel]:
        return self._query_one(Channel, Channel.id == channel_pk)

    def list_channels(self) -> List[Channel]:
        try:
            return self.db.query(Channel).order_by(Channel.created_at.desc()).all()
        except SQLAlchemyError as e:
            raise StoreError("listing channels failed") from e

    def create_channel(self, data: ChannelInfo) -> Channel:
        channel = Channel(
            youtube_channel_id=data.channel_id,
            name=data.title,
            description=data.description,
            thumbnail_url=data.thumbnail_url,
            subscriber_count=data.subscriber_count,
            last_synced_at=None,
        )
        self.db.add(channel)
        self._commit("create_channel", youtube_channel_id=data.channel_id)
        self.db.refresh(channel)
        return channel

    def mark_channel_synced(self, channel_pk: str) -> None:
        channel = self.get_channel(channel_pk)
        if not channel:
            raise RecordNotFoundError("channel", channel_pk)
        channel.last_synced_at = utcnow()
        self._commit("mark_channel_synced", channel_id=channel_pk)

    # Videos

    def find_video_by_external_id(self, youtube_id: str) -> Optional[Video]:
        return self._query_one(Video, Video.youtube_id == youtube_id)

    def list_videos(self) -> List[Video]:
        try:
            return self.db.query(Video).order_by(Video.published_at.desc()).all()
        except SQLAlchemyError as e:
            raise StoreError("listing videos failed") from e

    def create_video(self, channel_pk: str, data: NormalizedVideo) -> Video:
        video = Video(youtube_id=data.video_id, channel_id=channel_pk)
        self._apply(video, channel_pk, data)
        self.db.add(video)
        self._commit("create_video", youtube_id=data.video_id)
        self.db.refresh(video)
        return video

    def update_video_by_external_id(self, youtube_id: str, channel_pk: str, data: NormalizedVideo) -> Video:
        video = self.find_video_by_external_id(youtube_id)
        if not video:
            raise RecordNotFoundError("video", youtube_id)
        self._apply(video, channel_pk, data)
        video.updated_at = utcnow()
        self._commit("update_video", youtube_id=youtube_id)
        self.db.refresh(video)
        return video

    @staticmethod
    def _apply(video: Video, channel_pk: str, data: NormalizedVideo) -> None:
        """Overwrite every mutable column; the last sync to write wins"""
        published_at = parse_published_at(data.published_at)
        video.channel_id = channel_pk
        video.title = data.title
        video.description = data.description
        video.thumbnail_url = data.thumbnail_url
        video.duration = data.duration
        video.published_at = published_at
        video.view_count = data.view_count
        video.like_count = data.like_count
        video.tags = list(data.tags)
