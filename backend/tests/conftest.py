import os

# Must be set before videosync.db.session builds its engine
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("YOUTUBE_API_KEY", "test-key")

from typing import Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from videosync.db import models  # noqa: F401
from videosync.db.session import Base
from videosync.services.catalog_store import CatalogStore
from videosync.services.youtube_service import ChannelInfo, VideoInfo


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()


@pytest.fixture
def store(db_session):
    return CatalogStore(db_session)


def make_video(video_id: str, **overrides) -> VideoInfo:
    data = dict(
        video_id=video_id,
        title=f"Video {video_id}",
        description=f"About {video_id}",
        thumbnail_url=f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg",
        published_at="2024-03-01T12:00:00Z",
        duration="PT4M13S",
        view_count="120",
        like_count="7",
        tags=["bhajan", "kirtan"],
    )
    data.update(overrides)
    return VideoInfo(**data)


def make_channel(channel_id: str, title: str = "Astha Waani") -> ChannelInfo:
    return ChannelInfo(
        channel_id=channel_id,
        title=title,
        description="Devotional talks",
        thumbnail_url="https://yt3.ggpht.com/high.jpg",
        subscriber_count=1200,
    )


class FakeYouTube:
    """Scripted stand-in for YouTubeService that records every call"""

    def __init__(self):
        self.handles: Dict[str, str] = {}
        self.channels: Dict[str, ChannelInfo] = {}
        self.uploads: Dict[str, List[VideoInfo]] = {}
        self.errors: Dict[str, Exception] = {}
        self.calls: List[tuple] = []

    def add_channel(self, channel_id: str, videos: List[VideoInfo] = (), handle: Optional[str] = None,
                    title: str = "Astha Waani"):
        self.channels[channel_id] = make_channel(channel_id, title)
        self.uploads[channel_id] = list(videos)
        if handle:
            self.handles[handle] = channel_id

    def _maybe_fail(self, operation: str):
        if operation in self.errors:
            raise self.errors[operation]

    def resolve_handle(self, handle, deadline=None):
        self.calls.append(("resolve_handle", handle))
        self._maybe_fail("resolve_handle")
        return self.handles.get(handle)

    def get_channel_info(self, channel_id, deadline=None):
        self.calls.append(("get_channel_info", channel_id))
        self._maybe_fail("get_channel_info")
        return self.channels.get(channel_id)

    def list_channel_videos(self, channel_id, max_results=50, deadline=None):
        self.calls.append(("list_channel_videos", channel_id, max_results))
        self._maybe_fail("list_channel_videos")
        return list(self.uploads.get(channel_id, []))[:max_results]


@pytest.fixture
def youtube():
    return FakeYouTube()
