# Services module
from videosync.services.youtube_service import YouTubeService, ChannelInfo, VideoInfo
from videosync.services.catalog_store import CatalogStore
from videosync.services.sync_service import ChannelSyncService, SyncResult

__all__ = [
    "YouTubeService",
    "ChannelInfo",
    "VideoInfo",
    "CatalogStore",
    "ChannelSyncService",
    "SyncResult",
]
