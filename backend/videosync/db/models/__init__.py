from videosync.db.models.channel import Channel
from videosync.db.models.video import Video

__all__ = [
    "Channel",
    "Video",
]
