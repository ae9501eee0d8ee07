from typing import List, Optional
from pydantic import AliasChoices, BaseModel, Field
from pydantic.alias_generators import to_camel
from datetime import datetime


class CamelModel(BaseModel):
    """Responses go out camelCase, matching what the site frontend reads"""

    class Config:
        from_attributes = True
        alias_generator = to_camel
        populate_by_name = True


# Channel Schemas
# ORM rows carry youtube_channel_id/name; re-validation of dumped output sees the camelCase keys
class ChannelResponse(CamelModel):
    id: str
    channel_id: str = Field(
        validation_alias=AliasChoices("youtube_channel_id", "channelId", "channel_id"),
        serialization_alias="channelId",
    )
    channel_name: str = Field(
        validation_alias=AliasChoices("name", "channelName", "channel_name"),
        serialization_alias="channelName",
    )
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    subscriber_count: Optional[int] = None
    last_synced_at: Optional[datetime] = None
    created_at: datetime


# Video Schemas
class VideoResponse(CamelModel):
    id: str
    video_id: str = Field(
        validation_alias=AliasChoices("youtube_id", "videoId", "video_id"),
        serialization_alias="videoId",
    )
    channel_id: str
    title: str
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[str] = None
    published_at: datetime
    view_count: Optional[int] = None
    like_count: Optional[int] = None
    tags: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime


# Sync Schemas
class SyncRequest(BaseModel):
    channel_id: Optional[str] = Field(default=None, alias="channelId")


class SyncResponse(CamelModel):
    success: bool = True
    channel: ChannelResponse
    created_count: int
    updated_count: int
    total_fetched: int


