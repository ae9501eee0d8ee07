from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from videosync.api.deps import get_catalog_store
from videosync.schemas import ChannelResponse
from videosync.services.catalog_store import CatalogStore

router = APIRouter()


@router.get("/channel", response_model=ChannelResponse)
def get_channel(
    youtube_channel_id: Optional[str] = Query(None, alias="youtubeChannelId"),
    store: CatalogStore = Depends(get_catalog_store),
):
    """Look up a mirrored channel by its YouTube channel ID"""
    if not youtube_channel_id:
        raise HTTPException(status_code=400, detail="YouTube channel ID is required")

    channel = store.find_channel_by_external_id(youtube_channel_id)
    if not channel:
        raise HTTPException(status_code=404, detail="Channel not found")

    return channel


@router.get("/channels", response_model=List[ChannelResponse])
def list_channels(store: CatalogStore = Depends(get_catalog_store)):
    return store.list_channels()
