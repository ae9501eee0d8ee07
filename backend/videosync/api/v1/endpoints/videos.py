from typing import List
from fastapi import APIRouter, Depends
from videosync.api.deps import get_catalog_store
from videosync.schemas import VideoResponse
from videosync.services.catalog_store import CatalogStore

router = APIRouter()


@router.get("", response_model=List[VideoResponse])
def list_videos(store: CatalogStore = Depends(get_catalog_store)):
    """All mirrored videos, newest first"""
    return store.list_videos()
