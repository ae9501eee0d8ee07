from typing import Callable, Optional
from fastapi import APIRouter, Depends, HTTPException
import structlog
from videosync.api.deps import get_app_settings, get_sync_service_factory
from videosync.core.config import Settings
from videosync.schemas import ChannelResponse, SyncRequest, SyncResponse
from videosync.services.sync_service import ChannelSyncService

logger = structlog.get_logger()

router = APIRouter()


@router.post("/sync-youtube", response_model=SyncResponse)
def sync_youtube(
    request: Optional[SyncRequest] = None,
    settings: Settings = Depends(get_app_settings),
    service_factory: Callable[[], ChannelSyncService] = Depends(get_sync_service_factory),
):
    """Mirror a YouTube channel's latest uploads into the catalog.

    Runs in the threadpool: every step is blocking I/O.
    """
    if not settings.youtube_sync_enabled:
        raise HTTPException(
            status_code=501,
            detail="YouTube sync is not available on this deployment"
        )

    channel_id = (request.channel_id or "").strip() if request else ""
    if not channel_id:
        raise HTTPException(status_code=400, detail="Channel ID is required")

    if not settings.youtube_api_key:
        raise HTTPException(status_code=500, detail="YouTube API key not configured")

    logger.info("Sync requested", channel=channel_id)
    result = service_factory().sync_channel(channel_id)

    return SyncResponse(
        channel=ChannelResponse.model_validate(result.channel),
        created_count=result.created_count,
        updated_count=result.updated_count,
        total_fetched=result.total_fetched,
    )
