from fastapi import APIRouter
from videosync.api.v1.endpoints import channels, sync, videos

api_router = APIRouter()

api_router.include_router(sync.router, tags=["sync"])
api_router.include_router(videos.router, prefix="/videos", tags=["videos"])
api_router.include_router(channels.router, tags=["channels"])
