from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import redis
from redis.exceptions import RedisError
import structlog
from videosync.core.config import settings
from videosync.api.errors import register_exception_handlers
from videosync.api.v1.router import api_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info("Starting videosync API",
                debug=settings.debug,
                sync_enabled=settings.youtube_sync_enabled,
                lock_backend=settings.sync_lock_backend)

    # Note: Database tables are managed by Alembic migrations
    # Run: alembic upgrade head
    if settings.youtube_sync_enabled and not settings.youtube_api_key:
        logger.warning("YOUTUBE_API_KEY is not set; sync requests will fail")

    yield

    logger.info("Shutting down videosync API")


app = FastAPI(
    title=settings.app_name,
    description="Mirrors YouTube channel uploads into the site's video catalog",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include API router
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/health")
def health_check():
    """Health check endpoint"""
    from videosync.db.session import SessionLocal

    health = {
        "status": "healthy",
        "database": "unknown",
    }

    try:
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()
        health["database"] = "connected"
    except SQLAlchemyError as e:
        health["database"] = f"error: {e.__class__.__name__}"
        health["status"] = "degraded"

    # Redis only matters when it holds the sync locks
    if settings.sync_lock_backend == "redis":
        try:
            r = redis.from_url(settings.redis_url)
            r.ping()
            health["redis"] = "connected"
        except RedisError as e:
            health["redis"] = f"error: {e.__class__.__name__}"
            health["status"] = "degraded"

    return health


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "videosync.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
