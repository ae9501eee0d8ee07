from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog
from videosync.core.exceptions import (
    CatalogSyncError,
    ConflictError,
    DeadlineExceeded,
    NotFoundError,
    RecordNotFoundError,
    StoreError,
    SyncInProgressError,
    UpstreamError,
)

logger = structlog.get_logger()


def error_status(exc: CatalogSyncError) -> tuple:
    """Map a sync error to (status code, client-facing message)"""
    if isinstance(exc, RecordNotFoundError):
        # Row vanished between check and write; not the client's fault
        return 500, "Database operation failed"
    if isinstance(exc, NotFoundError):
        if exc.resource == "channel":
            return 404, "YouTube channel not found"
        return 404, f"{exc.resource.capitalize()} not found"
    if isinstance(exc, SyncInProgressError):
        return 409, "A sync for this channel is already running"
    if isinstance(exc, ConflictError):
        return 409, "Catalog record was changed concurrently, retry the sync"
    if isinstance(exc, DeadlineExceeded):
        return 500, "YouTube sync timed out"
    if isinstance(exc, UpstreamError):
        return 500, "YouTube API request failed"
    if isinstance(exc, StoreError):
        return 500, "Database operation failed"
    return 500, "Failed to sync YouTube videos"


async def catalog_sync_error_handler(request: Request, exc: CatalogSyncError):
    status_code, message = error_status(exc)
    logger.warning("Request failed",
                   path=request.url.path,
                   status=status_code,
                   stage=exc.stage,
                   error=str(exc))
    return JSONResponse(status_code=status_code, content={"detail": message})


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed input is a plain 400, like a missing field"""
    fields = [".".join(str(part) for part in err.get("loc", ())[1:]) for err in exc.errors()]
    logger.info("Invalid request", path=request.url.path, fields=fields)
    return JSONResponse(status_code=400, content={"detail": "Invalid request body"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CatalogSyncError, catalog_sync_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
