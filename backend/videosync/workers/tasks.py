import structlog
from videosync.core.celery_app import celery_app
from videosync.core.config import settings
from videosync.core.exceptions import (
    NotFoundError,
    RecordNotFoundError,
    SyncInProgressError,
    UpstreamError,
)
from videosync.db.session import get_db_session
from videosync.db.models.channel import Channel
from videosync.services.sync_service import build_sync_service

logger = structlog.get_logger()


@celery_app.task(bind=True, max_retries=settings.sync_max_retries)
def sync_channel_task(self, raw_identifier: str):
    """Sync one channel; upstream failures are retried with backoff"""
    db = get_db_session()

    try:
        result = build_sync_service(db, settings).sync_channel(raw_identifier)
        return {
            "status": "synced",
            "channel_id": result.channel.youtube_channel_id,
            "created": result.created_count,
            "updated": result.updated_count,
            "fetched": result.total_fetched,
        }

    except RecordNotFoundError:
        # Row vanished mid-sync; let Celery record the failure
        raise

    except NotFoundError as e:
        logger.warning("Channel not found, not retrying", channel=raw_identifier, error=str(e))
        return {"status": "not_found", "channel": raw_identifier}

    except SyncInProgressError:
        logger.info("Channel sync already running, skipping", channel=raw_identifier)
        return {"status": "skipped", "channel": raw_identifier}

    except UpstreamError as e:
        # Whole-sync retry is safe: reconciliation is idempotent per video
        countdown = 2 ** self.request.retries * 30
        logger.error("Channel sync failed, retrying",
                     channel=raw_identifier,
                     attempt=self.request.retries + 1,
                     countdown=countdown,
                     error=str(e))
        raise self.retry(exc=e, countdown=countdown)

    finally:
        db.close()


@celery_app.task
def resync_all_channels():
    """Scheduled task: re-sync every channel already in the catalog"""
    logger.info("Starting channel resync")

    db = get_db_session()
    try:
        channel_ids = [
            row.youtube_channel_id
            for row in db.query(Channel.youtube_channel_id).all()
        ]
    finally:
        db.close()

    for channel_id in channel_ids:
        sync_channel_task.delay(channel_id)

    logger.info("Queued channel syncs", channel_count=len(channel_ids))
    return {"queued": len(channel_ids)}
