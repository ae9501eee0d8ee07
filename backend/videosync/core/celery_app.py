from celery import Celery
from celery.schedules import crontab
from videosync.core.config import settings

celery_app = Celery(
    "videosync",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "videosync.workers.tasks",
    ]
)

# Celery Configuration
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=900,  # 15 min max per sync
    task_soft_time_limit=840,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

# Periodic Tasks (Celery Beat)
celery_app.conf.beat_schedule = {
    # Re-sync every known channel so counts and metadata stay fresh
    "resync-known-channels": {
        "task": "videosync.workers.tasks.resync_all_channels",
        "schedule": crontab(minute=f"*/{settings.channel_resync_interval_minutes}"),
    },
}
