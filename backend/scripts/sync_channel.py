#!/usr/bin/env python3
"""
Sync a YouTube channel into the video catalog from the command line.

Usage:
    python scripts/sync_channel.py UCxxxxxxxxxxxxxxxxxxxxxx
    python scripts/sync_channel.py @somehandle --retries 5
    python scripts/sync_channel.py @somehandle --page-size 100
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import argparse
import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from videosync.core.config import get_settings
from videosync.core.exceptions import CatalogSyncError, NotFoundError, RecordNotFoundError, UpstreamError
from videosync.db.session import get_db_session
from videosync.services.sync_service import build_sync_service

logger = structlog.get_logger()


def _log_retry(retry_state):
    logger.warning("Sync attempt failed, retrying",
                   attempt=retry_state.attempt_number,
                   error=str(retry_state.outcome.exception()))


def run_sync(channel: str, retries: int, page_size: int = None):
    settings = get_settings()
    if not settings.youtube_api_key:
        raise SystemExit("YOUTUBE_API_KEY is not set")
    if page_size:
        settings = settings.model_copy(update={"sync_page_size": page_size})

    db = get_db_session()
    try:
        service = build_sync_service(db, settings)
        # A failed pass leaves committed videos in place, so the whole
        # sync can simply be run again
        for attempt in Retrying(
            retry=retry_if_exception_type(UpstreamError),
            stop=stop_after_attempt(retries),
            wait=wait_exponential(multiplier=1, min=2, max=30),
            before_sleep=_log_retry,
            reraise=True,
        ):
            with attempt:
                result = service.sync_channel(channel)

        # Read while the session is open; rows expire on commit
        return {
            "name": result.channel.name,
            "channel_id": result.channel.youtube_channel_id,
            "fetched": result.total_fetched,
            "created": result.created_count,
            "updated": result.updated_count,
        }
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Sync a YouTube channel into the catalog")
    parser.add_argument("channel", help="Channel ID (UC...), @handle or channel URL")
    parser.add_argument("--retries", type=int, default=3, help="Attempts on YouTube API failure")
    parser.add_argument("--page-size", type=int, default=None, help="Max uploads to fetch")
    args = parser.parse_args()

    try:
        summary = run_sync(args.channel, args.retries, args.page_size)
    except RecordNotFoundError as e:
        print(f"❌ Sync failed: {e}")
        sys.exit(2)
    except NotFoundError as e:
        print(f"❌ {e}")
        sys.exit(1)
    except CatalogSyncError as e:
        print(f"❌ Sync failed: {e}")
        sys.exit(2)

    print(f"✅ {summary['name']} ({summary['channel_id']})")
    print(f"   fetched: {summary['fetched']}")
    print(f"   created: {summary['created']}")
    print(f"   updated: {summary['updated']}")


if __name__ == "__main__":
    main()
