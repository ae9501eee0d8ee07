from typing import Callable
from fastapi import Depends
from sqlalchemy.orm import Session
from videosync.core.config import Settings, get_settings
from videosync.db.session import get_db
from videosync.services.catalog_store import CatalogStore
from videosync.services.sync_service import ChannelSyncService, build_sync_service


def get_app_settings() -> Settings:
    return get_settings()


def get_catalog_store(db: Session = Depends(get_db)) -> CatalogStore:
    return CatalogStore(db)


def get_sync_service_factory(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
) -> Callable[[], ChannelSyncService]:
    """Build lazily so config errors can be reported before touching YouTube"""
    return lambda: build_sync_service(db, settings)
