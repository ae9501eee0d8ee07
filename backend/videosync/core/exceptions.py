"""
Error taxonomy for catalog synchronization.

Every failure site raises one of these explicitly; callers never have to
inspect HTTP client or database driver exceptions.
"""
from typing import Optional


class CatalogSyncError(Exception):
    """Base class. ``stage`` is filled in by the orchestrator."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class NotFoundError(CatalogSyncError):
    """A handle did not resolve, or remote metadata is absent."""

    def __init__(self, resource: str, identifier: Optional[str] = None, stage: Optional[str] = None):
        message = f"{resource} not found"
        if identifier:
            message = f"{resource} not found: {identifier}"
        super().__init__(message, stage=stage)
        self.resource = resource
        self.identifier = identifier


class RecordNotFoundError(NotFoundError):
    """Targeted store update matched no row."""


class UpstreamError(CatalogSyncError):
    """Non-2xx response or transport failure from the YouTube API."""

    def __init__(
        self,
        operation: str,
        detail: str,
        status_code: Optional[int] = None,
        stage: Optional[str] = None,
    ):
        super().__init__(f"YouTube API error during {operation}: {detail}", stage=stage)
        self.operation = operation
        self.detail = detail
        self.status_code = status_code


class DeadlineExceeded(UpstreamError):
    def __init__(self, operation: str, stage: Optional[str] = None):
        super().__init__(operation, "deadline exceeded", stage=stage)


class StoreError(CatalogSyncError):
    """Persistence failure."""


class ConflictError(StoreError):
    """Unique constraint violated, usually by a concurrent writer."""


class SyncInProgressError(CatalogSyncError):
    def __init__(self, channel_id: str, stage: Optional[str] = None):
        super().__init__(f"sync already running for channel {channel_id}", stage=stage)
        self.channel_id = channel_id
