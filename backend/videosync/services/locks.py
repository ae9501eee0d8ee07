"""
Per-channel mutual exclusion for sync runs.

Two syncs of the same channel would otherwise interleave their per-video
upserts and report meaningless counts. ``InProcessLockProvider`` is enough for
a single API process; anything with several workers needs ``RedisLockProvider``.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

import redis
import structlog
from redis.exceptions import LockError

from videosync.core.exceptions import SyncInProgressError

logger = structlog.get_logger()


class InProcessLockProvider:
    def __init__(self):
        self._guard = threading.Lock()
        # key -> [lock, holders and waiters]; dropped when nobody uses it
        self._locks: Dict[str, list] = {}

    def _checkout(self, key: str) -> threading.Lock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = [threading.Lock(), 0]
            entry[1] += 1
            return entry[0]

    def _checkin(self, key: str) -> None:
        with self._guard:
            entry = self._locks[key]
            entry[1] -= 1
            if entry[1] == 0:
                del self._locks[key]

    @contextmanager
    def hold(self, key: str, wait: Optional[float] = None) -> Iterator[None]:
        lock = self._checkout(key)
        try:
            acquired = lock.acquire(timeout=wait) if wait is not None else lock.acquire()
            if not acquired:
                raise SyncInProgressError(key)
            try:
                yield
            finally:
                lock.release()
        finally:
            self._checkin(key)


class RedisLockProvider:
    def __init__(self, redis_client, expire: float = 600.0, prefix: str = "videosync:sync-lock:"):
        self.redis = redis_client
        self.expire = expire
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, expire: float = 600.0) -> "RedisLockProvider":
        return cls(redis.Redis.from_url(url), expire=expire)

    @contextmanager
    def hold(self, key: str, wait: Optional[float] = None) -> Iterator[None]:
        lock = self.redis.lock(self.prefix + key, timeout=self.expire, blocking_timeout=wait)
        if not lock.acquire(blocking=True):
            raise SyncInProgressError(key)
        try:
            yield
        finally:
            try:
                lock.release()
            except LockError as e:
                # Expired under us; the sync itself already finished
                logger.warning("Sync lock release failed", key=key, error=str(e))


_process_locks = InProcessLockProvider()


def get_lock_provider(settings):
    if settings.sync_lock_backend == "redis":
        return RedisLockProvider.from_url(settings.redis_url, expire=settings.sync_lock_timeout)
    return _process_locks
