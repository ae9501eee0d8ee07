import time
from typing import Callable, Optional

from videosync.core.exceptions import DeadlineExceeded


class Deadline:
    """Wall-clock budget shared by every request issued during one sync."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self.expires_at = clock() + seconds

    @classmethod
    def after(cls, seconds: Optional[float]) -> Optional["Deadline"]:
        if seconds is None:
            return None
        return cls(seconds)

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    def check(self, operation: str) -> None:
        if self.expired:
            raise DeadlineExceeded(operation)

    def timeout_for(self, default: float) -> float:
        """Per-request timeout: never longer than what is left."""
        return min(default, self.remaining())
