"""Recently-seen message cache used to drop webhook redeliveries."""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable


class RecentMessageCache:
    """Remember keys for ``ttl_seconds`` and report whether one was seen.

    The cache is bounded by ``max_entries``; the oldest keys are dropped first.
    """

    def __init__(
        self,
        ttl_seconds: float = 600,
        *,
        max_entries: int = 100_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._seen: OrderedDict[Hashable, float] = OrderedDict()
        self._lock = threading.Lock()

    def _expire_locked(self, now: float) -> None:
        while self._seen:
            key, seen_at = next(iter(self._seen.items()))
            if now - seen_at < self.ttl_seconds and len(self._seen) <= self.max_entries:
                break
            self._seen.popitem(last=False)

    def check_and_add(self, key: Hashable) -> bool:
        """Record ``key`` and return ``True`` if it was already present."""

        now = self._clock()
        with self._lock:
            self._expire_locked(now)
            if key in self._seen:
                return True
            self._seen[key] = now
            return False

    def __len__(self) -> int:
        with self._lock:
            self._expire_locked(self._clock())
            return len(self._seen)
