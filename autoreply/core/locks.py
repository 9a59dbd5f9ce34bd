"""Sharded lock table used by the in-memory stores.

Each key hashes onto one of a fixed number of stripes, so every
read-modify-write sequence against one key is serialised while unrelated keys
rarely contend.
"""

from __future__ import annotations

import threading
from collections.abc import Hashable


class StripedLock:
    def __init__(self, stripes: int = 64) -> None:
        if stripes < 1:
            raise ValueError("stripes must be positive")
        self._locks = [threading.Lock() for _ in range(stripes)]

    def for_key(self, key: Hashable) -> threading.Lock:
        """Return the lock guarding ``key``."""
        return self._locks[hash(key) % len(self._locks)]

    def __len__(self) -> int:
        return len(self._locks)
