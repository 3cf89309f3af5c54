"""In-memory cache of previously computed mismatch counts."""

from __future__ import annotations

import logging
import math
import threading
from typing import Mapping

logger = logging.getLogger(__name__)


def _as_count(value: object) -> int | None:
    """Return *value* as a mismatch count, or ``None`` if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float) and math.isfinite(value) and value.is_integer() and value >= 0:
        return int(value)
    return None


class DiffCache:
    """Thread-safe mapping of cache key -> mismatched pixel count.

    Scoped to a single build.  There is no eviction.  Two comparisons that
    miss on the same key at the same time will both run the worker and
    store the same value; the lock only guarantees that no store is lost.
    """

    def __init__(self, entries: Mapping[str, int] | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, int] = {}
        if entries:
            for key, count in entries.items():
                self.store(key, count)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, object]) -> DiffCache:
        """Build a cache from loosely typed data, skipping invalid entries."""
        cache = cls()
        skipped = 0
        for key, value in mapping.items():
            count = _as_count(value)
            if not isinstance(key, str) or count is None:
                skipped += 1
                continue
            cache.store(key, count)
        if skipped:
            logger.warning("Skipped %d invalid diff cache entries", skipped)
        return cache

    def lookup(self, key: str) -> int | None:
        """Return the cached count for *key*, or ``None`` on a miss."""
        with self._lock:
            return self._entries.get(key)

    def store(self, key: str, count: int) -> None:
        """Record *count* for *key*.

        Raises:
            ValueError: If *count* is not a non-negative integer.
        """
        checked = _as_count(count)
        if checked is None:
            raise ValueError(f"mismatch count must be a non-negative integer, got {count!r}")
        with self._lock:
            self._entries[key] = checked

    def to_dict(self) -> dict[str, int]:
        """Return a snapshot copy of the entries."""
        with self._lock:
            return dict(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"DiffCache({len(self)} entries)"
