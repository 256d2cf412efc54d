"""Explicit keyed cache for client-side read views."""

import logging
import time
from collections import deque
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

DASHBOARD_KEY: tuple[str, ...] = ("dashboard",)


def identifier_key(property_id: str) -> tuple[str, str]:
    """Cache key of a property's identifier view."""
    return ("identifier", property_id)


def affected_keys(property_id: str) -> list[tuple[str, ...]]:
    """Every read view a mutation of ``property_id`` can make stale."""
    return [identifier_key(property_id), DASHBOARD_KEY]


@dataclass
class CacheEntry:
    data: Any
    fetched_at: float


class QueryCache:
    """Property-keyed store of fetched views.

    Entries are only ever replaced by a fetch or dropped by ``invalidate``;
    nothing patches them in place. The most recent ``history`` invalidations
    are kept in ``invalidations`` so callers can audit what was dropped.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, history: int = 256) -> None:
        self._entries: dict[Hashable, CacheEntry] = {}
        self._clock = clock
        self.invalidations: deque[Hashable] = deque(maxlen=history)

    def get(self, key: Hashable) -> Any | None:
        entry = self._entries.get(key)
        return entry.data if entry is not None else None

    def set(self, key: Hashable, data: Any) -> None:
        self._entries[key] = CacheEntry(data=data, fetched_at=self._clock())

    def age(self, key: Hashable) -> float | None:
        """Seconds since ``key`` was fetched."""
        entry = self._entries.get(key)
        return self._clock() - entry.fetched_at if entry is not None else None

    def invalidate(self, key: Hashable) -> bool:
        """Drop ``key``; returns whether an entry was present."""
        self.invalidations.append(key)
        removed = self._entries.pop(key, None) is not None
        logger.debug("Invalidated %s (present=%s)", key, removed)
        return removed

    def invalidate_many(self, keys: list[Hashable]) -> None:
        for key in keys:
            self.invalidate(key)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
