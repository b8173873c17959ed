from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .models import FormattedArticle


@dataclass(frozen=True)
class CacheEntry:
    data: Optional[Tuple[FormattedArticle, ...]] = None
    timestamp: float = 0.0


class NewsCache:
    """
    Per-category digest cache with stale fallback.

    One instance per process, injected into NewsService. Entries are replaced
    wholesale on every successful refresh and never evicted; an expired entry
    stays readable as stale data.
    """

    def __init__(
        self,
        duration_s: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.duration_s = duration_s
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def now(self) -> float:
        return self._clock()

    def get(self, category: str) -> CacheEntry:
        return self._entries.get(category, CacheEntry())

    def is_fresh(self, category: str) -> bool:
        entry = self.get(category)
        return entry.data is not None and (self.now() - entry.timestamp) < self.duration_s

    def store(self, category: str, data: Tuple[FormattedArticle, ...]) -> CacheEntry:
        entry = CacheEntry(data=tuple(data), timestamp=self.now())
        self._entries[category] = entry
        return entry

    def lock(self, category: str) -> asyncio.Lock:
        """Single-flight guard so concurrent requests share one refresh."""
        if category not in self._locks:
            self._locks[category] = asyncio.Lock()
        return self._locks[category]
