from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Mapping, Optional, Sequence

import httpx

from .cache import NewsCache
from .config import RSS_SOURCES, Settings
from .exceptions import InvalidCategoryError, NewsUnavailableError
from .fetcher import build_client, fetch_all
from .models import FormattedArticle, NewsResult, Source
from .processors import PROCESSORS

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NewsService:
    """
    High-level API: return the digest for a category.

    Pipeline: fetch (all sources concurrently) → parse → normalize → group/score
    per category → top N → cache

    A fresh cached digest is served without fetching. When a refresh fails, the
    last digest is served as stale; only a category that never produced a digest
    raises NewsUnavailableError.
    """

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        cache: Optional[NewsCache] = None,
        sources: Optional[Mapping[str, Sequence[Source]]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.settings = settings or Settings()
        self.cache = cache or NewsCache(self.settings.cache_duration_s)
        self.sources = sources if sources is not None else RSS_SOURCES
        self._transport = transport
        self._now = now
        # Failed refreshes per category, and the error of the latest one
        self._failures: Dict[str, int] = {}
        self._last_error: Dict[str, Exception] = {}

    @property
    def categories(self) -> List[str]:
        return [c for c in self.sources if c in PROCESSORS]

    async def get_news(self, category: str) -> NewsResult:
        if category not in self.categories:
            raise InvalidCategoryError(
                f"Invalid category {category!r}. Use one of: {', '.join(self.categories)}"
            )

        if self.cache.is_fresh(category):
            return NewsResult(articles=self.cache.get(category).data, cached=True)

        failures_seen = self._failures.get(category, 0)
        async with self.cache.lock(category):
            # Another request may have refreshed while this one waited
            if self.cache.is_fresh(category):
                return NewsResult(articles=self.cache.get(category).data, cached=True)
            if self._failures.get(category, 0) != failures_seen:
                # The refresh this request waited on failed; share its outcome
                return self._fallback(category, self._last_error[category])

            try:
                articles = await self.fetch_category(category)
            except Exception as e:
                logger.exception("News pipeline failed for %s", category)
                self._failures[category] = failures_seen + 1
                self._last_error[category] = e
                return self._fallback(category, e)

            entry = self.cache.store(category, tuple(articles))
            return NewsResult(articles=entry.data, cached=False)

    def _fallback(self, category: str, error: Exception) -> NewsResult:
        prior = self.cache.get(category).data
        if prior is not None:
            return NewsResult(articles=prior, cached=True, stale=True)
        raise NewsUnavailableError(f"Failed to fetch news: {error}") from error

    async def fetch_category(self, category: str) -> List[FormattedArticle]:
        """Run the uncached pipeline for one category."""
        async with build_client(
            user_agent=self.settings.user_agent,
            timeout_s=self.settings.fetch_timeout_s,
            transport=self._transport,
        ) as client:
            raw = await fetch_all(
                client, self.sources[category], timeout_s=self.settings.fetch_timeout_s
            )

        process = PROCESSORS[category]
        return process(raw, self._now(), self.settings.digest_size)
