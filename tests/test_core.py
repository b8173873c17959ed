"""End-to-end behavior of NewsService: fetch, rank, cache and stale fallback."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

import httpx
import pytest

from daily_briefing.cache import NewsCache
from daily_briefing.config import LEGAL_TECH, WORLD, Settings
from daily_briefing.core import NewsService
from daily_briefing.exceptions import InvalidCategoryError, NewsUnavailableError
from daily_briefing.models import Source

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

SOURCES = {
    WORLD: (
        Source("Reuters", "https://feeds.example.com/reuters.xml", 1),
        Source("BBC", "https://feeds.example.com/bbc.xml", 1),
        Source("NPR", "https://feeds.example.com/npr.xml", 2),
    ),
    LEGAL_TECH: (
        Source("LawSites", "https://feeds.example.com/lawsites.xml", 1),
    ),
}


def _feed(*items) -> str:
    body = "".join(
        f"<item><title>{title}</title><link>https://example.com/{abs(hash(title))}</link>"
        f"<description>About {title}</description>"
        f"<pubDate>{format_datetime(NOW - timedelta(hours=hours_ago), usegmt=True)}</pubDate></item>"
        for title, hours_ago in items
    )
    return f'<rss version="2.0"><channel><title>t</title>{body}</channel></rss>'


FEEDS = {
    "https://feeds.example.com/reuters.xml": _feed(
        ("Senate passes budget bill today", 3),
        ("Markets rally after jobs report", 1),
    ),
    "https://feeds.example.com/bbc.xml": _feed(
        ("Budget bill passes senate vote", 2),
    ),
    "https://feeds.example.com/npr.xml": _feed(
        ("Senate budget bill passes narrowly", 2),
    ),
    "https://feeds.example.com/lawsites.xml": _feed(
        ("Legal AI startup adds ediscovery", 30),
        ("Bar exam dates announced", 1),
    ),
}


class _Clock:
    def __init__(self) -> None:
        self.t = 0.0

    def __call__(self) -> float:
        return self.t


class _Transport:
    """Serves FEEDS and counts requests; can be switched to fail every request."""

    def __init__(self) -> None:
        self.calls = 0
        self.down = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.down:
            raise httpx.ConnectError("unreachable", request=request)
        return httpx.Response(200, text=FEEDS[str(request.url)])


@pytest.fixture
def clock():
    return _Clock()


@pytest.fixture
def transport():
    return _Transport()


@pytest.fixture
def service(clock, transport):
    settings = Settings(cache_duration_s=1800, fetch_timeout_s=5, user_agent="DailyBriefing/1.0", digest_size=5)
    return NewsService(
        settings=settings,
        cache=NewsCache(settings.cache_duration_s, clock=clock),
        sources=SOURCES,
        transport=httpx.MockTransport(transport),
        now=lambda: NOW,
    )


def _get(service, category):
    return asyncio.run(service.get_news(category))


class TestGetNews:

    def test_world_digest(self, service):
        result = _get(service, WORLD)
        assert not result.cached
        assert not result.stale
        assert [a.title for a in result.articles] == [
            "Senate passes budget bill today",
            "Markets rally after jobs report",
        ]
        assert result.articles[0].source == "Reuters"

    def test_legal_tech_digest(self, service):
        result = _get(service, LEGAL_TECH)
        assert [a.title for a in result.articles] == [
            "Legal AI startup adds ediscovery",
            "Bar exam dates announced",
        ]

    def test_invalid_category(self, service, transport):
        with pytest.raises(InvalidCategoryError):
            _get(service, "sports")
        assert transport.calls == 0

    def test_as_dict_wire_shape(self, service):
        payload = _get(service, WORLD).as_dict()
        assert payload["cached"] is False
        assert "stale" not in payload
        assert set(payload["articles"][0]) == {"title", "summary", "source", "url", "imageUrl"}


class TestCaching:

    def test_second_request_within_window_is_cached(self, service, transport, clock):
        first = _get(service, WORLD)
        calls = transport.calls

        clock.t += 60
        second = _get(service, WORLD)
        assert second.cached
        assert not second.stale
        assert second.articles == first.articles
        assert transport.calls == calls

    def test_expired_cache_refetches(self, service, transport, clock):
        _get(service, WORLD)
        calls = transport.calls

        clock.t += 1800
        result = _get(service, WORLD)
        assert not result.cached
        assert transport.calls > calls

    def test_categories_cached_separately(self, service):
        _get(service, WORLD)
        assert not _get(service, LEGAL_TECH).cached

    def test_concurrent_requests_share_one_refresh(self, service, transport):
        async def _both():
            return await asyncio.gather(service.get_news(WORLD), service.get_news(WORLD))

        first, second = asyncio.run(_both())
        assert transport.calls == len(SOURCES[WORLD])
        assert sorted([first.cached, second.cached]) == [False, True]


class TestFailures:

    def test_all_sources_down_is_an_empty_digest(self, service, transport):
        transport.down = True
        result = _get(service, WORLD)
        assert result.articles == ()
        assert not result.cached

    def test_pipeline_failure_serves_stale_data(self, service, clock, monkeypatch):
        good = _get(service, WORLD)
        clock.t += 3600

        async def boom(category):
            raise RuntimeError("ranking exploded")

        monkeypatch.setattr(service, "fetch_category", boom)
        result = _get(service, WORLD)
        assert result.cached
        assert result.stale
        assert result.articles == good.articles
        assert result.as_dict()["stale"] is True

    def test_pipeline_failure_without_cache_is_hard_error(self, service, monkeypatch):
        async def boom(category):
            raise RuntimeError("ranking exploded")

        monkeypatch.setattr(service, "fetch_category", boom)
        with pytest.raises(NewsUnavailableError, match="Failed to fetch news"):
            _get(service, LEGAL_TECH)

    def test_stale_fallback_does_not_restamp_cache(self, service, clock, monkeypatch):
        _get(service, WORLD)
        stamped = service.cache.get(WORLD).timestamp
        clock.t += 3600

        async def boom(category):
            raise RuntimeError("ranking exploded")

        monkeypatch.setattr(service, "fetch_category", boom)
        _get(service, WORLD)
        assert service.cache.get(WORLD).timestamp == stamped
        assert not service.cache.is_fresh(WORLD)

    def test_requests_waiting_on_a_failed_refresh_share_its_outcome(self, service, clock, monkeypatch):
        good = _get(service, WORLD)
        clock.t += 3600
        attempts = []

        async def boom(category):
            attempts.append(category)
            await asyncio.sleep(0)
            raise RuntimeError("feeds unreachable")

        monkeypatch.setattr(service, "fetch_category", boom)

        async def _three():
            return await asyncio.gather(*(service.get_news(WORLD) for _ in range(3)))

        results = asyncio.run(_three())
        assert attempts == [WORLD]
        assert all(r.stale and r.articles == good.articles for r in results)

    def test_waiters_without_cache_share_the_hard_error(self, service, monkeypatch):
        attempts = []

        async def boom(category):
            attempts.append(category)
            await asyncio.sleep(0)
            raise RuntimeError("feeds unreachable")

        monkeypatch.setattr(service, "fetch_category", boom)

        async def _both():
            return await asyncio.gather(
                service.get_news(LEGAL_TECH), service.get_news(LEGAL_TECH), return_exceptions=True
            )

        results = asyncio.run(_both())
        assert attempts == [LEGAL_TECH]
        assert all(isinstance(r, NewsUnavailableError) for r in results)

    def test_next_request_after_a_failure_retries(self, service, clock, monkeypatch):
        _get(service, WORLD)
        clock.t += 3600
        attempts = []

        async def boom(category):
            attempts.append(category)
            raise RuntimeError("feeds unreachable")

        monkeypatch.setattr(service, "fetch_category", boom)
        _get(service, WORLD)
        _get(service, WORLD)
        assert attempts == [WORLD, WORLD]
