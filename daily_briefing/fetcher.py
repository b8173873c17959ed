from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

import httpx

from .exceptions import FeedFetchError
from .models import RawArticle, Source
from .parser import parse_feed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchOutcome:
    """Result of one source in a fan-out: either articles or an error, never both."""
    source: Source
    articles: Tuple[RawArticle, ...] = ()
    error: Optional[FeedFetchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def fetch_feed_text(
    client: httpx.AsyncClient,
    source: Source,
    *,
    timeout_s: Optional[float] = None,
) -> bytes:
    """
    GET a single feed and return its raw body.

    The body stays undecoded so feedparser can honour the XML encoding
    declaration. ``timeout_s`` bounds the whole request; the client's own
    timeout only bounds each connect/read/write phase.

    Raises FeedFetchError on network errors, timeouts and non-2xx statuses.
    """
    try:
        response = await asyncio.wait_for(client.get(source.url), timeout_s)
    except asyncio.TimeoutError as e:
        raise FeedFetchError(source.name, f"Timed out after {timeout_s}s") from e
    except httpx.HTTPError as e:
        raise FeedFetchError(source.name, f"{type(e).__name__}: {e}") from e

    if not response.is_success:
        raise FeedFetchError(source.name, f"HTTP {response.status_code}")
    return response.content


async def fetch_feed(
    client: httpx.AsyncClient,
    source: Source,
    *,
    timeout_s: Optional[float] = None,
) -> FetchOutcome:
    """
    Fetch and parse one source. Failures are logged and captured in the outcome;
    this coroutine does not raise for feed problems.
    """
    try:
        body = await fetch_feed_text(client, source, timeout_s=timeout_s)
    except FeedFetchError as e:
        logger.warning("%s", e)
        return FetchOutcome(source=source, error=e)

    articles = parse_feed(body, source, fetched_at=datetime.now(timezone.utc))
    return FetchOutcome(source=source, articles=tuple(articles))


async def fetch_all(
    client: httpx.AsyncClient,
    sources: Iterable[Source],
    *,
    timeout_s: Optional[float] = None,
) -> List[RawArticle]:
    """
    Fetch every source concurrently and wait for all of them.

    Articles from successful sources are concatenated in source order, feed order
    within a source. Failed sources contribute nothing.
    """
    sources = list(sources)
    outcomes: Sequence[FetchOutcome] = await asyncio.gather(
        *(fetch_feed(client, s, timeout_s=timeout_s) for s in sources)
    )

    merged: List[RawArticle] = []
    for outcome in outcomes:
        if outcome.ok:
            merged.extend(outcome.articles)

    failed = sum(1 for o in outcomes if not o.ok)
    logger.debug("Fetched %d articles from %d/%d sources",
                 len(merged), len(outcomes) - failed, len(outcomes))
    return merged


def build_client(
    *,
    user_agent: str,
    timeout_s: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        headers={"User-Agent": user_agent},
        timeout=timeout_s,
        follow_redirects=True,
        transport=transport,
    )
