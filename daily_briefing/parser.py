from __future__ import annotations

import calendar
import io
import logging
import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

import feedparser

from .models import RawArticle, Source
from .normalizer import normalize_text

logger = logging.getLogger(__name__)

SUMMARY_MAX_CHARS = 200

_IMG_SRC_RE = re.compile(r"""<img[^>]*src=["']([^"']+)["']""", re.IGNORECASE)


def _text(entry: Dict[str, Any], key: str) -> str:
    val = entry.get(key)
    return val.strip() if isinstance(val, str) else ""


def _to_datetime(entry: Dict[str, Any]) -> Optional[datetime]:
    """
    Convert feed entry date fields to a timezone-aware UTC datetime.
    Priority: published_parsed -> updated_parsed -> created_parsed -> None.

    feedparser normalizes *_parsed values to UTC, so timegm (not mktime) applies.
    """
    for key in ("published_parsed", "updated_parsed", "created_parsed"):
        val = entry.get(key)
        if isinstance(val, time.struct_time):
            try:
                return datetime.fromtimestamp(calendar.timegm(val), tz=timezone.utc)
            except (OverflowError, ValueError, OSError):
                continue
    return None


def _first_url(items: Any, key: str) -> Optional[str]:
    for item in items or ():
        if isinstance(item, dict):
            url = item.get(key)
            if isinstance(url, str) and url.strip():
                return url.strip()
    return None


def extract_image(entry: Dict[str, Any]) -> Optional[str]:
    """
    Find an image for the entry. First match wins:
    media:content -> image enclosure -> media:thumbnail -> <img> in description.
    """
    url = _first_url(entry.get("media_content"), "url")
    if url:
        return url

    enclosures = [
        e for e in entry.get("enclosures") or ()
        if isinstance(e, dict) and str(e.get("type") or "").lower().startswith("image")
    ]
    url = _first_url(enclosures, "href")
    if url:
        return url

    url = _first_url(entry.get("media_thumbnail"), "url")
    if url:
        return url

    match = _IMG_SRC_RE.search(_text(entry, "summary"))
    return match.group(1) if match else None


def parse_entry(entry: Dict[str, Any], source: Source, *, fetched_at: datetime) -> Optional[RawArticle]:
    """
    Map a feedparser entry to a RawArticle.

    Returns None when the entry has no usable title or neither link nor guid.
    """
    raw_title = _text(entry, "title")
    title = normalize_text(raw_title)
    url = _text(entry, "link") or _text(entry, "id")
    if not title or not url:
        return None

    summary = normalize_text(_text(entry, "summary"))

    return RawArticle(
        title=title,
        url=url,
        summary=summary[:SUMMARY_MAX_CHARS],
        source=source.name,
        source_priority=source.priority,
        pub_date=_to_datetime(entry) or fetched_at,
        image_url=extract_image(entry),
        comparison_key=raw_title.lower(),
    )


def parse_feed(
    body: Union[str, bytes],
    source: Source,
    *,
    fetched_at: Optional[datetime] = None,
) -> List[RawArticle]:
    """
    Parse a raw RSS/Atom document into articles for ``source``.

    Malformed markup is tolerated: feedparser falls back to its loose parser and
    whatever items it recovers are kept. This function does not raise.
    """
    if fetched_at is None:
        fetched_at = datetime.now(timezone.utc)
    if isinstance(body, str):
        body = body.encode("utf-8")

    try:
        # A stream, so the document is never mistaken for a URL or a path
        feed = feedparser.parse(io.BytesIO(body))
    except Exception as e:  # pragma: no cover - the loose (sgmllib) pass is unguarded
        logger.warning("Could not parse feed from %s: %s", source.name, e)
        return []

    if feed.get("bozo"):
        logger.debug("Malformed feed from %s (%s); keeping recovered items",
                     source.name, feed.get("bozo_exception"))

    articles: List[RawArticle] = []
    for entry in feed.get("entries") or []:
        article = parse_entry(entry, source, fetched_at=fetched_at)
        if article is not None:
            articles.append(article)
    return articles
