from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


NO_SUMMARY = "No summary available."


@dataclass(frozen=True)
class Source:
    """A configured feed. Lower priority means more trusted (1 = most trusted)."""
    name: str
    url: str
    priority: int = 1


@dataclass(frozen=True)
class RawArticle:
    """
    One feed item after extraction and normalization.

    ``comparison_key`` is the lower-cased raw title. It is used for grouping and
    deduplication only and never leaves the pipeline.
    """
    title: str
    url: str
    summary: str
    source: str
    source_priority: int
    pub_date: datetime
    image_url: Optional[str] = None
    comparison_key: str = field(default="", repr=False)


@dataclass(frozen=True)
class StoryGroup:
    """Articles judged to report the same event. Never empty."""
    articles: Tuple[RawArticle, ...]

    @property
    def source_count(self) -> int:
        return len({a.source for a in self.articles})

    @property
    def representative(self) -> RawArticle:
        # min() keeps the first of equal priorities, i.e. original order
        return min(self.articles, key=lambda a: a.source_priority)


@dataclass(frozen=True)
class ScoredArticle:
    article: RawArticle
    score: float
    source_count: Optional[int] = None


@dataclass(frozen=True)
class FormattedArticle:
    """
    The only article shape handed to callers.

    WARNING: Do not add fields lightly. ``as_dict`` is the wire contract.
    """
    title: str
    summary: str
    source: str
    url: str
    image_url: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "summary": self.summary,
            "source": self.source,
            "url": self.url,
            "imageUrl": self.image_url,
        }


@dataclass(frozen=True)
class NewsResult:
    articles: Tuple[FormattedArticle, ...]
    cached: bool
    stale: bool = False

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "articles": [a.as_dict() for a in self.articles],
            "cached": self.cached,
        }
        if self.stale:
            out["stale"] = True
        return out
