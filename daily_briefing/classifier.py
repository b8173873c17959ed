from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, List

from .models import RawArticle


KEYWORD_POINTS = 10


def _matched_keywords(text: str, keywords: Iterable[str]) -> List[str]:
    t = text.lower()
    return [k for k in keywords if k.lower() in t]


def keyword_score(article: RawArticle, keywords: Iterable[str]) -> int:
    """
    Relevance of an article to a keyword list.

    Each keyword found in the lower-cased title + summary adds 10 points once,
    however often it repeats.
    """
    text = f"{article.title} {article.summary}"
    return KEYWORD_POINTS * len(_matched_keywords(text, keywords))


def filter_recent(articles: Iterable[RawArticle], now: datetime, hours: float) -> List[RawArticle]:
    """Keep articles published at or after ``now - hours``."""
    cutoff = now - timedelta(hours=hours)
    return [a for a in articles if a.pub_date >= cutoff]
