"""
Static feed configuration and runtime tunables.

Feed sources and keywords are compiled in. Tunables are read from the
environment when ``Settings()`` is instantiated, so a ``.env`` loaded before
construction is honored.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .models import Source


WORLD = "world"
LEGAL_TECH = "legal-tech"

RSS_SOURCES: Dict[str, Tuple[Source, ...]] = {
    WORLD: (
        Source("Reuters", "https://feeds.reuters.com/reuters/topNews", 1),
        Source("AP News", "https://rsshub.app/apnews/topics/apf-topnews", 1),
        Source("BBC", "https://feeds.bbci.co.uk/news/world/rss.xml", 1),
        Source("NYTimes", "https://rss.nytimes.com/services/xml/rss/nyt/World.xml", 1),
        Source("NPR", "https://feeds.npr.org/1001/rss.xml", 2),
    ),
    LEGAL_TECH: (
        Source("Law.com", "https://feeds.law.com/LawComNews", 1),
        Source("Artificial Lawyer", "https://www.artificiallawyer.com/feed/", 1),
        Source("Above the Law", "https://abovethelaw.com/feed/", 2),
        Source("LawSites", "https://www.lawnext.com/feed", 1),
    ),
}

CATEGORIES: Tuple[str, ...] = tuple(RSS_SOURCES)

LEGAL_TECH_KEYWORDS: Tuple[str, ...] = (
    "legal tech", "legaltech", "legal ai", "law firm technology", "legal software",
    "contract ai", "ediscovery", "legal automation", "courtroom", "legal analytics",
    "document review", "legal ops", "legal operations", "ai lawyer", "legal startup",
)


def _env_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, str(default)))
    except (ValueError, TypeError):
        return default


def _env_int(key: str, default: int, minimum: Optional[int] = None) -> int:
    try:
        value = int(os.getenv(key, str(default)))
    except (ValueError, TypeError):
        return default
    if minimum is not None and value < minimum:
        return default
    return value


@dataclass(frozen=True)
class Settings:
    cache_duration_s: float = field(default_factory=lambda: _env_float("BRIEFING_CACHE_DURATION_S", 30 * 60))
    fetch_timeout_s: float = field(default_factory=lambda: _env_float("BRIEFING_FETCH_TIMEOUT_S", 10.0))
    user_agent: str = field(default_factory=lambda: os.getenv("BRIEFING_USER_AGENT", "DailyBriefing/1.0"))
    digest_size: int = field(default_factory=lambda: _env_int("BRIEFING_DIGEST_SIZE", 5, minimum=1))
