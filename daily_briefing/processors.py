"""
Category pipelines.

world      recency window -> cross-source grouping -> corroboration score
legal-tech keyword relevance score -> title-prefix dedup

Both return at most ``limit`` FormattedArticles, best first.
"""
from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, List, Sequence

from .classifier import filter_recent, keyword_score
from .config import LEGAL_TECH, LEGAL_TECH_KEYWORDS, WORLD
from .dedup import deduplicate_by_title, group_similar_stories
from .models import FormattedArticle, RawArticle, ScoredArticle
from .normalizer import to_formatted_article


RECENT_HOURS = 4
FALLBACK_HOURS = 12
MIN_RECENT_ARTICLES = 5
SOURCE_COUNT_WEIGHT = 10
DEFAULT_LIMIT = 5


def _trust_bonus(priority: int) -> float:
    return 1 / priority


def _rank(scored: List[ScoredArticle]) -> List[ScoredArticle]:
    # Stable: equal score and date keep their input order
    return sorted(scored, key=lambda s: (s.score, s.article.pub_date), reverse=True)


def score_world(articles: Sequence[RawArticle], now: datetime) -> List[ScoredArticle]:
    recent = filter_recent(articles, now, RECENT_HOURS)
    if len(recent) < MIN_RECENT_ARTICLES:
        # Widen from the full set, not from the 4h subset
        recent = filter_recent(articles, now, FALLBACK_HOURS)

    scored = []
    for group in group_similar_stories(recent):
        best = group.representative
        source_count = group.source_count
        scored.append(ScoredArticle(
            article=best,
            score=source_count * SOURCE_COUNT_WEIGHT + _trust_bonus(best.source_priority),
            source_count=source_count,
        ))
    return _rank(scored)


def process_world(
    articles: Sequence[RawArticle],
    now: datetime,
    limit: int = DEFAULT_LIMIT,
) -> List[FormattedArticle]:
    return [to_formatted_article(s.article) for s in score_world(articles, now)[:limit]]


def score_legal_tech(articles: Sequence[RawArticle]) -> List[ScoredArticle]:
    return _rank([
        ScoredArticle(
            article=a,
            score=keyword_score(a, LEGAL_TECH_KEYWORDS) + _trust_bonus(a.source_priority),
        )
        for a in articles
    ])


def process_legal_tech(
    articles: Sequence[RawArticle],
    now: datetime,
    limit: int = DEFAULT_LIMIT,
) -> List[FormattedArticle]:
    ranked = [s.article for s in score_legal_tech(articles)]
    return [to_formatted_article(a) for a in deduplicate_by_title(ranked)[:limit]]


Processor = Callable[[Sequence[RawArticle], datetime, int], List[FormattedArticle]]

PROCESSORS: Dict[str, Processor] = {
    WORLD: process_world,
    LEGAL_TECH: process_legal_tech,
}
