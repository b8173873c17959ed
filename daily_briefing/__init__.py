"""
daily_briefing

Aggregates several RSS feeds per category and serves a small, ranked,
cached digest.

Core ideas:
- Input: a category ("world" or "legal-tech"), each with a fixed list of sources
- Process: fetch all sources concurrently → parse → normalize → rank → cache
    - world: last 4h (12h if too few), similar headlines grouped across sources,
      stories covered by more sources first
    - legal-tech: keyword relevance, near-duplicate headlines collapsed
- Output: NewsResult with up to 5 FormattedArticle, plus cached/stale flags

Example
-------
import asyncio
from daily_briefing import NewsService

service = NewsService()
result = asyncio.run(service.get_news("world"))

for article in result.articles:
    print(article.source, article.title, article.url)
"""
from .cache import NewsCache
from .config import Settings
from .core import NewsService
from .exceptions import InvalidCategoryError, NewsUnavailableError
from .models import FormattedArticle, NewsResult, RawArticle, Source

__all__ = [
    "NewsService",
    "NewsCache",
    "Settings",
    "NewsResult",
    "FormattedArticle",
    "RawArticle",
    "Source",
    "InvalidCategoryError",
    "NewsUnavailableError",
]
