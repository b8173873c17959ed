from __future__ import annotations

from typing import FrozenSet, Iterable, List, Sequence, Set

from .models import RawArticle, StoryGroup


SIMILARITY_THRESHOLD = 0.5
MIN_TOKEN_LEN = 4
TITLE_PREFIX_LEN = 50


def _tokens(key: str) -> FrozenSet[str]:
    return frozenset(w for w in key.split() if len(w) >= MIN_TOKEN_LEN)


def is_similar(key1: str, key2: str) -> bool:
    """
    Token-overlap check on comparison keys.

    Only tokens longer than 3 characters count. Similar when the overlap covers
    at least half of the smaller token set.
    """
    words1 = _tokens(key1)
    words2 = _tokens(key2)
    min_size = min(len(words1), len(words2))
    if min_size == 0:
        return False
    return len(words1 & words2) / min_size >= SIMILARITY_THRESHOLD


def group_similar_stories(articles: Sequence[RawArticle]) -> List[StoryGroup]:
    """
    Greedy single-pass clustering seeded by first appearance.

    Each unvisited article seeds a group and pulls in every later unvisited
    article similar to the seed. Membership is not transitive: an article
    similar only to a non-seed member is left for a later group.
    """
    visited: Set[int] = set()
    groups: List[StoryGroup] = []

    for i, seed in enumerate(articles):
        if i in visited:
            continue
        visited.add(i)
        members = [seed]
        for j in range(i + 1, len(articles)):
            if j in visited:
                continue
            if is_similar(seed.comparison_key, articles[j].comparison_key):
                members.append(articles[j])
                visited.add(j)
        groups.append(StoryGroup(articles=tuple(members)))
    return groups


def deduplicate_by_title(items: Iterable[RawArticle]) -> List[RawArticle]:
    """
    Drop articles whose comparison key shares its first 50 characters with an
    earlier one. Keeps the first occurrence and preserves original order.
    """
    seen: Set[str] = set()
    out: List[RawArticle] = []
    for it in items:
        key = it.comparison_key[:TITLE_PREFIX_LEN]
        if key in seen:
            continue
        seen.add(key)
        out.append(it)
    return out
