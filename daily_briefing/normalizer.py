from __future__ import annotations

import re
from typing import Optional

from .models import NO_SUMMARY, FormattedArticle, RawArticle


_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")

# Closed set. Anything not listed here is left untouched.
_ENTITIES = {
    "&amp;": "&",
    "&lt;": "<",
    "&gt;": ">",
    "&quot;": '"',
    "&#39;": "'",
    "&#8217;": "'",
    "&#8216;": "'",
    "&#8220;": '"',
    "&#8221;": '"',
    "&#8211;": "–",
    "&#8212;": "—",
    "&#8230;": "...",
    "&rsquo;": "'",
    "&lsquo;": "'",
    "&rdquo;": '"',
    "&ldquo;": '"',
    "&ndash;": "–",
    "&mdash;": "—",
    "&hellip;": "...",
    "&nbsp;": " ",
}
_ENTITY_RE = re.compile("|".join(re.escape(k) for k in _ENTITIES))


def _clean_once(text: str) -> str:
    text = _TAG_RE.sub("", text)
    text = _ENTITY_RE.sub(lambda m: _ENTITIES[m.group(0)], text)
    return _WS_RE.sub(" ", text).strip()


def normalize_text(text: Optional[str]) -> str:
    """
    Strip markup, decode the known entities and collapse whitespace.

    Decoding can expose new markup or entities (``&amp;lt;`` -> ``&lt;``), so the
    cleanup repeats until nothing changes. After the first pass any change
    shortens the string, which bounds the loop and makes the result idempotent.
    """
    if not text:
        return ""
    prev = None
    out = text
    while out != prev:
        prev, out = out, _clean_once(out)
    return out


def to_formatted_article(article: RawArticle) -> FormattedArticle:
    """Drop pipeline metadata, keeping only the caller-facing fields."""
    return FormattedArticle(
        title=article.title,
        summary=article.summary or NO_SUMMARY,
        source=article.source,
        url=article.url,
        image_url=article.image_url,
    )
