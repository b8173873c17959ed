from __future__ import annotations

from datetime import datetime
from email.utils import format_datetime
from typing import Optional

import pytest


def _tag(name: str, value: Optional[str]) -> str:
    return "" if value is None else f"<{name}>{value}</{name}>"


@pytest.fixture
def rss_item():
    """Build one <item> block; fields left as None are omitted."""
    def _build(
        title: Optional[str] = "Untitled",
        link: Optional[str] = None,
        guid: Optional[str] = None,
        description: Optional[str] = None,
        pub_date: Optional[datetime] = None,
        extra: str = "",
    ) -> str:
        return (
            "<item>"
            + _tag("title", title)
            + _tag("link", link)
            + _tag("guid", guid)
            + _tag("description", description)
            + _tag("pubDate", format_datetime(pub_date, usegmt=True) if pub_date else None)
            + extra
            + "</item>"
        )
    return _build


@pytest.fixture
def rss_feed():
    """Wrap item blocks in an RSS 2.0 document with the media namespace declared."""
    def _build(*items: str) -> str:
        return (
            '<?xml version="1.0" encoding="UTF-8"?>'
            '<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">'
            "<channel><title>Test feed</title><link>https://example.com/</link>"
            + "".join(items)
            + "</channel></rss>"
        )
    return _build
