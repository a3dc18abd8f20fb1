"""
Shared fixtures: an in-memory Navigator backed by BeautifulSoup.

Pages are plain HTML strings keyed by canonical URL.  A page may also carry
``scroll_batches``: fragments appended to <body> one per scroll, which is
how the fake models an infinite-scroll listing.
"""

import asyncio
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

import pytest
from bs4 import BeautifulSoup

from wxr_crawler.interaction_policy import (
    REVEAL_HIDDEN_JS,
    SCROLL_HEIGHT_JS,
    SCROLL_TO_BOTTOM_JS,
)
from wxr_crawler.models import CrawlItem, PostType
from wxr_crawler.navigator import Navigator

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)

FILLER = (
    "Our retreat combines guided detox programs, daily yoga and plant-based "
    "meals in the Colombian mountains. Guests stay in private cabins and work "
    "with a small team of practitioners throughout the week. Airport "
    "transfers from Medellin are included in every package. "
)


@dataclass
class FakePage:
    html: str
    scroll_batches: List[str] = field(default_factory=list)


class FakeNavigator(Navigator):
    """Navigator over canned HTML; records every interaction."""

    def __init__(self, pages: Dict[str, object], fail_urls: Optional[Set[str]] = None):
        self.pages = {
            url: page if isinstance(page, FakePage) else FakePage(page)
            for url, page in pages.items()
        }
        self.fail_urls = set(fail_urls or ())
        self.load_calls: Counter = Counter()
        self.load_order: List[str] = []
        self.clicks: List[object] = []
        self.waits: List[int] = []
        self.scrolls = 0
        self.closed = False
        self._soup: Optional[BeautifulSoup] = None
        self._batches: List[str] = []

    async def close(self) -> None:
        self.closed = True

    async def load(self, url, timeout_ms=None):
        self.load_calls[url] += 1
        self.load_order.append(url)
        page = self.pages.get(url)
        if page is None or url in self.fail_urls:
            self._soup = None
            return False
        self._soup = BeautifulSoup(page.html, "html.parser")
        self._batches = list(page.scroll_batches)
        return True

    def _require_page(self) -> BeautifulSoup:
        if self._soup is None:
            raise RuntimeError("no page loaded")
        return self._soup

    async def query(self, selector):
        return self._require_page().select_one(selector)

    async def query_all(self, selector):
        return self._require_page().select(selector)

    async def inner_html(self, handle):
        return handle.decode_contents()

    async def text_content(self, handle):
        return handle.get_text()

    async def get_attribute(self, handle, name):
        value = handle.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    async def evaluate(self, script):
        soup = self._require_page()
        if script == SCROLL_HEIGHT_JS:
            return len(str(soup))
        if script == SCROLL_TO_BOTTOM_JS:
            self.scrolls += 1
            if self._batches:
                fragment = BeautifulSoup(self._batches.pop(0), "html.parser")
                (soup.body or soup).append(fragment)
            return None
        if script == REVEAL_HIDDEN_JS:
            hidden = soup.select('[aria-hidden="true"]')
            for el in hidden:
                el["aria-hidden"] = "false"
            return len(hidden)
        raise NotImplementedError(script)

    async def title(self):
        soup = self._require_page()
        if soup.title is None or soup.title.string is None:
            return ""
        return soup.title.string

    async def click(self, handle, timeout_ms):
        if handle.get("data-click-fails") is not None:
            return False
        self.clicks.append(handle)
        return True

    async def wait(self, ms):
        self.waits.append(ms)


def article_page(title: str, body: str = FILLER, extra_head: str = "", links: str = "") -> str:
    """Detail page with a <title> and an <article> root."""
    return (
        f"<html><head><title>{title}</title>{extra_head}</head>"
        f"<body><header><nav><a href='/'>Home</a></nav></header>"
        f"<article><h1>{title}</h1><p>{body}</p></article>{links}</body></html>"
    )


def make_item(**overrides) -> CrawlItem:
    values = dict(
        title="Seven Day Detox",
        slug="seven-day-detox",
        url="https://example.com/post/seven-day-detox",
        date=datetime(2024, 1, 31, 8, 15, 0, 123000, tzinfo=timezone.utc),
        body_html="<p>" + FILLER + "</p>",
        post_type=PostType.POST,
        categories=(),
        post_id=1,
    )
    values.update(overrides)
    return CrawlItem(**values)


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def fixed_now():
    return lambda: FIXED_NOW
