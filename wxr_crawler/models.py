"""
Crawl Data Model
================
Value objects shared by the crawler and the exporters.

- ``CrawlItem``    — one extracted content page (immutable)
- ``CrawlSession`` — frontier state owned by a single crawl
- ``CrawlStats``   — counters reported at the end of a crawl
- ``CrawlResult``  — what the crawler hands to the exporters
"""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Deque, Dict, List, Optional, Set, Tuple


class PostType(str, Enum):
    """WordPress post type an item is imported as."""
    POST = "post"
    PAGE = "page"


class CrawlState(str, Enum):
    """Lifecycle of a frontier crawl."""
    SEEDING = "seeding"
    CRAWLING = "crawling"
    DONE = "done"


@dataclass(frozen=True)
class CrawlItem:
    """A single content page collected by the crawler."""
    title: str
    slug: str
    url: str
    date: datetime
    body_html: str
    post_type: PostType = PostType.PAGE
    categories: Tuple[str, ...] = ()
    post_id: int = 0
    content_source: str = "article"

    @property
    def iso_date(self) -> str:
        """UTC timestamp in ISO-8601 form (``2024-01-31T08:15:00+00:00``)."""
        return self.date.astimezone(timezone.utc).isoformat()

    def to_dict(self) -> dict:
        return {
            'post_id': self.post_id,
            'title': self.title,
            'slug': self.slug,
            'url': self.url,
            'date': self.iso_date,
            'post_type': self.post_type.value,
            'categories': list(self.categories),
            'content_source': self.content_source,
            'body_length': len(self.body_html),
        }


@dataclass
class CrawlStats:
    """Counters collected during one crawl."""
    pages_visited: int = 0
    navigation_failures: int = 0
    listing_pages: int = 0
    items_collected: int = 0
    skipped_no_title: int = 0
    skipped_thin_content: int = 0
    skipped_extraction_error: int = 0
    links_discovered: int = 0
    slug_collisions: int = 0
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    def start(self) -> None:
        """Mark crawl start."""
        self.start_time = time.time()

    def finish(self) -> None:
        """Mark crawl end."""
        self.end_time = time.time()

    @property
    def elapsed_time(self) -> float:
        if self.start_time is None:
            return 0.0
        end = self.end_time or time.time()
        return end - self.start_time

    def get_stats(self) -> Dict[str, Any]:
        return {
            'pages_visited': self.pages_visited,
            'navigation_failures': self.navigation_failures,
            'listing_pages': self.listing_pages,
            'items_collected': self.items_collected,
            'skipped_no_title': self.skipped_no_title,
            'skipped_thin_content': self.skipped_thin_content,
            'skipped_extraction_error': self.skipped_extraction_error,
            'links_discovered': self.links_discovered,
            'slug_collisions': self.slug_collisions,
            'elapsed_time': round(self.elapsed_time, 2),
        }


class CrawlSession:
    """
    Frontier state for one crawl.

    ``visited`` only ever grows.  The pending queue is FIFO so traversal is
    breadth-first and deterministic; a membership set mirrors it so that
    enqueueing is idempotent.
    """

    def __init__(self):
        self.visited: Set[str] = set()
        self._pending: Deque[str] = deque()
        self._queued: Set[str] = set()
        self.items: List[CrawlItem] = []
        self.stats = CrawlStats()
        self.state = CrawlState.SEEDING

    @property
    def to_visit(self) -> Set[str]:
        """Snapshot of the pending URLs."""
        return set(self._queued)

    def has_pending(self) -> bool:
        return bool(self._pending)

    def enqueue(self, url: str) -> bool:
        """Add a URL to the frontier. Returns False if it was already known."""
        if url in self.visited or url in self._queued:
            return False
        self._pending.append(url)
        self._queued.add(url)
        return True

    def pop(self) -> str:
        """Remove and return the oldest pending URL."""
        url = self._pending.popleft()
        self._queued.discard(url)
        return url

    def mark_visited(self, url: str) -> bool:
        """Record a visit. Returns False if the URL was already visited."""
        if url in self.visited:
            return False
        self.visited.add(url)
        self._queued.discard(url)
        return True

    def add_item(self, item: CrawlItem) -> None:
        self.items.append(item)
        self.stats.items_collected += 1

    def next_post_id(self) -> int:
        """Deterministic id: position of the next item in discovery order."""
        return len(self.items) + 1


@dataclass
class CrawlResult:
    """Items and counters produced by a finished crawl."""
    items: List[CrawlItem] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)
    visited: Tuple[str, ...] = ()
