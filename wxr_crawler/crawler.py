"""
Frontier Crawler
================
Walks a site breadth-first and collects one ``CrawlItem`` per content page.

State machine::

    SEEDING   → enqueue root, locale roots, listing page(s)
    CRAWLING  → pop / normalize / visit / expand / discover / extract
    DONE      → frontier exhausted (or max_pages reached)

Everything runs in one asyncio task against one ``Navigator``.  Failures
inside the loop are logged and skipped; the crawl itself never aborts, so
the export always reflects whatever was collected.

Usage::

    crawler = FrontierCrawler(CrawlConfig(base_url="https://example.com"))
    async with PlaywrightNavigator() as nav:
        result = await crawler.crawl(nav)
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .extractor import SKIP_THIN, ContentExtractor, MIN_CONTENT_LENGTH
from .interaction_policy import (
    DEFAULT_DISCLOSURE_SELECTORS,
    expand_disclosures,
    scroll_to_exhaustion,
)
from .metadata import SiteProfile, classify, resolve_date, resolve_title, utc_now
from .models import CrawlItem, CrawlResult, CrawlSession, CrawlState
from .navigator import Navigator, PlaywrightNavigator
from .utils import URLNormalizer, path_segments, slugify_title

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class CrawlConfig:
    """Configuration for one frontier crawl."""
    base_url: str

    # Link policy
    max_path_segments: int = 4
    max_pages: Optional[int] = None       # None = until the frontier is empty

    # Listing pages
    scroll_settle_ms: int = 4000
    max_scrolls: int = 50

    # Disclosure expansion
    click_timeout_ms: int = 2000
    disclosure_settle_ms: int = 300
    disclosure_selectors: List[str] = field(
        default_factory=lambda: list(DEFAULT_DISCLOSURE_SELECTORS)
    )

    # Content quality
    min_content_length: int = MIN_CONTENT_LENGTH

    # URL vocabulary
    profile: SiteProfile = field(default_factory=SiteProfile)


# ---------------------------------------------------------------------------
# Crawler
# ---------------------------------------------------------------------------

class FrontierCrawler:
    """
    Sequential frontier crawler.

    The session (visited set, FIFO queue, items) is created fresh by every
    call to :meth:`crawl`; nothing is shared between runs.
    """

    def __init__(
        self,
        config: CrawlConfig,
        extractor: Optional[ContentExtractor] = None,
        now: Callable[[], datetime] = utc_now,
    ):
        self.config = config
        self.normalizer = URLNormalizer(config.base_url)
        self.extractor = extractor or ContentExtractor(
            min_content_length=config.min_content_length
        )
        self.now = now
        self.profile = config.profile
        self.session: Optional[CrawlSession] = None

        self._progress_callback: Optional[Callable] = None
        self._slugs: Dict[str, str] = {}

    def set_progress_callback(self, callback: Callable) -> None:
        """Set callback: callback(visited_count, current_url, stats_dict)"""
        self._progress_callback = callback

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    async def crawl(self, navigator: Navigator) -> CrawlResult:
        """
        Crawl the site until the frontier is exhausted.

        Args:
            navigator: Started navigator; the crawler does not close it.

        Returns:
            CrawlResult with items in discovery order.
        """
        session = CrawlSession()
        self.session = session
        self._slugs = {}
        session.stats.start()

        logger.info("=" * 65)
        logger.info("CRAWL STARTED")
        logger.info(f"Origin: {self.normalizer.origin}")
        logger.info(f"Limits: max_pages={self.config.max_pages}, "
                    f"max_path_segments={self.config.max_path_segments}")
        logger.info("=" * 65)

        for seed in self.profile.seed_urls(self.normalizer.origin):
            url = self.normalizer.normalize(seed)
            if url:
                session.enqueue(url)
        session.state = CrawlState.CRAWLING

        while session.has_pending():
            if self.config.max_pages and len(session.visited) >= self.config.max_pages:
                logger.info(f"[CRAWL] max_pages limit reached ({self.config.max_pages})")
                break

            url = self.normalizer.normalize(session.pop())
            if url is None or not session.mark_visited(url):
                continue

            await self._visit(navigator, url)

        session.state = CrawlState.DONE
        session.stats.finish()

        stats = session.stats.get_stats()
        logger.info(
            f"[CRAWL] Done: {stats['items_collected']} items from "
            f"{stats['pages_visited']} pages "
            f"({stats['navigation_failures']} navigation failures) "
            f"in {stats['elapsed_time']}s"
        )
        return CrawlResult(
            items=list(session.items),
            stats=stats,
            visited=tuple(sorted(session.visited)),
        )

    async def _visit(self, navigator: Navigator, url: str) -> None:
        """Load one URL, feed the frontier and collect an item if it has one."""
        session = self.session
        stats = session.stats

        if not await navigator.load(url):
            stats.navigation_failures += 1
            logger.warning(f"[CRAWL] Giving up on {url}")
            return
        stats.pages_visited += 1
        logger.info(f"[CRAWL] Visiting {url}")

        if self._progress_callback:
            self._progress_callback(len(session.visited), url, stats.get_stats())

        if self.profile.is_listing(url):
            stats.listing_pages += 1
            await scroll_to_exhaustion(
                navigator,
                settle_ms=self.config.scroll_settle_ms,
                max_scrolls=self.config.max_scrolls,
            )
            await self.discover_links(navigator)
            return

        await expand_disclosures(
            navigator,
            selectors=self.config.disclosure_selectors,
            click_timeout_ms=self.config.click_timeout_ms,
            settle_ms=self.config.disclosure_settle_ms,
        )
        await self.discover_links(navigator)

        item = await self._build_item(navigator, url)
        if item is not None:
            session.add_item(item)
            logger.info(f"[CRAWL] Collected {item.post_type.value} '{item.title}' ({item.slug})")

    # ------------------------------------------------------------------
    # Link discovery
    # ------------------------------------------------------------------

    def should_enqueue(self, url: str) -> bool:
        """Detail pages always; otherwise only shallow paths."""
        if self.profile.post_segment in path_segments(url):
            return True
        if url == self.normalizer.origin or self.profile.is_locale_root(url):
            return True
        return len(path_segments(url)) <= self.config.max_path_segments

    async def discover_links(self, navigator: Navigator) -> int:
        """
        Enqueue every in-origin link on the current page that passes the
        link policy.

        Returns:
            Number of URLs newly added to the frontier
        """
        try:
            anchors = await navigator.query_all("a[href]")
        except Exception as e:
            logger.debug(f"[LINKS] Anchor query failed: {e}")
            return 0

        added = 0
        for anchor in anchors:
            try:
                href = await navigator.get_attribute(anchor, "href")
            except Exception as e:
                logger.debug(f"[LINKS] Could not read href: {e}")
                continue
            if not href or href.startswith("#"):
                continue
            url = self.normalizer.normalize(href)
            if url is None or not self.should_enqueue(url):
                continue
            if self.session.enqueue(url):
                added += 1

        self.session.stats.links_discovered += added
        if added:
            logger.debug(f"[LINKS] {added} new URLs queued")
        return added

    # ------------------------------------------------------------------
    # Item assembly
    # ------------------------------------------------------------------

    async def _build_item(self, navigator: Navigator, url: str) -> Optional[CrawlItem]:
        stats = self.session.stats

        title = await resolve_title(navigator)
        if not title:
            stats.skipped_no_title += 1
            logger.info(f"[SKIP] No title on {url}")
            return None

        content, reason = await self.extractor.extract_with_reason(navigator, url)
        if content is None:
            if reason == SKIP_THIN:
                stats.skipped_thin_content += 1
            else:
                stats.skipped_extraction_error += 1
            return None

        date = await resolve_date(navigator, now=self.now)
        post_type, categories = classify(url, self.profile)
        slug = slugify_title(title)

        previous = self._slugs.get(slug)
        if previous is not None:
            stats.slug_collisions += 1
            logger.warning(f"[CRAWL] Slug '{slug}' already used by {previous} (now {url})")
        else:
            self._slugs[slug] = url

        return CrawlItem(
            title=title,
            slug=slug,
            url=url,
            date=date,
            body_html=content.html,
            post_type=post_type,
            categories=categories,
            post_id=self.session.next_post_id(),
            content_source=content.source,
        )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_summary(self, result: CrawlResult, filepath) -> str:
        """Export stats, visited URLs and item metadata (no bodies) to JSON."""
        import json
        path = Path(filepath)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            'origin': self.normalizer.origin,
            'stats': result.stats,
            'items': [item.to_dict() for item in result.items],
            'visited': list(result.visited),
        }
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        return str(path)


# ---------------------------------------------------------------------------
# End-to-end run
# ---------------------------------------------------------------------------

async def run_export(run_config, progress_callback: Optional[Callable] = None):
    """
    Crawl with a Playwright browser and write every configured artifact.

    Args:
        run_config: ``ExportRunConfig``.
        progress_callback: Optional ``(visited_count, url, stats)`` callback.

    Returns:
        ``(CrawlResult, {artifact_name: path})``
    """
    from .image_exporter import download_images
    from .markdown_exporter import write_markdown
    from .wxr_exporter import ExportSiteInfo, write_wxr

    output_dir = Path(run_config.output_dir)
    if run_config.clean_output and output_dir.exists():
        logger.info(f"[EXPORT] Clearing previous output in {output_dir}")
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    crawler = FrontierCrawler(run_config.to_crawl_config())
    if progress_callback:
        crawler.set_progress_callback(progress_callback)

    navigator = PlaywrightNavigator(
        timeout_ms=run_config.timeout_ms,
        max_attempts=run_config.max_retries,
        headless=run_config.headless,
        user_agent=run_config.user_agent,
    )
    async with navigator:
        result = await crawler.crawl(navigator)

    artifacts = {}
    site = ExportSiteInfo(base_url=crawler.normalizer.origin)
    artifacts["wxr"] = write_wxr(result.items, site, output_dir / "import.xml")
    artifacts["summary"] = crawler.export_summary(result, output_dir / "crawl_summary.json")

    if run_config.write_markdown:
        paths = write_markdown(result.items, output_dir / "markdown")
        artifacts["markdown"] = str(output_dir / "markdown")
        logger.info(f"[EXPORT] {len(paths)} markdown files written")

    if run_config.download_images:
        artifacts["images"] = download_images(result.items, output_dir / "images")

    return result, artifacts
