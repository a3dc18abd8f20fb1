"""
Page Navigator
==============
The crawler never talks to Playwright directly: it drives a ``Navigator``.

``Navigator`` is the contract (load a URL with bounded retries, query the
rendered DOM, evaluate scripts, click elements, wait).  ``PlaywrightNavigator``
is the production implementation: one Chromium browser, one context and one
page reused for the whole crawl.  Use it as an async context manager so the
browser is closed even if the crawl loop raises::

    async with PlaywrightNavigator() as nav:
        if await nav.load("https://example.com"):
            print(await nav.title())
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 120_000
DEFAULT_MAX_ATTEMPTS = 3

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)

# Resource types that never affect the extracted markup
_BLOCKED_RESOURCE_TYPES = frozenset(["media", "font"])


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------

class Navigator(ABC):
    """Renderable page context used by the crawler.

    Implementations own a single page; every query applies to the page
    most recently loaded with :meth:`load`.
    """

    async def __aenter__(self) -> "Navigator":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Acquire resources (browser, page). No-op by default."""

    async def close(self) -> None:
        """Release resources. No-op by default."""

    @abstractmethod
    async def load(self, url: str, timeout_ms: Optional[int] = None) -> bool:
        """Navigate to *url*. Returns False once all attempts have failed."""

    @abstractmethod
    async def query(self, selector: str) -> Optional[Any]:
        """First element matching *selector*, or None."""

    @abstractmethod
    async def query_all(self, selector: str) -> List[Any]:
        """All elements matching *selector*."""

    @abstractmethod
    async def inner_html(self, handle: Any) -> str:
        """Inner HTML of an element."""

    @abstractmethod
    async def text_content(self, handle: Any) -> str:
        """Text content of an element."""

    @abstractmethod
    async def get_attribute(self, handle: Any, name: str) -> Optional[str]:
        """Attribute value of an element, or None."""

    @abstractmethod
    async def evaluate(self, script: str) -> Any:
        """Evaluate a page-level script and return its value."""

    @abstractmethod
    async def title(self) -> str:
        """Document title of the current page."""

    @abstractmethod
    async def click(self, handle: Any, timeout_ms: int) -> bool:
        """Click an element. Never raises; returns False on failure."""

    @abstractmethod
    async def wait(self, ms: int) -> None:
        """Fixed settle timer."""


# ---------------------------------------------------------------------------
# Playwright implementation
# ---------------------------------------------------------------------------

class PlaywrightNavigator(Navigator):
    """Navigator backed by a single Playwright Chromium page."""

    def __init__(
        self,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        headless: bool = True,
        user_agent: str = DEFAULT_USER_AGENT,
        block_resources: bool = True,
    ):
        self.timeout_ms = timeout_ms
        self.max_attempts = max(1, max_attempts)
        self.headless = headless
        self.user_agent = user_agent
        self.block_resources = block_resources

        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Navigator not started; use 'async with'")
        return self._page

    async def start(self) -> None:
        """Launch Chromium and open the page reused for the whole crawl."""
        if self._playwright is not None:
            return
        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=[
                    '--disable-gpu',
                    '--no-sandbox',
                    '--disable-dev-shm-usage',
                ]
            )
            self._context = await self._browser.new_context(
                user_agent=self.user_agent,
                viewport={'width': 1920, 'height': 1080},
            )
            if self.block_resources:
                await self._context.route("**/*", self._route_handler)
            self._page = await self._context.new_page()
        except BaseException:
            # __aexit__ does not run when __aenter__ fails
            await self.close()
            raise
        logger.info(
            f"Playwright browser initialized "
            f"(headless={self.headless}, timeout={self.timeout_ms}ms, "
            f"attempts={self.max_attempts})"
        )

    async def _route_handler(self, route) -> None:
        """Skip fonts and media; images stay so <img> markup is intact."""
        if route.request.resource_type in _BLOCKED_RESOURCE_TYPES:
            await route.abort()
            return
        await route.continue_()

    async def close(self) -> None:
        """Close page, context, browser and Playwright, in that order."""
        if self._page is not None:
            try:
                await self._page.close()
            except PlaywrightError:
                pass
            self._page = None
        if self._context is not None:
            try:
                await self._context.close()
            except PlaywrightError:
                pass
            self._context = None
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError:
                pass
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
            logger.info("Playwright browser closed")

    async def load(self, url: str, timeout_ms: Optional[int] = None) -> bool:
        timeout = timeout_ms or self.timeout_ms
        for attempt in range(1, self.max_attempts + 1):
            try:
                await self.page.goto(url, wait_until='domcontentloaded', timeout=timeout)
                return True
            except PlaywrightTimeout as e:
                logger.warning(f"[NAV] Timeout (attempt {attempt}/{self.max_attempts}) for {url}: {e}")
            except PlaywrightError as e:
                logger.warning(f"[NAV] Goto failed (attempt {attempt}/{self.max_attempts}) for {url}: {e}")
        return False

    async def query(self, selector: str):
        return await self.page.query_selector(selector)

    async def query_all(self, selector: str) -> list:
        return await self.page.query_selector_all(selector)

    async def inner_html(self, handle) -> str:
        return await handle.inner_html()

    async def text_content(self, handle) -> str:
        return (await handle.text_content()) or ""

    async def get_attribute(self, handle, name: str) -> Optional[str]:
        return await handle.get_attribute(name)

    async def evaluate(self, script: str):
        return await self.page.evaluate(script)

    async def title(self) -> str:
        return await self.page.title()

    async def click(self, handle, timeout_ms: int) -> bool:
        try:
            await handle.click(timeout=timeout_ms)
            return True
        except PlaywrightError as e:
            # TimeoutError is a subclass of Error
            logger.debug(f"[NAV] Click failed: {e}")
            return False

    async def wait(self, ms: int) -> None:
        await asyncio.sleep(ms / 1000)
