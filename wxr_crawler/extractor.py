"""
Content Extractor
Locates the main content root of a rendered page and cleans it.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .navigator import Navigator
from .sanitizers import Sanitizer, clean_content

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 200

# Tried in order; the first selector that matches wins
CONTENT_ROOT_SELECTORS = ("article", "main", "body")

# Roots that mean the page had no semantic container
_DEGRADED_ROOTS = {"body"}

# Skip reasons reported by extract_with_reason()
SKIP_ERROR = "error"
SKIP_THIN = "thin"


@dataclass
class ExtractedContent:
    """Cleaned content fragment and the root it came from."""
    html: str
    source: str


class ContentExtractor:
    """
    Extracts a cleaned HTML fragment from the page a Navigator has loaded.

    Fallback chain: ``<article>`` → ``<main>`` → ``<body>``.  The fragment is
    run through the sanitizer pipeline and rejected when it is shorter than
    ``min_content_length`` characters.
    """

    def __init__(
        self,
        min_content_length: int = MIN_CONTENT_LENGTH,
        sanitizers: Optional[Sequence[Sanitizer]] = None,
        root_selectors: Sequence[str] = CONTENT_ROOT_SELECTORS,
    ):
        self.min_content_length = min_content_length
        self.sanitizers = sanitizers
        self.root_selectors = tuple(root_selectors)

    async def find_root(self, navigator: Navigator):
        """
        Return ``(handle, selector)`` for the first matching content root.

        Returns:
            Tuple of element handle and selector, or ``(None, None)``
        """
        for selector in self.root_selectors:
            handle = await navigator.query(selector)
            if handle is not None:
                return handle, selector
        return None, None

    async def extract(self, navigator: Navigator, url: str = "") -> Optional[ExtractedContent]:
        """
        Extract and clean the content of the current page.

        Args:
            navigator: Navigator with the page already loaded.
            url: Page URL, used for log messages only.

        Returns:
            ExtractedContent, or None when the page has no usable content
        """
        content, _ = await self.extract_with_reason(navigator, url)
        return content

    async def extract_with_reason(self, navigator: Navigator, url: str = ""):
        """
        Same as :meth:`extract` but also says why nothing was returned.

        Returns:
            ``(ExtractedContent, None)`` on success, otherwise
            ``(None, reason)`` with reason ``"error"`` or ``"thin"``
        """
        try:
            handle, source = await self.find_root(navigator)
            if handle is None:
                logger.info(f"[SKIP] No content root on {url}")
                return None, SKIP_ERROR
            raw_html = await navigator.inner_html(handle)
        except Exception as e:
            logger.info(f"[SKIP] Extraction failed on {url}: {e}")
            return None, SKIP_ERROR

        if source in _DEGRADED_ROOTS:
            logger.warning(f"[EXTRACT] No <article>/<main> on {url}; falling back to <{source}>")

        html = clean_content(raw_html or "", self.sanitizers)
        if not self.is_substantial(html):
            logger.info(
                f"[SKIP] Thin content on {url} "
                f"({len(html)} < {self.min_content_length} chars)"
            )
            return None, SKIP_THIN

        return ExtractedContent(html=html, source=source), None

    def is_substantial(self, html: str) -> bool:
        """True when a cleaned fragment meets the length threshold."""
        return len(html or "") >= self.min_content_length
