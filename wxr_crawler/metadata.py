"""
Metadata Resolver
=================
Fallback chains that turn a loaded page into item metadata.

  title  — document ``<title>`` → first ``<h1>`` → None (item dropped)
  date   — ``article:published_time`` → ``article:modified_time`` → now()
  class  — post vs page and locale categories, from the URL path only

URL vocabulary (post segment, listing segment, locales) lives in a
``SiteProfile`` so another template family only needs a new profile.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple

from .models import PostType
from .navigator import Navigator
from .utils import path_segments

logger = logging.getLogger(__name__)

PUBLISHED_TIME_SELECTOR = 'meta[property="article:published_time"]'
MODIFIED_TIME_SELECTOR = 'meta[property="article:modified_time"]'
DATE_META_SELECTORS = (PUBLISHED_TIME_SELECTOR, MODIFIED_TIME_SELECTOR)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Site profile
# ---------------------------------------------------------------------------

@dataclass
class SiteProfile:
    """URL vocabulary of one website template family (Wix by default)."""
    post_segment: str = "post"
    listing_segment: str = "blog"
    locales: Dict[str, str] = field(default_factory=lambda: {"es": "Spanish"})

    def seed_urls(self, origin: str) -> List[str]:
        """Root, each locale root, the listing page and each locale listing."""
        origin = origin.rstrip('/')
        seeds = [origin]
        seeds.extend(f"{origin}/{code}" for code in self.locales)
        seeds.append(f"{origin}/{self.listing_segment}")
        seeds.extend(f"{origin}/{code}/{self.listing_segment}" for code in self.locales)
        return seeds

    def is_listing(self, url: str) -> bool:
        """``/blog`` or ``/<locale>/blog``."""
        segments = path_segments(url)
        if segments == [self.listing_segment]:
            return True
        return (
            len(segments) == 2
            and segments[0] in self.locales
            and segments[1] == self.listing_segment
        )

    def is_locale_root(self, url: str) -> bool:
        segments = path_segments(url)
        return len(segments) == 1 and segments[0] in self.locales

    def is_post(self, url: str) -> bool:
        return self.post_segment in path_segments(url)

    def post_locale(self, url: str) -> Optional[str]:
        """Locale code of a ``/<locale>/post/...`` URL, else None."""
        segments = path_segments(url)
        if (
            len(segments) >= 2
            and segments[0] in self.locales
            and segments[1] == self.post_segment
        ):
            return segments[0]
        return None


# ---------------------------------------------------------------------------
# Title
# ---------------------------------------------------------------------------

async def resolve_title(navigator: Navigator) -> Optional[str]:
    """Document title, else the first ``<h1>`` text, else None."""
    try:
        title = (await navigator.title() or "").strip()
    except Exception as e:
        logger.debug(f"[META] Could not read document title: {e}")
        title = ""
    if title:
        return title

    try:
        h1 = await navigator.query("h1")
        if h1 is not None:
            text = (await navigator.text_content(h1) or "").strip()
            if text:
                return text
    except Exception as e:
        logger.debug(f"[META] Could not read <h1>: {e}")
    return None


# ---------------------------------------------------------------------------
# Date
# ---------------------------------------------------------------------------

# Date, optional time with any fraction length, optional Z / +HH / +HHMM / +HH:MM
_ISO_DATETIME_RE = re.compile(
    r'^(\d{4}-\d{2}-\d{2})'
    r'(?:[T ](\d{2}:\d{2})(?::(\d{2}))?(?:[.,](\d+))?)?'
    r'\s*(Z|[+-]\d{2}(?::?\d{2})?)?$',
    re.IGNORECASE,
)


def _canonical_iso(value: str) -> Optional[str]:
    """Rewrite an ISO-8601 variant into the form ``fromisoformat`` accepts on Python 3.8+."""
    match = _ISO_DATETIME_RE.match(value)
    if match is None:
        return None
    day, hours_minutes, seconds, fraction, offset = match.groups()

    text = f"{day}T{hours_minutes or '00:00'}:{seconds or '00'}"
    if fraction:
        text += "." + fraction[:6].ljust(6, "0")
    if offset:
        if offset.upper() == "Z":
            text += "+00:00"
        else:
            digits = offset[1:].replace(":", "")
            text += f"{offset[0]}{digits[:2]}:{digits[2:] or '00'}"
    return text


def parse_meta_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 meta value into an aware UTC datetime.

    Accepts a trailing ``Z``, compact ``+0000`` offsets and fractions of any
    length; naive values are taken as UTC.
    Returns None for empty or unparseable values.
    """
    if not value:
        return None
    value = value.strip()
    if not value:
        return None
    canonical = _canonical_iso(value)
    parsed = None
    if canonical is not None:
        try:
            parsed = datetime.fromisoformat(canonical)
        except ValueError:
            pass
    if parsed is None:
        logger.debug(f"[META] Unparseable date {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


async def resolve_date(
    navigator: Navigator,
    now: Callable[[], datetime] = utc_now,
) -> datetime:
    """
    Publication date of the current page.

    Args:
        navigator: Navigator with the page loaded.
        now: Clock used when neither meta tag yields a date.

    Returns:
        Aware UTC datetime (never None)
    """
    for selector in DATE_META_SELECTORS:
        try:
            handle = await navigator.query(selector)
            if handle is None:
                continue
            parsed = parse_meta_date(await navigator.get_attribute(handle, "content"))
        except Exception as e:
            logger.debug(f"[META] {selector} lookup failed: {e}")
            continue
        if parsed is not None:
            return parsed

    fallback = now()
    if fallback.tzinfo is None:
        fallback = fallback.replace(tzinfo=timezone.utc)
    return fallback.astimezone(timezone.utc)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def classify(url: str, profile: Optional[SiteProfile] = None) -> Tuple[PostType, Tuple[str, ...]]:
    """
    Decide post type and categories from the URL path.

    ``/post/x`` and ``/es/post/x`` are posts; only the locale-prefixed one
    carries the locale label as its category.
    """
    profile = profile or SiteProfile()
    post_type = PostType.POST if profile.is_post(url) else PostType.PAGE

    categories: Tuple[str, ...] = ()
    locale = profile.post_locale(url)
    if locale is not None:
        categories = (profile.locales[locale],)
    return post_type, categories
