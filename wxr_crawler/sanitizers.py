"""
Content Sanitizers
==================
Junk-removal pipeline applied to an extracted content fragment.

Every sanitizer is a pure ``str -> str`` function and idempotent, so the
pipeline is an ordered list that callers can reorder or replace per site:

  1. structural removals (BeautifulSoup): site header / nav, share bar,
     image-expand buttons
  2. tail truncations (regex): "Recent Posts" widget, subscribe
     call-to-action, copyright footer

The structural passes only re-serialize the fragment when they actually
removed something; untouched markup is returned byte-for-byte.
"""

import logging
import re
from typing import Callable, List, Sequence

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

Sanitizer = Callable[[str], str]

# Marker Wix puts on the desktop share/like bar of a blog post
SHARE_ACTIONS_MARKER = "post-main-actions-desktop"

_RECENT_POSTS_RE = re.compile(r"Recent Posts[\s\S]*$", re.IGNORECASE)
_SUBSCRIBE_RE = re.compile(r"Stay updated![\s\S]*$", re.IGNORECASE)
_COPYRIGHT_RE = re.compile(r"(?:©|&copy;)\s*20\d{2}[\s\S]*$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Structural removals
# ---------------------------------------------------------------------------

def _attr_contains(value, marker: str) -> bool:
    # class / rel come back from bs4 as lists
    if isinstance(value, (list, tuple)):
        return any(marker in str(v) for v in value)
    return marker in str(value)


def _remove_matching(html: str, find, label: str) -> str:
    """Decompose every element ``find(soup)`` returns; re-serialize if any."""
    if not html:
        return html
    soup = BeautifulSoup(html, "html.parser")
    targets = find(soup)
    if not targets:
        return html
    for element in targets:
        element.decompose()
    logger.debug(f"[CLEAN] Removed {len(targets)} {label} element(s)")
    return str(soup)


def strip_landmarks(html: str) -> str:
    """Remove ``<header>`` and ``<nav>`` blocks with everything inside them."""
    return _remove_matching(
        html,
        lambda soup: soup.find_all(["header", "nav"]),
        "header/nav",
    )


def strip_share_actions(html: str) -> str:
    """Remove ``<section>`` elements carrying the share-bar marker."""
    def find(soup):
        return [
            section for section in soup.find_all("section")
            if any(_attr_contains(v, SHARE_ACTIONS_MARKER) for v in section.attrs.values())
        ]
    return _remove_matching(html, find, "share-action")


def strip_image_expand_buttons(html: str) -> str:
    """Remove ``<button data-hook="image-expand-button">`` controls."""
    return _remove_matching(
        html,
        lambda soup: soup.find_all("button", attrs={"data-hook": "image-expand-button"}),
        "image-expand button",
    )


# ---------------------------------------------------------------------------
# Tail truncations
# ---------------------------------------------------------------------------

def truncate_recent_posts(html: str) -> str:
    """Drop everything from the "Recent Posts" widget onward."""
    return _RECENT_POSTS_RE.sub("", html or "")


def truncate_subscribe(html: str) -> str:
    """Drop everything from the "Stay updated!" subscribe block onward."""
    return _SUBSCRIBE_RE.sub("", html or "")


def truncate_copyright(html: str) -> str:
    """Drop everything from a ``© 20NN`` copyright notice onward."""
    return _COPYRIGHT_RE.sub("", html or "")


DEFAULT_SANITIZERS: List[Sanitizer] = [
    strip_landmarks,
    strip_share_actions,
    strip_image_expand_buttons,
    truncate_recent_posts,
    truncate_subscribe,
    truncate_copyright,
]


def clean_content(html: str, sanitizers: Sequence[Sanitizer] = None) -> str:
    """
    Run a fragment through the sanitizer pipeline.

    Args:
        html: Raw inner HTML of the content root.
        sanitizers: Ordered pipeline; ``DEFAULT_SANITIZERS`` if None.

    Returns:
        Cleaned fragment with surrounding whitespace stripped.
    """
    if sanitizers is None:
        sanitizers = DEFAULT_SANITIZERS
    for sanitize in sanitizers:
        html = sanitize(html)
    return (html or "").strip()
