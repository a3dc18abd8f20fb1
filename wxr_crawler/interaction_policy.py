"""
Interaction Policy
==================
Forces hidden page content into a crawlable state before extraction.

Responsibilities:
  1. **scroll_to_exhaustion** — keep scrolling an infinite-scroll listing until
     the document height stops growing
  2. **expand_disclosures**   — click FAQ accordions / collapsed sections, then
     force ``aria-hidden="true"`` blocks visible

Both passes are best-effort: every failure is logged and swallowed, one
element's failure never stops the others.

This module does NOT own the browser lifecycle or page navigation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .navigator import Navigator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Page scripts
# ---------------------------------------------------------------------------
SCROLL_HEIGHT_JS = "document.body.scrollHeight"
SCROLL_TO_BOTTOM_JS = "window.scrollTo(0, document.body.scrollHeight)"
REVEAL_HIDDEN_JS = """() => {
    const nodes = document.querySelectorAll('[aria-hidden="true"]');
    nodes.forEach((n) => n.setAttribute('aria-hidden', 'false'));
    return nodes.length;
}"""


# ---------------------------------------------------------------------------
# Selector catalogue: collapsed disclosure controls (Wix FAQ widgets)
# ---------------------------------------------------------------------------
DEFAULT_DISCLOSURE_SELECTORS: List[str] = [
    '[data-hook="expandIcon"]',
    '.sNKyLaH',
]


# ---------------------------------------------------------------------------
# Data containers
# ---------------------------------------------------------------------------
@dataclass
class ClickOutcome:
    """Result of one disclosure click."""
    selector: str
    index: int
    ok: bool


@dataclass
class ExpansionResult:
    """Returned by ``expand_disclosures`` to the caller."""
    found: int = 0
    expanded: int = 0
    failed: int = 0
    revealed: int = 0
    outcomes: List[ClickOutcome] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

async def scroll_to_exhaustion(
    navigator: Navigator,
    *,
    settle_ms: int = 4000,
    max_scrolls: int = 50,
) -> int:
    """
    Scroll to the bottom until the page height is stable.

    Each round scrolls to the end of the document, waits ``settle_ms`` for the
    next batch to load and re-measures; two consecutive equal heights end the
    loop.

    Args:
        navigator:   Navigator with the listing page loaded.
        settle_ms:   Pause after each scroll so lazy content can render.
        max_scrolls: Hard cap on scroll rounds.

    Returns:
        Last measured document height (0 if it could not be measured).
    """
    try:
        last_height = await navigator.evaluate(SCROLL_HEIGHT_JS)
    except Exception as e:
        logger.debug(f"[SCROLL] Could not measure page height: {e}")
        return 0

    for i in range(max_scrolls):
        try:
            await navigator.evaluate(SCROLL_TO_BOTTOM_JS)
            await navigator.wait(settle_ms)
            new_height = await navigator.evaluate(SCROLL_HEIGHT_JS)
        except Exception as e:
            logger.debug(f"[SCROLL] Scroll round {i + 1} failed: {e}")
            break

        if new_height == last_height:
            break
        last_height = new_height
        logger.info(f"[SCROLL] Scrolled, new height: {new_height}")
    else:
        logger.info(f"[SCROLL] Stopped after {max_scrolls} rounds (height still growing)")

    return last_height or 0


async def expand_disclosures(
    navigator: Navigator,
    *,
    selectors: Optional[List[str]] = None,
    click_timeout_ms: int = 2000,
    settle_ms: int = 300,
) -> ExpansionResult:
    """
    Open every collapsed disclosure element and un-hide ARIA-hidden blocks.

    Args:
        navigator:        Navigator with the page loaded.
        selectors:        Disclosure selectors (default catalogue if None).
        click_timeout_ms: Timeout for each individual click.
        settle_ms:        Pause after a successful click.

    Returns:
        ``ExpansionResult`` with one ``ClickOutcome`` per element.
    """
    if selectors is None:
        selectors = DEFAULT_DISCLOSURE_SELECTORS

    result = ExpansionResult()

    # One grouped query: an element matching several selectors is clicked once
    selector = ", ".join(selectors)
    elements = []
    if selector:
        try:
            elements = await navigator.query_all(selector)
        except Exception as e:
            logger.debug(f"[EXPAND] Selector {selector!r} failed: {e}")

    for index, element in enumerate(elements):
        result.found += 1
        ok = await _try_click(navigator, element, click_timeout_ms, settle_ms)
        result.outcomes.append(ClickOutcome(selector=selector, index=index, ok=ok))
        if ok:
            result.expanded += 1
        else:
            result.failed += 1

    try:
        result.revealed = int(await navigator.evaluate(REVEAL_HIDDEN_JS) or 0)
    except Exception as e:
        logger.debug(f"[EXPAND] Could not reveal aria-hidden blocks: {e}")

    if result.found or result.revealed:
        logger.info(
            f"[EXPAND] {result.expanded}/{result.found} disclosures opened, "
            f"{result.revealed} hidden blocks revealed"
        )
    return result


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

async def _try_click(navigator: Navigator, element, timeout_ms: int, settle_ms: int) -> bool:
    """One bounded click; exceptions are logged, never raised."""
    try:
        clicked = await navigator.click(element, timeout_ms)
        if clicked and settle_ms:
            await navigator.wait(settle_ms)
        return bool(clicked)
    except Exception as e:
        logger.debug(f"[EXPAND] Click failed: {e}")
        return False
