"""
WXR Exporter
============
Serializes crawled items into a WordPress eXtended RSS (WXR 1.2) document
that the WordPress importer accepts.

Body markup goes into ``<content:encoded>`` as CDATA so the importer gets the
HTML verbatim.  CDATA cannot contain ``]]>``; that sequence is rewritten to
``]]&gt;`` before wrapping.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import timezone
from email.utils import format_datetime
from pathlib import Path
from typing import Iterable, Optional, Union

from lxml import etree

from .exceptions import ExportError
from .models import CrawlItem
from .utils import category_key

logger = logging.getLogger(__name__)

WXR_VERSION = "1.2"

NSMAP = {
    "excerpt": "http://wordpress.org/export/1.2/excerpt/",
    "content": "http://purl.org/rss/1.0/modules/content/",
    "wfw": "http://wellformedweb.org/CommentAPI/",
    "dc": "http://purl.org/dc/elements/1.1/",
    "wp": "http://wordpress.org/export/1.2/",
}

# Characters XML 1.0 does not allow anywhere in a document
_INVALID_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


@dataclass
class ExportAuthor:
    """The single synthetic author every item is attributed to."""
    author_id: int = 1
    login: str = "admin"
    email: str = "admin@example.com"
    display_name: str = "Admin"
    first_name: str = ""
    last_name: str = ""


@dataclass
class ExportSiteInfo:
    """Channel-level metadata of the export document."""
    base_url: str
    title: str = "Wix Export Import"
    description: str = "Migrated content from Wix"
    author: Optional[ExportAuthor] = None

    def __post_init__(self):
        if self.author is None:
            self.author = ExportAuthor()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _q(prefix: str, tag: str) -> str:
    return f"{{{NSMAP[prefix]}}}{tag}"


def _xml_safe(text) -> str:
    return _INVALID_XML_CHARS.sub("", "" if text is None else str(text))


def cdata(text: str) -> etree.CDATA:
    """CDATA section for arbitrary markup (``]]>`` made safe)."""
    return etree.CDATA(_xml_safe(text).replace("]]>", "]]&gt;"))


def _sub(parent, tag: str, text="", prefix: Optional[str] = None, **attrs):
    el = etree.SubElement(parent, _q(prefix, tag) if prefix else tag, **attrs)
    if text is not None:
        el.text = text if isinstance(text, etree.CDATA) else _xml_safe(text)
    return el


def format_pub_date(item: CrawlItem) -> str:
    """RFC-822 date in GMT, e.g. ``Wed, 31 Jan 2024 08:15:00 GMT``."""
    return format_datetime(item.date.astimezone(timezone.utc), usegmt=True)


def format_post_date(item: CrawlItem) -> str:
    """``YYYY-MM-DD HH:MM:SS`` in UTC, fractional seconds dropped."""
    return item.date.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


# ---------------------------------------------------------------------------
# Document builder
# ---------------------------------------------------------------------------

def build_wxr(items: Iterable[CrawlItem], site: ExportSiteInfo) -> etree._Element:
    """
    Build the ``<rss>`` element tree.

    Args:
        items: Crawled items, in the order they should be imported.
        site: Channel metadata.

    Returns:
        Root ``<rss>`` element
    """
    rss = etree.Element("rss", nsmap=NSMAP, version="2.0")
    channel = etree.SubElement(rss, "channel")

    _sub(channel, "title", site.title)
    _sub(channel, "link", site.base_url)
    _sub(channel, "description", site.description)
    _sub(channel, "wxr_version", WXR_VERSION, prefix="wp")
    _sub(channel, "base_site_url", site.base_url, prefix="wp")
    _sub(channel, "base_blog_url", site.base_url, prefix="wp")

    author = site.author
    author_el = _sub(channel, "author", None, prefix="wp")
    _sub(author_el, "author_id", str(author.author_id), prefix="wp")
    _sub(author_el, "author_login", author.login, prefix="wp")
    _sub(author_el, "author_email", author.email, prefix="wp")
    _sub(author_el, "author_display_name", cdata(author.display_name), prefix="wp")
    _sub(author_el, "author_first_name", author.first_name, prefix="wp")
    _sub(author_el, "author_last_name", author.last_name, prefix="wp")

    count = 0
    for item in items:
        _append_item(channel, item, author.login)
        count += 1

    logger.info(f"[EXPORT] WXR document built with {count} items")
    return rss


def _append_item(channel, item: CrawlItem, creator: str) -> None:
    el = etree.SubElement(channel, "item")
    post_date = format_post_date(item)

    _sub(el, "title", item.title)
    _sub(el, "link", item.url)
    _sub(el, "pubDate", format_pub_date(item))
    _sub(el, "creator", creator, prefix="dc")
    _sub(el, "guid", item.url, isPermaLink="false")
    _sub(el, "description", "")
    _sub(el, "encoded", cdata(item.body_html), prefix="content")
    _sub(el, "encoded", cdata(""), prefix="excerpt")

    _sub(el, "post_id", str(item.post_id), prefix="wp")
    _sub(el, "post_date", post_date, prefix="wp")
    _sub(el, "post_date_gmt", post_date, prefix="wp")
    _sub(el, "comment_status", "closed", prefix="wp")
    _sub(el, "ping_status", "closed", prefix="wp")
    _sub(el, "post_name", item.slug, prefix="wp")
    _sub(el, "status", "publish", prefix="wp")
    _sub(el, "post_parent", "0", prefix="wp")
    _sub(el, "menu_order", "0", prefix="wp")
    _sub(el, "post_type", item.post_type.value, prefix="wp")
    _sub(el, "post_password", "", prefix="wp")
    _sub(el, "is_sticky", "0", prefix="wp")

    for label in item.categories:
        _sub(el, "category", label, domain="category", nicename=category_key(label))


def render_wxr(items: Iterable[CrawlItem], site: ExportSiteInfo) -> bytes:
    """Serialized, pretty-printed UTF-8 document with XML declaration."""
    return etree.tostring(
        build_wxr(items, site),
        xml_declaration=True,
        encoding="UTF-8",
        pretty_print=True,
    )


def write_wxr(
    items: Iterable[CrawlItem],
    site: ExportSiteInfo,
    path: Union[str, Path],
) -> str:
    """
    Write the export document to ``path``.

    Returns:
        Path written, as a string

    Raises:
        ExportError: If the file cannot be written
    """
    path = Path(path)
    data = render_wxr(items, site)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as e:
        raise ExportError(f"Could not write WXR export: {e}", str(path)) from e
    logger.info(f"[EXPORT] WXR written to {path} ({len(data):,} bytes)")
    return str(path)
