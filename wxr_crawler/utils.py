"""
Utility Functions
URL normalization, path helpers and slug generation.
"""

import logging
import re
from typing import List, Optional
from urllib.parse import urljoin, urlparse, urlunparse

from slugify import slugify

logger = logging.getLogger(__name__)


class URLNormalizer:
    """
    Canonicalizes URLs so the crawl frontier can use them as keys.

    The canonical form drops fragments, query strings and trailing slashes,
    and only URLs on the base origin survive normalization.
    """

    # File extensions to skip (non-HTML resources)
    SKIP_EXTENSIONS = {
        '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.svg', '.webp', '.ico',
        '.pdf', '.doc', '.docx', '.xls', '.xlsx', '.ppt', '.pptx',
        '.zip', '.rar', '.tar', '.gz', '.7z',
        '.mp3', '.mp4', '.avi', '.mov', '.wmv', '.flv', '.webm',
        '.css', '.js', '.json', '.xml', '.rss', '.atom',
        '.woff', '.woff2', '.ttf', '.eot', '.otf'
    }

    _IGNORED_PREFIXES = ('javascript:', 'mailto:', 'tel:', 'data:', '#')

    def __init__(self, base_url: str):
        """
        Initialize the normalizer for one site.

        Args:
            base_url: Origin of the crawled site, e.g. ``https://example.com``

        Raises:
            ValueError: If ``base_url`` is not an absolute http(s) URL
        """
        parsed = urlparse((base_url or '').strip())
        if parsed.scheme.lower() not in ('http', 'https') or not parsed.netloc:
            raise ValueError(f"Base URL must be an absolute http(s) URL: {base_url!r}")

        self.scheme = parsed.scheme.lower()
        self.netloc = parsed.netloc.lower()
        self.origin = f"{self.scheme}://{self.netloc}"

    def normalize(self, url: str) -> Optional[str]:
        """
        Normalize a URL for frontier membership tests.

        Relative URLs are resolved against the origin, not the page they
        were found on.

        Args:
            url: The URL to normalize (absolute or relative)

        Returns:
            Canonical URL string, or None if invalid or out of origin
        """
        if not url:
            return None

        url = url.strip()
        if not url or url.lower().startswith(self._IGNORED_PREFIXES):
            return None

        try:
            url = urljoin(self.origin + '/', url)
        except ValueError:
            return None
        if not self.is_in_origin(url):
            return None

        parsed = urlparse(url)
        scheme = parsed.scheme.lower()
        netloc = parsed.netloc.lower()

        # Collapse duplicate slashes, then drop the trailing one
        path = re.sub(r'/+', '/', parsed.path or '')
        path = path.rstrip('/')

        lower_path = path.lower()
        for ext in self.SKIP_EXTENSIONS:
            if lower_path.endswith(ext):
                return None

        return urlunparse((scheme, netloc, path, '', '', ''))

    def is_in_origin(self, url: str) -> bool:
        """Check whether an absolute URL lives on the crawled origin."""
        try:
            parsed = urlparse(url)
        except ValueError:
            return False
        return (
            parsed.scheme.lower() == self.scheme
            and parsed.netloc.lower() == self.netloc
        )


def path_segments(url: str) -> List[str]:
    """Return the non-empty path segments of a URL."""
    return [s for s in urlparse(url).path.split('/') if s]


def slugify_title(title: str) -> str:
    """Lowercase ASCII slug for a title (also used for category keys)."""
    return slugify(title or '', lowercase=True, separator='-')


def category_key(label: str) -> str:
    """Normalized taxonomy key ("nicename") for a category label."""
    return slugify_title(label)
