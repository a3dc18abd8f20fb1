"""
Image Exporter
Downloads the images referenced by crawled items and writes a manifest.

Layout::

    <out_dir>/
        images.json
        <slug>/<slug>-0.jpg
        <slug>/<slug>-1.png
"""

import json
import logging
import posixpath
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from .exceptions import ExportError
from .models import CrawlItem
from .navigator import DEFAULT_USER_AGENT

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_EXTENSION = ".jpg"
DOWNLOAD_TIMEOUT_S = 30
MANIFEST_NAME = "images.json"


def collect_images(item: CrawlItem) -> List[str]:
    """
    Absolute http(s) ``img[src]`` URLs in the item body, document order,
    duplicates removed.
    """
    soup = BeautifulSoup(item.body_html or "", "html.parser")
    images: List[str] = []
    seen = set()
    for img in soup.find_all("img", src=True):
        src = urljoin(item.url, img["src"].strip())
        if urlparse(src).scheme not in ("http", "https"):
            continue
        if src in seen:
            continue
        seen.add(src)
        images.append(src)
    return images


def image_filename(slug: str, index: int, url: str) -> str:
    """``<slug>-<index><ext>``; extension from the URL path, ``.jpg`` if none."""
    ext = posixpath.splitext(urlparse(url).path)[1] or DEFAULT_IMAGE_EXTENSION
    return f"{slug}-{index}{ext.lower()}"


def _create_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({
        'User-Agent': DEFAULT_USER_AGENT,
        'Accept': 'image/avif,image/webp,image/apng,image/*,*/*;q=0.8',
    })
    return session


def download_image(session: requests.Session, url: str, path: Path,
                   timeout: float = DOWNLOAD_TIMEOUT_S) -> bool:
    """Fetch one image to ``path``. Failures are logged, never raised."""
    try:
        response = session.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning(f"[IMAGES] Failed to download {url}: {e}")
        return False
    try:
        path.write_bytes(response.content)
    except OSError as e:
        logger.warning(f"[IMAGES] Could not save {url} to {path}: {e}")
        return False
    return True


def download_images(
    items: Iterable[CrawlItem],
    out_dir: Union[str, Path],
    session: Optional[requests.Session] = None,
    timeout: float = DOWNLOAD_TIMEOUT_S,
) -> str:
    """
    Download every item's images into ``out_dir/<slug>/`` and write the
    ``images.json`` manifest.

    Args:
        items: Crawled items.
        out_dir: Target directory (created if missing).
        session: requests session to reuse; one is created if None.
        timeout: Per-request timeout in seconds.

    Returns:
        Path of the manifest file

    Raises:
        ExportError: If the output directory or manifest cannot be written
    """
    out_dir = Path(out_dir)
    own_session = session is None
    if own_session:
        session = _create_session()

    manifest: List[Dict] = []
    downloaded = failed = 0
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        for item in items:
            images = collect_images(item)
            item_dir = out_dir / item.slug
            if images:
                item_dir.mkdir(parents=True, exist_ok=True)
            for i, url in enumerate(images):
                if download_image(session, url, item_dir / image_filename(item.slug, i, url), timeout):
                    downloaded += 1
                else:
                    failed += 1
            manifest.append({'title': item.title, 'slug': item.slug, 'images': images})
            logger.info(f"[IMAGES] {item.title} -> {len(images)} images")

        manifest_path = out_dir / MANIFEST_NAME
        with open(manifest_path, 'w', encoding='utf-8') as f:
            json.dump(manifest, f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise ExportError(f"Could not write image export: {e}", str(out_dir)) from e
    finally:
        if own_session:
            session.close()

    logger.info(f"[IMAGES] {downloaded} images downloaded, {failed} failed")
    return str(manifest_path)
