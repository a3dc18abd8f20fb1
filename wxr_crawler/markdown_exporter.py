"""
Markdown Exporter
Writes one ``<slug>.md`` file per crawled item: front matter plus the cleaned
HTML body (Markdown renderers pass inline HTML through).
"""

import json
import logging
from pathlib import Path
from typing import Iterable, List, Union

from .exceptions import ExportError
from .models import CrawlItem

logger = logging.getLogger(__name__)


def _yaml_scalar(value) -> str:
    # JSON strings are valid double-quoted YAML scalars
    return json.dumps(value, ensure_ascii=False)


def build_front_matter(item: CrawlItem) -> str:
    """YAML front matter block for an item, closing fence included."""
    lines = [
        "---",
        f"title: {_yaml_scalar(item.title)}",
        f"slug: {_yaml_scalar(item.slug)}",
        f"date: {_yaml_scalar(item.iso_date)}",
        f"url: {_yaml_scalar(item.url)}",
        f"type: {_yaml_scalar(item.post_type.value)}",
        f"categories: {_yaml_scalar(list(item.categories))}",
        "---",
    ]
    return "\n".join(lines) + "\n"


def render_markdown(item: CrawlItem) -> str:
    """Front matter followed by the body."""
    return f"{build_front_matter(item)}\n{item.body_html}\n"


def write_markdown(items: Iterable[CrawlItem], output_dir: Union[str, Path]) -> List[str]:
    """
    Write every item to ``output_dir/<slug>.md``.

    Items sharing a slug overwrite each other in discovery order.

    Args:
        items: Crawled items.
        output_dir: Target directory (created if missing).

    Returns:
        Paths written, in write order

    Raises:
        ExportError: If a file cannot be written
    """
    output_dir = Path(output_dir)
    written: List[str] = []
    seen = set()
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        for item in items:
            path = output_dir / f"{item.slug}.md"
            if item.slug in seen:
                logger.warning(f"[EXPORT] Overwriting {path.name} with {item.url}")
            seen.add(item.slug)
            path.write_text(render_markdown(item), encoding="utf-8")
            written.append(str(path))
    except OSError as e:
        raise ExportError(f"Could not write markdown export: {e}", str(output_dir)) from e
    return written
