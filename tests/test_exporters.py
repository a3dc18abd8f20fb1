"""
Tests for the Markdown and image exporters.
"""

import json
from unittest.mock import MagicMock

import requests
from conftest import make_item

from wxr_crawler.image_exporter import (
    collect_images,
    download_images,
    image_filename,
)
from wxr_crawler.markdown_exporter import (
    build_front_matter,
    render_markdown,
    write_markdown,
)
from wxr_crawler.models import PostType


# ====================================================================
# Markdown
# ====================================================================

class TestMarkdown:

    def test_front_matter(self):
        item = make_item(title='Detox "Reset" Week', categories=("Spanish",))
        assert build_front_matter(item) == (
            "---\n"
            'title: "Detox \\"Reset\\" Week"\n'
            'slug: "seven-day-detox"\n'
            'date: "2024-01-31T08:15:00.123000+00:00"\n'
            'url: "https://example.com/post/seven-day-detox"\n'
            'type: "post"\n'
            'categories: ["Spanish"]\n'
            "---\n"
        )

    def test_body_follows_front_matter(self):
        item = make_item(body_html="<p>Body</p>", post_type=PostType.PAGE)
        text = render_markdown(item)
        assert text.endswith("---\n\n<p>Body</p>\n")
        assert 'type: "page"' in text

    def test_write_markdown(self, tmp_path):
        items = [make_item(), make_item(slug="other", title="Other")]
        paths = write_markdown(items, tmp_path / "md")
        assert [p.rsplit("/", 1)[-1] for p in paths] == ["seven-day-detox.md", "other.md"]
        assert (tmp_path / "md" / "other.md").read_text(encoding="utf-8").startswith("---\n")

    def test_slug_collision_overwrites(self, tmp_path, caplog):
        items = [make_item(title="First"), make_item(title="Second")]
        write_markdown(items, tmp_path)
        content = (tmp_path / "seven-day-detox.md").read_text(encoding="utf-8")
        assert 'title: "Second"' in content
        assert "Overwriting" in caplog.text


# ====================================================================
# Images
# ====================================================================

BODY = (
    '<p><img src="https://static.wixstatic.com/media/a.png">'
    '<img src="/media/b.JPEG">'
    '<img src="https://static.wixstatic.com/media/a.png">'
    '<img src="data:image/gif;base64,AAAA">'
    '<img src="https://static.wixstatic.com/media/noext"></p>'
)


def _response(content=b"img", status=200):
    resp = MagicMock()
    resp.content = content
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status}")
    return resp


class TestImages:

    def test_collect_images_absolute_deduplicated(self):
        item = make_item(body_html=BODY)
        assert collect_images(item) == [
            "https://static.wixstatic.com/media/a.png",
            "https://example.com/media/b.JPEG",
            "https://static.wixstatic.com/media/noext",
        ]

    def test_image_filename(self):
        assert image_filename("slug", 0, "https://x.com/a.png") == "slug-0.png"
        assert image_filename("slug", 1, "https://x.com/b.JPEG?w=10") == "slug-1.jpeg"
        assert image_filename("slug", 2, "https://x.com/noext") == "slug-2.jpg"

    def test_download_images_writes_files_and_manifest(self, tmp_path):
        session = MagicMock()
        session.get.side_effect = [_response(b"A"), _response(status=404), _response(b"C")]
        item = make_item(body_html=BODY)

        manifest_path = download_images([item], tmp_path, session=session)

        item_dir = tmp_path / "seven-day-detox"
        assert (item_dir / "seven-day-detox-0.png").read_bytes() == b"A"
        assert not (item_dir / "seven-day-detox-1.jpeg").exists()
        assert (item_dir / "seven-day-detox-2.jpg").read_bytes() == b"C"

        with open(manifest_path, encoding="utf-8") as f:
            manifest = json.load(f)
        assert manifest == [{
            "title": "Seven Day Detox",
            "slug": "seven-day-detox",
            "images": collect_images(item),
        }]
        session.close.assert_not_called()

    def test_item_without_images_in_manifest(self, tmp_path):
        session = MagicMock()
        download_images([make_item(body_html="<p>none</p>")], tmp_path, session=session)
        manifest = json.loads((tmp_path / "images.json").read_text(encoding="utf-8"))
        assert manifest[0]["images"] == []
        session.get.assert_not_called()
