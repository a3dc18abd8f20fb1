"""
Tests for the content extractor (root fallback chain + length threshold).
"""

from conftest import FILLER, FakeNavigator, run

from wxr_crawler.extractor import SKIP_ERROR, SKIP_THIN, ContentExtractor

URL = "https://example.com/post/x"


def _extract(html, **kwargs):
    nav = FakeNavigator({URL: html})
    run(nav.load(URL))
    return run(ContentExtractor(**kwargs).extract_with_reason(nav, URL))


class TestRootFallback:

    def test_article_preferred(self):
        html = f"<body><main><p>main</p></main><article><p>{FILLER}</p></article></body>"
        content, reason = _extract(html)
        assert reason is None
        assert content.source == "article"
        assert content.html == f"<p>{FILLER}</p>"

    def test_main_fallback(self):
        """No <article>, but <main> with 300 characters is extracted."""
        html = f"<html><body><main>{'m' * 300}</main></body></html>"
        content, _ = _extract(html)
        assert content is not None
        assert content.source == "main"
        assert len(content.html) == 300

    def test_body_fallback_thin_content_discarded(self):
        """Only 50 characters in <body>: nothing is extracted."""
        content, reason = _extract(f"<html><body>{'b' * 50}</body></html>")
        assert content is None
        assert reason == SKIP_THIN

    def test_body_fallback_accepted_when_long_enough(self, caplog):
        content, _ = _extract(f"<html><body><p>{FILLER}</p></body></html>")
        assert content.source == "body"
        assert "falling back to <body>" in caplog.text

    def test_no_root_is_an_error_skip(self):
        nav = FakeNavigator({URL: "<p>x</p>"})
        run(nav.load(URL))
        extractor = ContentExtractor(root_selectors=("article",))
        content, reason = run(extractor.extract_with_reason(nav, URL))
        assert content is None
        assert reason == SKIP_ERROR

    def test_navigator_error_is_swallowed(self):
        """No page loaded: the fake raises, the extractor returns None."""
        nav = FakeNavigator({})
        assert run(ContentExtractor().extract(nav, URL)) is None


class TestLengthBoundary:

    def test_199_characters_discarded(self):
        content, reason = _extract(f"<article>{'x' * 199}</article>")
        assert content is None
        assert reason == SKIP_THIN

    def test_200_characters_accepted(self):
        content, _ = _extract(f"<article>{'x' * 200}</article>")
        assert content is not None
        assert len(content.html) == 200

    def test_threshold_measured_after_cleaning(self):
        """Junk removed by the sanitizers does not count towards the minimum."""
        html = f"<article><nav>{'n' * 500}</nav>{'x' * 150}</article>"
        content, reason = _extract(html)
        assert content is None
        assert reason == SKIP_THIN

    def test_custom_threshold(self):
        content, _ = _extract("<article>short</article>", min_content_length=5)
        assert content.html == "short"
