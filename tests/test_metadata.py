"""
Tests for the metadata resolver: title and date fallback chains,
classification, and the site profile.
"""

from datetime import datetime, timedelta, timezone

import pytest
from conftest import FIXED_NOW, FakeNavigator, run

from wxr_crawler.metadata import (
    SiteProfile,
    classify,
    parse_meta_date,
    resolve_date,
    resolve_title,
)
from wxr_crawler.models import PostType

URL = "https://example.com/post/x"

PUBLISHED = '<meta property="article:published_time" content="2023-03-04T10:20:30.000Z">'
MODIFIED = '<meta property="article:modified_time" content="2023-06-07T08:00:00+02:00">'


def _nav(html):
    nav = FakeNavigator({URL: html})
    run(nav.load(URL))
    return nav


# ====================================================================
# Title
# ====================================================================

class TestResolveTitle:

    def test_document_title_wins(self):
        nav = _nav("<html><head><title>  Doc Title </title></head><body><h1>H1</h1></body></html>")
        assert run(resolve_title(nav)) == "Doc Title"

    def test_h1_fallback(self):
        nav = _nav("<html><head><title>   </title></head><body><h1> Heading </h1></body></html>")
        assert run(resolve_title(nav)) == "Heading"

    def test_no_title_anywhere(self):
        nav = _nav("<html><body><p>text</p></body></html>")
        assert run(resolve_title(nav)) is None


# ====================================================================
# Date
# ====================================================================

class TestResolveDate:

    def test_published_time_wins_over_modified(self, fixed_now):
        nav = _nav(f"<html><head>{MODIFIED}{PUBLISHED}</head></html>")
        assert run(resolve_date(nav, now=fixed_now)) == \
            datetime(2023, 3, 4, 10, 20, 30, tzinfo=timezone.utc)

    def test_modified_time_fallback_converted_to_utc(self, fixed_now):
        nav = _nav(f"<html><head>{MODIFIED}</head></html>")
        assert run(resolve_date(nav, now=fixed_now)) == \
            datetime(2023, 6, 7, 6, 0, 0, tzinfo=timezone.utc)

    def test_unparseable_published_falls_through(self, fixed_now):
        bad = '<meta property="article:published_time" content="last tuesday">'
        nav = _nav(f"<html><head>{bad}{MODIFIED}</head></html>")
        assert run(resolve_date(nav, now=fixed_now)).month == 6

    def test_no_meta_uses_injected_clock(self, fixed_now):
        nav = _nav("<html><head></head></html>")
        assert run(resolve_date(nav, now=fixed_now)) == FIXED_NOW

    def test_no_meta_default_clock_is_now(self):
        nav = _nav("<html><head></head></html>")
        resolved = run(resolve_date(nav))
        assert abs(datetime.now(timezone.utc) - resolved) < timedelta(seconds=5)
        assert resolved.tzinfo is not None


class TestParseMetaDate:

    def test_z_suffix(self):
        assert parse_meta_date("2024-01-31T08:15:00Z") == \
            datetime(2024, 1, 31, 8, 15, tzinfo=timezone.utc)

    def test_naive_taken_as_utc(self):
        assert parse_meta_date("2024-01-31T08:15:00") == \
            datetime(2024, 1, 31, 8, 15, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [
        "2024-01-31T10:15:00+0200",
        "2024-01-31T10:15:00+02:00",
        "2024-01-31T10:15:00+02",
    ])
    def test_offset_forms(self, value):
        assert parse_meta_date(value) == datetime(2024, 1, 31, 8, 15, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value,micro", [
        ("2024-01-31T08:15:00.1Z", 100000),
        ("2024-01-31T08:15:00.12Z", 120000),
        ("2024-01-31T08:15:00.123456789Z", 123456),
    ])
    def test_fraction_of_any_length(self, value, micro):
        assert parse_meta_date(value) == \
            datetime(2024, 1, 31, 8, 15, 0, micro, tzinfo=timezone.utc)

    def test_date_only(self):
        assert parse_meta_date("2024-01-31") == datetime(2024, 1, 31, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, "", "   ", "not a date", "2024-13-45T00:00:00Z"])
    def test_invalid(self, value):
        assert parse_meta_date(value) is None


# ====================================================================
# Classification
# ====================================================================

class TestClassify:

    def test_post(self):
        assert classify("https://example.com/post/a") == (PostType.POST, ())

    def test_locale_post_gets_locale_category(self):
        assert classify("https://example.com/es/post/a") == (PostType.POST, ("Spanish",))

    def test_page(self):
        assert classify("https://example.com/about") == (PostType.PAGE, ())

    def test_locale_page_has_no_category(self):
        assert classify("https://example.com/es/sobre") == (PostType.PAGE, ())

    def test_segment_match_not_substring(self):
        assert classify("https://example.com/postcards") == (PostType.PAGE, ())


class TestSiteProfile:

    def test_seed_urls(self):
        assert SiteProfile().seed_urls("https://example.com/") == [
            "https://example.com",
            "https://example.com/es",
            "https://example.com/blog",
            "https://example.com/es/blog",
        ]

    def test_listing(self):
        profile = SiteProfile()
        assert profile.is_listing("https://example.com/blog")
        assert profile.is_listing("https://example.com/es/blog")
        assert not profile.is_listing("https://example.com/blog/page/2")
        assert not profile.is_listing("https://example.com/fr/blog")

    def test_locale_root(self):
        profile = SiteProfile()
        assert profile.is_locale_root("https://example.com/es")
        assert not profile.is_locale_root("https://example.com/es/blog")
        assert not profile.is_locale_root("https://example.com/estudio")

    def test_custom_profile(self):
        profile = SiteProfile(post_segment="articles", locales={"fr": "French"})
        assert classify("https://example.com/fr/articles/x", profile) == (PostType.POST, ("French",))
