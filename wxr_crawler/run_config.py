"""
Unified Run Configuration
=========================
Single source of truth for every export-run default.

The CLI, the environment (``WXR_*`` variables, usually from a ``.env``
file) and tests all populate an ``ExportRunConfig``; the crawler's own
``CrawlConfig`` is built *from* it via ``to_crawl_config()``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import urlparse

from .exceptions import ConfigError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canonical defaults: the ONLY place these numbers live
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "base_url": "https://www.detoxretreatscolombia.com",
    "output_dir": "output",
    "timeout_ms": 120_000,           # per navigation attempt
    "max_retries": 3,                # navigation attempts per URL
    "scroll_settle_ms": 4000,        # wait after each listing-page scroll
    "max_scrolls": 50,
    "click_timeout_ms": 2000,        # per disclosure click
    "disclosure_settle_ms": 300,
    "min_content_length": 200,       # chars of cleaned HTML
    "max_path_segments": 4,          # deeper non-post paths are not followed
    "max_pages": None,               # None = crawl until the frontier is empty
    "headless": True,
    "user_agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
    ),
    "write_markdown": False,
    "download_images": False,
    "clean_output": True,            # wipe output_dir before crawling
    "log_level": "INFO",
    "log_file": None,
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class ExportRunConfig:
    """
    Configuration for one crawl-and-export run.

    Populate via:
      - ``ExportRunConfig()``                 → all defaults
      - ``ExportRunConfig(max_pages=50)``     → override one value
      - ``ExportRunConfig.from_cli_args(ns)`` → from argparse Namespace
      - ``ExportRunConfig.from_env()``        → from ``WXR_*`` variables
    """

    # ---- Target ----
    base_url: str = _DEFAULTS["base_url"]
    output_dir: str = _DEFAULTS["output_dir"]

    # ---- Navigation ----
    timeout_ms: int = _DEFAULTS["timeout_ms"]
    max_retries: int = _DEFAULTS["max_retries"]
    headless: bool = _DEFAULTS["headless"]
    user_agent: str = _DEFAULTS["user_agent"]

    # ---- Interaction tuning ----
    scroll_settle_ms: int = _DEFAULTS["scroll_settle_ms"]
    max_scrolls: int = _DEFAULTS["max_scrolls"]
    click_timeout_ms: int = _DEFAULTS["click_timeout_ms"]
    disclosure_settle_ms: int = _DEFAULTS["disclosure_settle_ms"]

    # ---- Crawl limits / content quality ----
    min_content_length: int = _DEFAULTS["min_content_length"]
    max_path_segments: int = _DEFAULTS["max_path_segments"]
    max_pages: Optional[int] = _DEFAULTS["max_pages"]

    # ---- Outputs ----
    write_markdown: bool = _DEFAULTS["write_markdown"]
    download_images: bool = _DEFAULTS["download_images"]
    clean_output: bool = _DEFAULTS["clean_output"]

    # ---- Logging ----
    log_level: str = _DEFAULTS["log_level"]
    log_file: Optional[str] = _DEFAULTS["log_file"]

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """
        Check values that would make the run meaningless.

        Raises:
            ConfigError: On the first invalid field
        """
        url = (self.base_url or "").strip()
        if url and "://" not in url:
            url = "https://" + url
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"must be an absolute http(s) URL, got {self.base_url!r}", "base_url")
        self.base_url = url

        for name in ("timeout_ms", "max_retries", "max_path_segments"):
            if getattr(self, name) < 1:
                raise ConfigError(f"must be >= 1, got {getattr(self, name)}", name)
        for name in ("scroll_settle_ms", "max_scrolls", "click_timeout_ms",
                     "disclosure_settle_ms", "min_content_length"):
            if getattr(self, name) < 0:
                raise ConfigError(f"must be >= 0, got {getattr(self, name)}", name)
        if self.max_pages is not None and self.max_pages < 1:
            raise ConfigError(f"must be >= 1 or unset, got {self.max_pages}", "max_pages")

        level = (self.log_level or "").upper()
        if level not in _LOG_LEVELS:
            raise ConfigError(f"must be one of {', '.join(_LOG_LEVELS)}", "log_level")
        self.log_level = level

    # -----------------------------------------------------------------------
    # Factory helpers
    # -----------------------------------------------------------------------
    @classmethod
    def from_cli_args(cls, args, base: Optional["ExportRunConfig"] = None) -> "ExportRunConfig":
        """
        Build config from an argparse Namespace (``__main__.py``).

        Flags left unset (None) keep the value from ``base``, so environment
        settings survive unless a flag overrides them.
        """
        base = base or cls()

        def pick(attr: str, field_name: str):
            value = getattr(args, attr, None)
            return getattr(base, field_name) if value is None else value

        return cls(
            base_url=pick("url", "base_url"),
            output_dir=pick("output_dir", "output_dir"),
            timeout_ms=pick("timeout", "timeout_ms"),
            max_retries=pick("retries", "max_retries"),
            max_pages=pick("max_pages", "max_pages"),
            headless=False if getattr(args, "headed", False) else base.headless,
            user_agent=base.user_agent,
            scroll_settle_ms=base.scroll_settle_ms,
            max_scrolls=base.max_scrolls,
            click_timeout_ms=base.click_timeout_ms,
            disclosure_settle_ms=base.disclosure_settle_ms,
            min_content_length=base.min_content_length,
            max_path_segments=base.max_path_segments,
            write_markdown=getattr(args, "markdown", False) or base.write_markdown,
            download_images=getattr(args, "images", False) or base.download_images,
            clean_output=False if getattr(args, "no_clean", False) else base.clean_output,
            log_level=pick("log_level", "log_level"),
            log_file=pick("log_file", "log_file"),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ExportRunConfig":
        """
        Build config from ``WXR_<FIELD>`` environment variables.

        e.g. ``WXR_BASE_URL``, ``WXR_MAX_PAGES``, ``WXR_WRITE_MARKDOWN=true``.
        Unset variables keep their defaults.
        """
        environ = os.environ if environ is None else environ
        kwargs = {}
        for name, default in _DEFAULTS.items():
            raw = environ.get(f"WXR_{name.upper()}")
            if raw is None:
                continue
            kwargs[name] = _coerce(name, raw, default)
        return cls(**kwargs)

    # -----------------------------------------------------------------------
    # Converters
    # -----------------------------------------------------------------------
    def to_crawl_config(self):
        """Return a ``CrawlConfig`` populated from this run config."""
        # Import here to avoid circular dependency
        from .crawler import CrawlConfig
        return CrawlConfig(
            base_url=self.base_url,
            max_path_segments=self.max_path_segments,
            max_pages=self.max_pages,
            scroll_settle_ms=self.scroll_settle_ms,
            max_scrolls=self.max_scrolls,
            click_timeout_ms=self.click_timeout_ms,
            disclosure_settle_ms=self.disclosure_settle_ms,
            min_content_length=self.min_content_length,
        )

    # -----------------------------------------------------------------------
    # Logging helper
    # -----------------------------------------------------------------------
    def log_summary(self) -> None:
        """Emit a structured summary to the logger."""
        logger.info("=" * 60)
        logger.info("EXPORT RUN CONFIG")
        logger.info("=" * 60)
        logger.info(f"  Site:             {self.base_url}")
        logger.info(f"  Output Dir:       {self.output_dir}")
        logger.info(f"  Timeout:          {self.timeout_ms}ms x {self.max_retries} attempts")
        logger.info(f"  Max Pages:        {self.max_pages or 'unlimited'}")
        logger.info(f"  Max Path Depth:   {self.max_path_segments} segments")
        logger.info(f"  Min Content:      {self.min_content_length} chars")
        logger.info(f"  Headless:         {self.headless}")
        if self.write_markdown:
            logger.info(f"  Markdown:         enabled")
        if self.download_images:
            logger.info(f"  Images:           enabled")
        if not self.clean_output:
            logger.info(f"  Clean Output:     no (previous files kept)")
        logger.info("=" * 60)


def _coerce(name: str, raw: str, default):
    """Convert an environment string to the type of the field's default."""
    raw = raw.strip()
    if isinstance(default, bool):
        lowered = raw.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ConfigError(f"expected a boolean, got {raw!r}", name)
    if isinstance(default, int) or name == "max_pages":
        if name == "max_pages" and raw == "":
            return None
        try:
            return int(raw)
        except ValueError:
            raise ConfigError(f"expected an integer, got {raw!r}", name) from None
    if name == "log_file" and raw == "":
        return None
    return raw
