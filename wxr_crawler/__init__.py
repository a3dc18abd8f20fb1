"""
WXR Crawler Package
Crawls a Wix site with a headless browser and exports its pages and blog
posts as a WordPress eXtended RSS (WXR) import file.

CLI Usage:
    python -m wxr_crawler [base_url] [options]

    Options:
        --output-dir    Output directory (default: output)
        --timeout       Navigation timeout per attempt in ms (default: 120000)
        --retries       Navigation attempts per URL (default: 3)
        --max-pages     Stop after this many URLs (default: unlimited)
        --markdown      Also write one Markdown file per item
        --images        Also download referenced images
        --no-clean      Keep previous output
        --headed        Show the browser window
        --log-level     Logging level (default: INFO)
        --log-file      Also log to a file
"""

from .crawler import FrontierCrawler, CrawlConfig, run_export
from .exceptions import WxrCrawlerError, ConfigError, ExportError
from .extractor import ContentExtractor, ExtractedContent
from .metadata import SiteProfile, classify, resolve_date, resolve_title
from .models import CrawlItem, CrawlResult, CrawlSession, CrawlStats, PostType
from .navigator import Navigator, PlaywrightNavigator
from .run_config import ExportRunConfig
from .sanitizers import DEFAULT_SANITIZERS, clean_content
from .utils import URLNormalizer, slugify_title
from .wxr_exporter import ExportSiteInfo, build_wxr, render_wxr, write_wxr
from . import interaction_policy

__all__ = [
    'FrontierCrawler',
    'CrawlConfig',
    'run_export',
    'WxrCrawlerError',
    'ConfigError',
    'ExportError',
    'ContentExtractor',
    'ExtractedContent',
    'SiteProfile',
    'classify',
    'resolve_date',
    'resolve_title',
    'CrawlItem',
    'CrawlResult',
    'CrawlSession',
    'CrawlStats',
    'PostType',
    'Navigator',
    'PlaywrightNavigator',
    'ExportRunConfig',
    'DEFAULT_SANITIZERS',
    'clean_content',
    'URLNormalizer',
    'slugify_title',
    # Exporters
    'ExportSiteInfo',
    'build_wxr',
    'render_wxr',
    'write_wxr',
    'interaction_policy',
]

__version__ = '1.0.0'
