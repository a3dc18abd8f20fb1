#!/usr/bin/env python3
"""
Command-line entry point
========================
Crawl a Wix site and write a WordPress import file.

All configuration flows through ``ExportRunConfig``: defaults, then
``WXR_*`` environment variables (a ``.env`` file is loaded first), then
command-line flags.

Run with: python -m wxr_crawler [base_url] [options]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .exceptions import ConfigError, ExportError
from .run_config import ExportRunConfig

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s | %(levelname)s | %(message)s'
LOG_DATEFMT = '%H:%M:%S'

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Console logging (plus an optional log file) in the crawler's format."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='wxr_crawler',
        description='Crawl a Wix site and export its pages and posts as a WordPress WXR file',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m wxr_crawler                                   # WXR_BASE_URL or the default site
  python -m wxr_crawler https://www.example.com
  python -m wxr_crawler https://www.example.com --markdown --images
  python -m wxr_crawler https://www.example.com --max-pages 20 --log-level DEBUG
        """
    )
    # Flags default to None so environment values survive
    parser.add_argument('url', nargs='?', help='Site origin to crawl')
    parser.add_argument('--output-dir', type=str, help='Output directory (default: output)')
    parser.add_argument('--timeout', type=int, help='Navigation timeout per attempt in ms (default: 120000)')
    parser.add_argument('--retries', type=int, help='Navigation attempts per URL (default: 3)')
    parser.add_argument('--max-pages', type=int, help='Stop after visiting this many URLs (default: unlimited)')
    parser.add_argument('--markdown', action='store_true', help='Also write <slug>.md files')
    parser.add_argument('--images', action='store_true', help='Also download images referenced by items')
    parser.add_argument('--no-clean', action='store_true', help='Keep the previous contents of the output directory')
    parser.add_argument('--headed', action='store_true', help='Show the browser window')
    parser.add_argument('--log-level', type=str, help='DEBUG, INFO, WARNING or ERROR (default: INFO)')
    parser.add_argument('--log-file', type=str, help='Also write logs to this file')
    return parser


def print_summary(stats: dict, artifacts: dict) -> None:
    """Print crawl summary."""
    print("\n" + "=" * 65)
    print("EXPORT COMPLETE")
    print("=" * 65)
    print(f"  Items exported:      {stats.get('items_collected', 0)}")
    print(f"  Pages visited:       {stats.get('pages_visited', 0)}")
    print(f"  Listing pages:       {stats.get('listing_pages', 0)}")
    print(f"  Navigation failures: {stats.get('navigation_failures', 0)}")
    skipped = (
        stats.get('skipped_no_title', 0)
        + stats.get('skipped_thin_content', 0)
        + stats.get('skipped_extraction_error', 0)
    )
    if skipped:
        print(f"  Pages skipped:       {skipped} (no title / thin content / no content root)")
    if stats.get('slug_collisions', 0):
        print(f"  Slug collisions:     {stats.get('slug_collisions', 0)}")
    print(f"  Total time:          {stats.get('elapsed_time', 0):.1f}s")
    for name, path in artifacts.items():
        print(f"  Exported ({name}):".ljust(23) + f"{path}")
    print("=" * 65)


def main(argv: Optional[List[str]] = None) -> int:
    """Parse argv, build ExportRunConfig, run. Returns the exit code."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        cfg = ExportRunConfig.from_cli_args(args, base=ExportRunConfig.from_env())
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(cfg.log_level, cfg.log_file)
    cfg.log_summary()

    from .crawler import run_export

    def progress_cb(visited_count, current_url, stats):
        limit = cfg.max_pages or '-'
        print(f"[Page {visited_count}/{limit}] {current_url[:70]}")

    try:
        result, artifacts = asyncio.run(run_export(cfg, progress_callback=progress_cb))
    except ExportError as e:
        logger.error(f"Export failed: {e}")
        return EXIT_FAILURE

    print_summary(result.stats, artifacts)
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
