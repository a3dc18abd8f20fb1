"""
Exceptions
Errors raised outside the crawl loop (configuration and artifact writing).
The crawl loop itself never raises: failures there are logged and skipped.
"""

from typing import Optional


class WxrCrawlerError(Exception):
    """Base class for wxr_crawler errors."""


class ConfigError(WxrCrawlerError, ValueError):
    """Invalid run configuration."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.field:
            return f"Invalid configuration for '{self.field}': {self.message}"
        return f"Invalid configuration: {self.message}"


class ExportError(WxrCrawlerError):
    """An export artifact could not be written."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.message = message
        self.path = path
        super().__init__(f"{message} ({path})" if path else message)
