"""
Exception types raised by the sitemap generator.
"""

from typing import Optional


class SitemapError(Exception):
    """Base class for all sitemap generator errors."""


class ConfigurationError(SitemapError, ValueError):
    """Invalid options, template/field mismatch, or missing row fields."""


class DataSourceError(SitemapError):
    """The row source failed to return a page of results."""


class GeneratorStateError(SitemapError):
    """Operation not allowed in the generator's current state."""


class SitemapWriteError(SitemapError, OSError):
    """A sitemap or index file could not be written."""

    def __init__(self, message: str, filename: Optional[str] = None):
        super().__init__(message)
        self.filename = filename


class OutputDirectoryError(SitemapWriteError):
    """The output directory could not be created; no file can be written."""
