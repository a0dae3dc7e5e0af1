"""Exception hierarchy for the scraper pipeline."""

from __future__ import annotations


class ScraperError(Exception):
    """Base class for every error raised by ``backend.scraper``."""


class NavigationError(ScraperError):
    """The browser could not finish loading a URL."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Navigation to {url} failed: {reason}")
        self.url = url
        self.reason = reason


class ExtractionError(ScraperError):
    """The rendered markup could not be parsed into a page result."""


class DiscoveryError(ScraperError):
    """The search result listing could not be loaded or read."""


class DeadlineExceeded(ScraperError, TimeoutError):
    """An operation did not settle before its wall-clock deadline."""

    def __init__(self, seconds: float) -> None:
        super().__init__(f"Operation timed out after {seconds:g} seconds")
        self.seconds = seconds
