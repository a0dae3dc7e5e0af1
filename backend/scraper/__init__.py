"""Scraper package — browser orchestration, challenge handling & content extraction."""

from backend.scraper.deadline import with_deadline
from backend.scraper.discovery import discover_urls
from backend.scraper.dispatcher import dispatch_batch, scrape_multiple_pages, scrape_single_url
from backend.scraper.extractor import extract_page, parse_page
from backend.scraper.models import JobResult, PageResult, ScrapeJob
from backend.scraper.pagination import walk_pages

__all__ = [
    "dispatch_batch",
    "discover_urls",
    "extract_page",
    "parse_page",
    "scrape_multiple_pages",
    "scrape_single_url",
    "walk_pages",
    "with_deadline",
    "JobResult",
    "PageResult",
    "ScrapeJob",
]
