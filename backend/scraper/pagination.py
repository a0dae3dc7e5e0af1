"""Sequential scraping of numbered page variants of one base URL."""

from __future__ import annotations

import asyncio
import logging
import random
from urllib.parse import urlsplit

from playwright.async_api import Page

from backend.config import Settings, settings as default_settings
from backend.scraper.extractor import extract_page
from backend.scraper.models import JobResult

logger = logging.getLogger(__name__)


def page_url(base_url: str, index: int) -> str:
    """Return *base_url* with ``page=<index>`` appended to its query string."""
    separator = "&" if urlsplit(base_url).query else "?"
    return f"{base_url}{separator}page={index}"


async def walk_pages(
    page: Page,
    base_url: str,
    page_count: int,
    *,
    settings: Settings = default_settings,
) -> JobResult:
    """Scrape pages ``1..page_count`` of *base_url* one after another.

    A page that fails is logged, recorded in ``skipped_pages`` and skipped;
    it never aborts the remaining pages.  A randomised pause separates
    consecutive fetches.
    """
    if page_count < 1:
        raise ValueError(f"page_count must be at least 1, got {page_count}")

    job = JobResult(base_url=base_url)
    for index in range(1, page_count + 1):
        if index > 1:
            await asyncio.sleep(random.uniform(settings.page_delay_min, settings.page_delay_max))

        url = page_url(base_url, index)
        logger.info("Scraping page %d of %d: %s", index, page_count, url)
        try:
            job.results.append(await extract_page(page, url, settings=settings))
        except Exception as exc:
            logger.error("Failed to scrape page %d (%s): %s", index, url, exc)
            job.skipped_pages.append(index)

    return job
