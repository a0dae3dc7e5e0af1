"""Scrape endpoints — single URL and keyword search + batch scrape.

Routes
------
GET  /api/scrape?url=<url>&pagesToScrape=<n>
POST /api/search     Body: {"keyword": "...", "pagesToScrape": n}

Failures are reported to the client with a generic message only; the
underlying error is logged.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from backend.config import settings
from backend.scraper.deadline import with_deadline
from backend.scraper.discovery import discover_urls
from backend.scraper.dispatcher import dispatch_batch, scrape_multiple_pages, scrape_single_url
from backend.scraper.models import JobResult, PageResult

logger = logging.getLogger(__name__)

router = APIRouter()

SCRAPE_FAILED = "An error occurred while scraping the website."
SEARCH_FAILED = "An internal error occurred during the search and scrape process."


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class SearchRequest(BaseModel):
    # Typed loosely so a non-string keyword gets the endpoint's own 400.
    keyword: Any = None
    pagesToScrape: int = Field(1, ge=1)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _page_dict(page: PageResult) -> dict[str, Any]:
    return {
        "url": page.url,
        "title": page.title,
        "headings": page.headings,
        "paragraphs": page.paragraphs,
    }


def _job_dict(job: JobResult) -> dict[str, Any]:
    data: dict[str, Any] = {
        "baseUrl": job.base_url,
        "results": [_page_dict(p) for p in job.results],
    }
    if job.error is not None:
        data["error"] = job.error
    if job.skipped_pages:
        data["skippedPages"] = job.skipped_pages
    return data


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/scrape", response_model=None)
async def scrape(
    url: Optional[str] = None,
    pages_to_scrape: int = Query(1, alias="pagesToScrape", ge=1),
) -> Any:
    """Scrape one URL, or its first ``pagesToScrape`` paginated variants.

    Falls back to the configured ``TARGET_URL`` when *url* is omitted.
    Returns the page object for a single page, a list of pages otherwise.
    """
    target = url or settings.target_url
    if not target:
        return _error(400, "A URL is required.")

    if url:
        logger.info("Scraping request received for: %s, pages: %d", url, pages_to_scrape)
    else:
        logger.info("Scraping request received, using TARGET_URL. pages: %d", pages_to_scrape)

    deadline = settings.job_timeout_per_page * pages_to_scrape
    try:
        if pages_to_scrape > 1:
            pages = await with_deadline(
                scrape_multiple_pages(target, pages_to_scrape), deadline
            )
            return [_page_dict(p) for p in pages]
        page = await with_deadline(scrape_single_url(target), deadline)
        return _page_dict(page)
    except Exception as exc:
        logger.error("Scrape of %s failed: %s", target, exc)
        return _error(500, SCRAPE_FAILED)


@router.post("/search", response_model=None)
async def search(body: Optional[SearchRequest] = None) -> Any:
    """Discover URLs for a keyword and scrape each of them concurrently."""
    body = body or SearchRequest()
    if not isinstance(body.keyword, str) or not body.keyword.strip():
        return _error(400, "A keyword is required.")

    keyword = body.keyword
    try:
        urls = await discover_urls(keyword, settings.discovery_limit)
        if not urls:
            return {"message": "No URLs found for that keyword.", "results": []}

        logger.info(
            "Found %d URLs. Starting concurrent scrape of %d page(s) each.",
            len(urls),
            body.pagesToScrape,
        )
        results = await dispatch_batch(urls, body.pagesToScrape)
        return {"results": [_job_dict(r) for r in results]}
    except Exception as exc:
        logger.error("Search and scrape failed for keyword %r: %s", keyword, exc)
        return _error(500, SEARCH_FAILED)
