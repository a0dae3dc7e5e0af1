"""Batch orchestration of scrape jobs across two browser engines.

``dispatch_batch`` is the entry point used by the search endpoint: it
launches Chromium and WebKit side by side, hands URLs out to them by index
parity, runs every job concurrently under a per-job deadline and tears all
browser resources down afterwards, whatever happened.

``scrape_single_url`` / ``scrape_multiple_pages`` are the one-off variants
used by the standalone mode and ``GET /api/scrape``; they run a single
Chromium instance.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

from playwright.async_api import async_playwright

from backend.config import Settings, settings as default_settings
from backend.scraper.deadline import with_deadline
from backend.scraper.engines import EngineSession, close_sessions, open_sessions
from backend.scraper.extractor import extract_page
from backend.scraper.models import BrowserEngine, JobResult, PageResult, ScrapeJob
from backend.scraper.pagination import walk_pages

logger = logging.getLogger(__name__)

# Two different engines give two different browser fingerprints.
BATCH_ENGINES = (BrowserEngine.CHROMIUM, BrowserEngine.WEBKIT)


# ---------------------------------------------------------------------------
# Job planning
# ---------------------------------------------------------------------------

def build_jobs(
    urls: Sequence[str],
    page_count: int,
    engines: Sequence[BrowserEngine] = BATCH_ENGINES,
) -> List[ScrapeJob]:
    """Assign *urls* to *engines* round-robin (even → first, odd → second)."""
    if page_count < 1:
        raise ValueError(f"page_count must be at least 1, got {page_count}")
    return [
        ScrapeJob(base_url=url, page_count=page_count, engine=engines[i % len(engines)])
        for i, url in enumerate(urls)
    ]


# ---------------------------------------------------------------------------
# Job execution
# ---------------------------------------------------------------------------

async def _run_job(
    session: EngineSession,
    job: ScrapeJob,
    settings: Settings,
) -> JobResult:
    """Run *job* on its own page of *session*; failures become an error result."""
    page = None
    try:
        page = await session.new_page()
        logger.info("[%s] Starting job for base URL: %s", session.name, job.base_url)
        deadline = settings.job_timeout_per_page * job.page_count

        if job.page_count > 1:
            return await with_deadline(
                walk_pages(page, job.base_url, job.page_count, settings=settings),
                deadline,
            )
        result = await with_deadline(
            extract_page(page, job.base_url, settings=settings), deadline
        )
        return JobResult(base_url=job.base_url, results=[result])

    except Exception as exc:
        logger.warning("[%s] Could not scrape %s: %s", session.name, job.base_url, exc)
        return JobResult(base_url=job.base_url, results=[], error=str(exc))

    finally:
        if page is not None:
            try:
                await page.close()
            except Exception as exc:
                logger.warning("[%s] could not close page for %s: %s", session.name, job.base_url, exc)
        logger.info("[%s] Finished job for base URL: %s", session.name, job.base_url)


async def run_jobs(
    sessions: Sequence[EngineSession],
    urls: Sequence[str],
    page_count: int = 1,
    *,
    settings: Settings = default_settings,
) -> List[JobResult]:
    """Scrape *urls* concurrently on already-open *sessions*.

    URL ``i`` runs on ``sessions[i % len(sessions)]``.  The returned list is
    index-aligned with *urls*; a failed URL yields a result with ``error``
    set instead of failing the batch.
    """
    by_engine = {session.engine: session for session in sessions}
    jobs = build_jobs(urls, page_count, [session.engine for session in sessions])
    return list(
        await asyncio.gather(
            *(_run_job(by_engine[job.engine], job, settings) for job in jobs)
        )
    )


async def dispatch_batch(
    urls: Sequence[str],
    page_count: int = 1,
    *,
    settings: Settings = default_settings,
) -> List[JobResult]:
    """Scrape every URL in *urls* across Chromium and WebKit.

    Both engines are launched concurrently, each with one 1920×1080 context.
    Every engine and context is closed once all jobs have settled, including
    when a launch fails part-way.

    Returns:
        One :class:`JobResult` per input URL, in input order.
    """
    if not urls:
        return []

    async with async_playwright() as pw:
        sessions = await open_sessions(pw, BATCH_ENGINES, settings=settings)
        logger.info(
            "Starting concurrent scrape of %d URL(s), %d page(s) each, with %s.",
            len(urls),
            page_count,
            " and ".join(s.name for s in sessions),
        )
        try:
            return await run_jobs(sessions, urls, page_count, settings=settings)
        finally:
            logger.info("Closing browser instances ...")
            await close_sessions(sessions)
            logger.info("Batch scrape finished. All browsers closed.")


# ---------------------------------------------------------------------------
# One-off scrapes
# ---------------------------------------------------------------------------

def _resolve_target(url: Optional[str], settings: Settings) -> str:
    target = url or settings.target_url
    if not target:
        raise ValueError("No URL given and TARGET_URL is not configured.")
    return target


async def scrape_single_url(
    url: Optional[str] = None,
    *,
    settings: Settings = default_settings,
) -> PageResult:
    """Scrape one page in a dedicated Chromium instance.

    Falls back to ``settings.target_url`` when *url* is omitted.
    """
    target = _resolve_target(url, settings)
    async with async_playwright() as pw:
        session = await EngineSession.open(pw, BrowserEngine.CHROMIUM, settings=settings)
        try:
            page = await session.new_page()
            return await extract_page(page, target, settings=settings)
        except Exception as exc:
            logger.error("Error scraping %s: %s", target, exc)
            raise
        finally:
            await session.close()


async def scrape_multiple_pages(
    base_url: Optional[str],
    page_count: int,
    *,
    settings: Settings = default_settings,
) -> List[PageResult]:
    """Scrape pages ``1..page_count`` of *base_url* in a dedicated Chromium instance."""
    target = _resolve_target(base_url, settings)
    async with async_playwright() as pw:
        session = await EngineSession.open(pw, BrowserEngine.CHROMIUM, settings=settings)
        try:
            page = await session.new_page()
            job = await walk_pages(page, target, page_count, settings=settings)
            return job.results
        except Exception as exc:
            logger.error("Error scraping pages of %s: %s", target, exc)
            raise
        finally:
            await session.close()
