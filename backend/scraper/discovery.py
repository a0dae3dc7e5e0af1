"""Keyword-driven URL discovery through DuckDuckGo's HTML result listing.

The HTML-only front end is rendered in a real browser so that a bot
challenge shown before the results can be handled the same way as on any
other page.  Result anchors point at a redirect wrapper
(``/l/?uddg=<encoded target>``); the real target is decoded from the
``uddg`` parameter.
"""

from __future__ import annotations

import logging
from typing import List
from urllib.parse import parse_qs, urlencode, urljoin, urlsplit

from bs4 import BeautifulSoup
from playwright.async_api import Page, async_playwright

from backend.config import Settings, settings as default_settings
from backend.scraper.challenge import resolve_captcha
from backend.scraper.engines import EngineSession
from backend.scraper.errors import DiscoveryError
from backend.scraper.headers import desktop_user_agent, get_headers
from backend.scraper.models import BrowserEngine

logger = logging.getLogger(__name__)

RESULT_LINK_SELECTOR = "div.result h2.result__title a.result__a"
_REDIRECT_BASE = "https://duckduckgo.com"


def build_search_url(keyword: str, settings: Settings = default_settings) -> str:
    return f"{settings.search_url}?{urlencode({'q': keyword})}"


def decode_result_link(href: str) -> str | None:
    """Return the target URL wrapped in a ``uddg`` redirect link, if any."""
    if "uddg=" not in href:
        return None
    query = urlsplit(urljoin(_REDIRECT_BASE, href)).query
    targets = parse_qs(query).get("uddg")
    return targets[0] if targets else None


def parse_result_links(html: str, limit: int) -> List[str]:
    """Extract up to *limit* decoded result URLs from a listing page, in order."""
    soup = BeautifulSoup(html, "html.parser")
    urls: List[str] = []
    for anchor in soup.select(RESULT_LINK_SELECTOR):
        if len(urls) >= limit:
            break
        target = decode_result_link(anchor.get("href") or "")
        if target:
            urls.append(target)
    return urls


async def _save_screenshot(page: Page, name: str, settings: Settings) -> None:
    path = settings.screenshot_dir / name
    try:
        await page.screenshot(path=str(path), full_page=True)
        logger.info("[search] screenshot saved to %s", path)
    except Exception as exc:
        logger.error("[search] could not take a screenshot: %s", exc)


async def search_listing(
    page: Page,
    keyword: str,
    limit: int,
    *,
    settings: Settings = default_settings,
) -> List[str]:
    """Load the result listing for *keyword* in *page* and read its links.

    Raises:
        DiscoveryError: If the listing cannot be loaded or read.
    """
    await page.set_extra_http_headers(get_headers())

    search_url = build_search_url(keyword, settings)
    logger.info("[search] Navigating to: %s", search_url)
    try:
        await page.goto(
            search_url,
            wait_until="domcontentloaded",
            timeout=settings.search_timeout * 1000,
        )
        await resolve_captcha(page)
        html = await page.content()
    except Exception as exc:
        raise DiscoveryError(f"Could not load results for {keyword!r}: {exc}") from exc

    urls = parse_result_links(html, limit)
    if not urls:
        logger.warning(
            "[search] No URLs could be extracted; the page structure might have changed."
        )
        await _save_screenshot(page, "search_failure_screenshot.png", settings)
    else:
        logger.info("[search] Found %d URLs.", len(urls))
    return urls


async def discover_urls(
    keyword: str,
    limit: int = 5,
    *,
    settings: Settings = default_settings,
) -> List[str]:
    """Search for *keyword* and return at most *limit* result URLs.

    Never raises: any failure is logged (with a screenshot when a page was
    open) and reported as an empty list.
    """
    if not keyword:
        logger.error("[search] Keyword cannot be empty.")
        return []

    logger.info("[search] Starting search for keyword: %r", keyword)
    try:
        async with async_playwright() as pw:
            session = await EngineSession.open(
                pw,
                BrowserEngine.CHROMIUM,
                settings=settings,
                user_agent=desktop_user_agent(),
            )
            page = None
            try:
                page = await session.new_page()
                return await search_listing(page, keyword, limit, settings=settings)
            except Exception as exc:
                logger.error("[search] An error occurred while searching for %r: %s", keyword, exc)
                if page is not None:
                    await _save_screenshot(page, "search_error_screenshot.png", settings)
                return []
            finally:
                await session.close()
    except Exception as exc:
        logger.error("[search] Could not start a browser for %r: %s", keyword, exc)
        return []
