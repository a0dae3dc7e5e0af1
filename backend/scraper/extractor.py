"""Content extraction: loads a page in the browser and turns it into a :class:`PageResult`."""

from __future__ import annotations

import logging
from typing import List

from bs4 import BeautifulSoup
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from backend.config import Settings, settings as default_settings
from backend.scraper.challenge import resolve_captcha, resolve_cookie_consent
from backend.scraper.errors import ExtractionError, NavigationError
from backend.scraper.headers import get_headers
from backend.scraper.models import PageResult

logger = logging.getLogger(__name__)

# Paragraphs this short are navigation crumbs, captions and the like.
MIN_PARAGRAPH_LENGTH = 30

# Cloudflare's interstitial keeps this title until the real page replaces it.
_INTERSTITIAL_CLEARED_JS = "() => !document.title.includes('Just a moment...')"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _extract_title(soup: BeautifulSoup) -> str:
    """Return the text of the first ``<title>`` element, or empty string."""
    tag = soup.find("title")
    if tag is None:
        return ""
    return tag.get_text().strip()


def _extract_headings(soup: BeautifulSoup) -> List[str]:
    return [h.get_text().strip() for h in soup.find_all(["h1", "h2", "h3"])]


def _extract_paragraphs(soup: BeautifulSoup) -> List[str]:
    paragraphs: List[str] = []
    for p in soup.find_all("p"):
        text = p.get_text().strip()
        if len(text) > MIN_PARAGRAPH_LENGTH:
            paragraphs.append(text)
    return paragraphs


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_page(html: str, url: str) -> PageResult:
    """Extract title, h1–h3 headings and substantial paragraphs from *html*.

    Headings and paragraphs keep document order.

    Raises:
        ExtractionError: If the markup cannot be parsed.
    """
    try:
        soup = BeautifulSoup(html, "html.parser")
        return PageResult(
            url=url,
            title=_extract_title(soup),
            headings=_extract_headings(soup),
            paragraphs=_extract_paragraphs(soup),
        )
    except Exception as exc:
        raise ExtractionError(f"Could not parse content of {url}: {exc}") from exc


async def extract_page(
    page: Page,
    url: str,
    *,
    settings: Settings = default_settings,
) -> PageResult:
    """Load *url* in *page*, clear interstitials and extract its content.

    The caller owns *page*: its headers and navigation state are changed,
    so it must not be shared with a concurrent extraction.

    Raises:
        NavigationError: If the page does not finish loading.
        ExtractionError: If the rendered markup cannot be parsed.
    """
    await page.set_extra_http_headers(get_headers())

    try:
        await page.goto(
            url,
            timeout=settings.navigation_timeout * 1000,
            wait_until="networkidle",
        )
    except PlaywrightError as exc:
        raise NavigationError(url, str(exc)) from exc

    # Network idle has normally outlasted the interstitial by now.
    try:
        await page.wait_for_function(
            _INTERSTITIAL_CLEARED_JS,
            timeout=settings.interstitial_timeout * 1000,
        )
    except PlaywrightTimeoutError:
        logger.info("Title still shows an interstitial for %s, continuing anyway.", url)
    except PlaywrightError as exc:
        logger.info("Interstitial check interrupted on %s, continuing anyway: %s", url, exc)

    # Banners can cover the CAPTCHA widget, so they go first.
    await resolve_cookie_consent(page, url)
    await resolve_captcha(page)

    try:
        html = await page.content()
    except PlaywrightError as exc:
        raise ExtractionError(f"Could not read rendered markup of {url}: {exc}") from exc

    return parse_page(html, url)
