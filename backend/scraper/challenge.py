"""Interstitial detection and best-effort resolution.

Two kinds of interstitial are handled:

* **Cookie banners**: the first button whose accessible name looks like a
  consent action is clicked.
* **Checkbox CAPTCHAs**: when :func:`detect_challenge` reports a bot wall,
  a reCAPTCHA / hCaptcha checkbox is clicked once.

Both resolvers share the same contract: they never raise.  Every attempt
ends in a :class:`~backend.scraper.models.Resolution` whose outcome tells
the caller whether the challenge was resolved, absent, or abandoned; the
scraper carries on with whatever content the page currently shows.
"""

from __future__ import annotations

import logging
import random
import re

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from backend.scraper.models import (
    ChallengeKind,
    ChallengeSignal,
    PageState,
    Resolution,
    ResolutionOutcome,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Detection signals
# ---------------------------------------------------------------------------
CHALLENGE_TEXT_PATTERNS = [
    re.compile(r"verify(ing)? you are human", re.IGNORECASE),
    re.compile(r"captcha", re.IGNORECASE),
    re.compile(r"just a moment", re.IGNORECASE),
    re.compile(r"i'm not a robot", re.IGNORECASE),
]

CHALLENGE_FRAME_DOMAINS = [
    "recaptcha",
    "hcaptcha",
    "turnstile",
    "challenges.cloudflare.com",
]

# Evaluated inside the page; returns the inputs of ``detect_challenge``.
_PAGE_STATE_JS = """() => ({
    text: document.body ? document.body.innerText : "",
    frames: Array.from(document.querySelectorAll("iframe")).map(f => f.src || ""),
})"""

# ---------------------------------------------------------------------------
# Interaction targets and budgets (milliseconds, as Playwright expects)
# ---------------------------------------------------------------------------
# "ok" is word-bounded so labels like "Cookie settings" or "Facebook" do not match.
CONSENT_BUTTON_PATTERN = re.compile(
    r"accept all|allow all|reject all|decline|accept|agree|consent|got it|i agree|\bok\b",
    re.IGNORECASE,
)
CAPTCHA_FRAME_SELECTOR = 'iframe[title="reCAPTCHA"], iframe[title*="hCaptcha"]'
CAPTCHA_CHECKBOX_SELECTOR = "#recaptcha-anchor, #checkbox"

_CONSENT_VISIBLE_TIMEOUT = 3_000
_CONSENT_SETTLE_TIMEOUT = 5_000
_FRAME_VISIBLE_TIMEOUT = 5_000
_CHECKBOX_CLICK_TIMEOUT = 5_000
_FRAME_HIDDEN_TIMEOUT = 20_000
_CAPTCHA_SETTLE_TIMEOUT = 10_000


# ---------------------------------------------------------------------------
# Detector
# ---------------------------------------------------------------------------

def detect_challenge(state: PageState) -> ChallengeSignal:
    """Return whether *state* shows a human-verification wall.

    Looks for verification phrases in the visible text and for iframes
    served by a known challenge provider.  Pure; touches nothing.
    """
    text_hit = any(p.search(state.text) for p in CHALLENGE_TEXT_PATTERNS)
    frame_hit = any(
        domain in src.lower()
        for src in state.frame_sources
        for domain in CHALLENGE_FRAME_DOMAINS
    )
    if text_hit or frame_hit:
        return ChallengeSignal(present=True, kind=ChallengeKind.CAPTCHA)
    return ChallengeSignal(present=False)


async def read_page_state(page: Page) -> PageState:
    """Snapshot the visible text and iframe sources of *page*."""
    raw = await page.evaluate(_PAGE_STATE_JS)
    return PageState(text=raw.get("text") or "", frame_sources=list(raw.get("frames") or []))


# ---------------------------------------------------------------------------
# Human-like pointer movement
# ---------------------------------------------------------------------------

async def _move_pointer_to(page: Page, target: Locator, steps: int) -> bool:
    """Glide the mouse to the centre of *target*.  ``False`` if it has no box."""
    box = await target.bounding_box()
    if not box:
        return False
    await page.mouse.move(
        box["x"] + box["width"] / 2,
        box["y"] + box["height"] / 2,
        steps=steps,
    )
    return True


# ---------------------------------------------------------------------------
# Resolvers
# ---------------------------------------------------------------------------

async def resolve_cookie_consent(page: Page, url: str = "") -> Resolution:
    """Click the first visible consent button on *page*, if there is one.

    A missing banner is the common case and is reported as
    ``NOT_APPLICABLE``; a banner that cannot be clicked is ``ABANDONED``.
    """
    logger.info("Checking for cookie consent banner on %s", url or "current page")
    try:
        button = page.get_by_role("button", name=CONSENT_BUTTON_PATTERN).first
        try:
            await button.wait_for(state="visible", timeout=_CONSENT_VISIBLE_TIMEOUT)
        except PlaywrightTimeoutError:
            logger.info("No cookie consent banner found on %s", url or "current page")
            return Resolution(ResolutionOutcome.NOT_APPLICABLE)

        label = (await button.text_content() or "").strip()
        logger.info("Cookie banner found, clicking %r", label)

        if await _move_pointer_to(page, button, steps=15):
            await page.wait_for_timeout(random.uniform(300, 700))

        # Forced so a partially covered button is still clicked.
        await button.click(force=True)
        logger.info("Clicked cookie consent button.")

        try:
            await page.wait_for_load_state("networkidle", timeout=_CONSENT_SETTLE_TIMEOUT)
        except PlaywrightTimeoutError:
            pass
        return Resolution(ResolutionOutcome.RESOLVED, ChallengeKind.COOKIE_BANNER)

    except PlaywrightError as exc:
        logger.warning("Cookie consent button was not actionable: %s", exc)
        return Resolution(ResolutionOutcome.ABANDONED, ChallengeKind.COOKIE_BANNER, str(exc))
    except Exception as exc:
        logger.error("Error handling cookie consent: %s", exc)
        return Resolution(ResolutionOutcome.ABANDONED, ChallengeKind.COOKIE_BANNER, str(exc))


async def resolve_captcha(page: Page) -> Resolution:
    """Detect a bot challenge on *page* and try to tick its checkbox once."""
    try:
        logger.info("Checking for CAPTCHA or bot challenge ...")
        signal = detect_challenge(await read_page_state(page))
        if not signal.present:
            logger.info("No CAPTCHA or challenge detected.")
            return Resolution(ResolutionOutcome.NOT_APPLICABLE)

        logger.info("Challenge detected, looking for a checkbox CAPTCHA ...")
        frame = page.locator(CAPTCHA_FRAME_SELECTOR).first
        try:
            await frame.wait_for(state="visible", timeout=_FRAME_VISIBLE_TIMEOUT)
            checkbox = (
                page.frame_locator(CAPTCHA_FRAME_SELECTOR)
                .first.locator(CAPTCHA_CHECKBOX_SELECTOR)
            )

            if await _move_pointer_to(page, checkbox, steps=20):
                await page.wait_for_timeout(random.uniform(500, 1000))

            await checkbox.click(timeout=_CHECKBOX_CLICK_TIMEOUT)
            logger.info("Clicked the CAPTCHA checkbox, waiting for the challenge to clear.")

            await frame.wait_for(state="hidden", timeout=_FRAME_HIDDEN_TIMEOUT)
            await page.wait_for_load_state("networkidle", timeout=_CAPTCHA_SETTLE_TIMEOUT)
            logger.info("CAPTCHA cleared.")
            return Resolution(ResolutionOutcome.RESOLVED, ChallengeKind.CAPTCHA)
        except PlaywrightError as exc:
            logger.warning(
                "CAPTCHA checkbox not found or could not be solved; "
                "continuing on the current page (%s)",
                exc,
            )
            return Resolution(ResolutionOutcome.ABANDONED, ChallengeKind.CAPTCHA, str(exc))

    except Exception as exc:
        logger.error("Error in CAPTCHA handling, scraping will continue: %s", exc)
        return Resolution(ResolutionOutcome.ABANDONED, ChallengeKind.CAPTCHA, str(exc))
