"""Tests for interstitial detection and the cookie / CAPTCHA resolvers.

Browser pages are replaced by ``tests/fakes.py``.
"""

from __future__ import annotations

import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from backend.scraper.challenge import (
    CONSENT_BUTTON_PATTERN,
    detect_challenge,
    read_page_state,
    resolve_captcha,
    resolve_cookie_consent,
)
from backend.scraper.models import ChallengeKind, PageState, ResolutionOutcome
from fakes import FakeLocator, FakePage


_ARTICLE_TEXT = (
    "The city council met on Tuesday to discuss the new cycling lanes. "
    "Residents raised concerns about parking."
)


# ---------------------------------------------------------------------------
# detect_challenge
# ---------------------------------------------------------------------------

class TestDetectChallenge:
    def test_just_a_moment_is_a_challenge(self) -> None:
        signal = detect_challenge(PageState(text="Just a moment..."))
        assert signal.present is True
        assert signal.kind is ChallengeKind.CAPTCHA

    def test_ordinary_article_is_not_a_challenge(self) -> None:
        signal = detect_challenge(
            PageState(text=_ARTICLE_TEXT, frame_sources=["https://www.youtube.com/embed/x"])
        )
        assert signal.present is False
        assert signal.kind is ChallengeKind.NONE

    def test_text_match_is_case_insensitive(self) -> None:
        assert detect_challenge(PageState(text="VERIFYING YOU ARE HUMAN")).present
        assert detect_challenge(PageState(text="Please verify you are human")).present
        assert detect_challenge(PageState(text="I'm not a robot")).present

    def test_captcha_word_anywhere(self) -> None:
        assert detect_challenge(PageState(text="Solve the reCaptcha to continue")).present

    def test_challenge_frame_origin(self) -> None:
        for src in (
            "https://www.google.com/recaptcha/api2/anchor?k=abc",
            "https://newassets.hcaptcha.com/captcha/v1/frame",
            "https://challenges.cloudflare.com/cdn-cgi/challenge-platform/turnstile",
        ):
            signal = detect_challenge(PageState(text=_ARTICLE_TEXT, frame_sources=[src]))
            assert signal.present, src

    def test_frame_origin_match_ignores_case(self) -> None:
        state = PageState(text="", frame_sources=["https://Challenges.Cloudflare.com/x"])
        assert detect_challenge(state).present

    def test_empty_page(self) -> None:
        assert detect_challenge(PageState(text="")).present is False


class TestReadPageState:
    async def test_reads_text_and_frames(self) -> None:
        page = FakePage(text="hello", frames=["https://a.test/frame"])
        state = await read_page_state(page)
        assert state == PageState(text="hello", frame_sources=["https://a.test/frame"])


# ---------------------------------------------------------------------------
# resolve_cookie_consent
# ---------------------------------------------------------------------------

class TestConsentButtonPattern:
    def test_consent_labels_match(self) -> None:
        for label in ("Accept all", "I agree", "Got it", "OK", "Ok, thanks"):
            assert CONSENT_BUTTON_PATTERN.search(label), label

    def test_words_containing_ok_do_not_match(self) -> None:
        for label in ("Cookie settings", "Facebook", "Book now"):
            assert not CONSENT_BUTTON_PATTERN.search(label), label


class TestResolveCookieConsent:
    async def test_no_banner_is_not_applicable(self) -> None:
        page = FakePage(consent=FakeLocator(visible=False))
        resolution = await resolve_cookie_consent(page, "https://a.test")

        assert resolution.outcome is ResolutionOutcome.NOT_APPLICABLE
        assert page.consent.clicks == []
        assert page.consent.waits == [("visible", 3000)]

    async def test_banner_is_clicked_after_pointer_glide(self) -> None:
        button = FakeLocator(box={"x": 10, "y": 20, "width": 100, "height": 40})
        page = FakePage(consent=button)

        resolution = await resolve_cookie_consent(page, "https://a.test")

        assert resolution.resolved
        assert resolution.kind is ChallengeKind.COOKIE_BANNER
        assert page.mouse.moves == [(60, 40, 15)]
        assert len(page.pauses) == 1
        assert 300 <= page.pauses[0] <= 700
        assert button.clicks == [{"force": True}]
        assert page.load_waits == [("networkidle", 5000)]

    async def test_settle_timeout_is_swallowed(self) -> None:
        page = FakePage(
            consent=FakeLocator(),
            idle_error=PlaywrightTimeoutError("Timeout 5000ms exceeded."),
        )
        resolution = await resolve_cookie_consent(page)
        assert resolution.outcome is ResolutionOutcome.RESOLVED

    async def test_unclickable_button_is_abandoned_not_raised(self, caplog) -> None:
        button = FakeLocator(click_error=PlaywrightError("Element is detached"))
        page = FakePage(consent=button)

        with caplog.at_level(logging.WARNING, logger="backend.scraper.challenge"):
            resolution = await resolve_cookie_consent(page)

        assert resolution.outcome is ResolutionOutcome.ABANDONED
        assert "detached" in (resolution.detail or "")
        assert any(r.levelno == logging.WARNING for r in caplog.records)

    async def test_button_without_box_is_still_clicked(self) -> None:
        button = FakeLocator(box={})
        page = FakePage(consent=button)

        resolution = await resolve_cookie_consent(page)

        assert resolution.resolved
        assert page.mouse.moves == []
        assert page.pauses == []
        assert button.clicks == [{"force": True}]


# ---------------------------------------------------------------------------
# resolve_captcha
# ---------------------------------------------------------------------------

class TestResolveCaptcha:
    async def test_no_signal_returns_immediately(self) -> None:
        page = FakePage(text=_ARTICLE_TEXT)
        resolution = await resolve_captcha(page)

        assert resolution.outcome is ResolutionOutcome.NOT_APPLICABLE
        assert page.captcha_frame.waits == []
        assert page.checkbox.clicks == []

    async def test_signal_without_checkbox_frame_is_abandoned(self) -> None:
        page = FakePage(text="Just a moment...", captcha_frame=FakeLocator(visible=False))
        resolution = await resolve_captcha(page)

        assert resolution.outcome is ResolutionOutcome.ABANDONED
        assert resolution.kind is ChallengeKind.CAPTCHA
        assert page.captcha_frame.waits == [("visible", 5000)]
        assert page.checkbox.clicks == []

    async def test_checkbox_is_clicked_and_frame_awaited(self) -> None:
        checkbox = FakeLocator(box={"x": 0, "y": 0, "width": 20, "height": 20})
        frame = FakeLocator()
        page = FakePage(
            text="Please verify you are human",
            captcha_frame=frame,
            checkbox=checkbox,
        )

        resolution = await resolve_captcha(page)

        assert resolution.outcome is ResolutionOutcome.RESOLVED
        assert page.mouse.moves == [(10, 10, 20)]
        assert 500 <= page.pauses[0] <= 1000
        assert checkbox.clicks == [{"timeout": 5000}]
        assert frame.waits == [("visible", 5000), ("hidden", 20000)]
        assert page.load_waits == [("networkidle", 10000)]

    async def test_frame_never_hides_is_abandoned(self) -> None:
        frame = FakeLocator(hidden_error=PlaywrightTimeoutError("Timeout 20000ms exceeded."))
        page = FakePage(frames=["https://www.google.com/recaptcha/api2"], captcha_frame=frame)

        resolution = await resolve_captcha(page)

        assert resolution.outcome is ResolutionOutcome.ABANDONED
        assert page.checkbox.clicks == [{"timeout": 5000}]

    async def test_unexpected_error_never_propagates(self) -> None:
        class BrokenPage(FakePage):
            async def evaluate(self, expression):
                raise RuntimeError("execution context was destroyed")

        resolution = await resolve_captcha(BrokenPage())
        assert resolution.outcome is ResolutionOutcome.ABANDONED
        assert "destroyed" in (resolution.detail or "")
