"""Tests for browser engine sessions."""

from __future__ import annotations

import pytest

from backend.config import settings
from backend.scraper.engines import EngineSession, launch_options, open_sessions
from backend.scraper.models import BrowserEngine
from fakes import FakeBrowser, FakeContext, FakeLauncher, FakePlaywright


class TestLaunchOptions:
    def test_chromium_gets_throttling_flags(self) -> None:
        options = launch_options(BrowserEngine.CHROMIUM)
        assert options["headless"] == settings.headless
        assert options["args"] == list(settings.browser_args)

    def test_webkit_gets_no_chromium_flags(self) -> None:
        assert launch_options(BrowserEngine.WEBKIT) == {"headless": settings.headless}


class TestEngineSession:
    async def test_open_creates_context_with_viewport(self) -> None:
        pw = FakePlaywright()
        session = await EngineSession.open(pw, BrowserEngine.WEBKIT)

        assert session.name == "webkit"
        assert session.browser is pw.webkit.browser
        assert pw.webkit.browser.context_options == [{"viewport": {"width": 1920, "height": 1080}}]

    async def test_context_failure_closes_browser(self) -> None:
        class NoContextBrowser(FakeBrowser):
            async def new_context(self, **options):
                raise RuntimeError("context refused")

        browser = NoContextBrowser()
        pw = FakePlaywright(chromium=FakeLauncher(browser))
        with pytest.raises(RuntimeError):
            await EngineSession.open(pw, BrowserEngine.CHROMIUM)
        assert browser.close_count == 1

    async def test_close_tolerates_errors(self) -> None:
        context = FakeContext()
        session = EngineSession(
            BrowserEngine.CHROMIUM,
            FakeBrowser(context, close_error=RuntimeError("already gone")),
            context,
        )
        await session.close()
        assert context.close_count == 1
        assert session.context is None

    async def test_new_page_requires_context(self) -> None:
        session = EngineSession(BrowserEngine.CHROMIUM, FakeBrowser())
        with pytest.raises(RuntimeError):
            await session.new_page()


class TestOpenSessions:
    async def test_opens_every_engine(self) -> None:
        pw = FakePlaywright()
        sessions = await open_sessions(pw, [BrowserEngine.CHROMIUM, BrowserEngine.WEBKIT])
        assert [s.engine for s in sessions] == [BrowserEngine.CHROMIUM, BrowserEngine.WEBKIT]

    async def test_partial_failure_closes_started_sessions(self) -> None:
        pw = FakePlaywright(chromium=FakeLauncher(error=RuntimeError("chromium missing")))
        with pytest.raises(RuntimeError, match="chromium missing"):
            await open_sessions(pw, [BrowserEngine.CHROMIUM, BrowserEngine.WEBKIT])
        assert pw.webkit.browser.close_count == 1
        assert pw.webkit.browser.context.close_count == 1
