"""Browser engine sessions: one launched browser plus one isolated context.

Both engines are driven through the same :class:`EngineSession` surface
(``open`` / ``new_page`` / ``close``); the engine is picked by the
:class:`~backend.scraper.models.BrowserEngine` value, never by inspecting
the browser object.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Sequence

from playwright.async_api import Browser, BrowserContext, Page, Playwright

from backend.config import Settings, settings as default_settings
from backend.scraper.models import BrowserEngine

logger = logging.getLogger(__name__)


def launch_options(engine: BrowserEngine, settings: Settings = default_settings) -> dict[str, Any]:
    """Return the ``launch()`` keyword arguments for *engine*."""
    options: dict[str, Any] = {"headless": settings.headless}
    # WebKit rejects Chromium command-line switches.
    if engine is BrowserEngine.CHROMIUM:
        options["args"] = list(settings.browser_args)
    return options


class EngineSession:
    """A launched browser and the single context its pages are opened in."""

    def __init__(
        self,
        engine: BrowserEngine,
        browser: Browser,
        context: Optional[BrowserContext] = None,
    ) -> None:
        self.engine = engine
        self.browser = browser
        self.context = context

    @property
    def name(self) -> str:
        return self.engine.value

    @classmethod
    async def open(
        cls,
        playwright: Playwright,
        engine: BrowserEngine,
        *,
        settings: Settings = default_settings,
        **context_options: Any,
    ) -> "EngineSession":
        """Launch *engine* and create a context with the configured viewport."""
        launcher = getattr(playwright, engine.value)
        browser = await launcher.launch(**launch_options(engine, settings))
        session = cls(engine, browser)
        try:
            session.context = await browser.new_context(
                viewport=settings.viewport, **context_options
            )
        except BaseException:
            await session.close()
            raise
        logger.info("[%s] browser launched", engine.value)
        return session

    async def new_page(self) -> Page:
        if self.context is None:
            raise RuntimeError(f"{self.name} session has no open context")
        return await self.context.new_page()

    async def close(self) -> None:
        """Close the context and the browser.  Errors are logged, not raised."""
        if self.context is not None:
            try:
                await self.context.close()
            except Exception as exc:
                logger.warning("[%s] could not close context: %s", self.name, exc)
            self.context = None
        try:
            await self.browser.close()
        except Exception as exc:
            logger.warning("[%s] could not close browser: %s", self.name, exc)


async def open_sessions(
    playwright: Playwright,
    engines: Sequence[BrowserEngine],
    *,
    settings: Settings = default_settings,
) -> list[EngineSession]:
    """Launch every engine in *engines* concurrently.

    If any launch fails, the sessions that did start are closed before the
    first error is re-raised.
    """
    outcomes = await asyncio.gather(
        *(EngineSession.open(playwright, engine, settings=settings) for engine in engines),
        return_exceptions=True,
    )
    sessions = [o for o in outcomes if isinstance(o, EngineSession)]
    failures = [o for o in outcomes if isinstance(o, BaseException)]
    if failures:
        await close_sessions(sessions)
        raise failures[0]
    return sessions


async def close_sessions(sessions: Sequence[EngineSession]) -> None:
    await asyncio.gather(*(session.close() for session in sessions))
