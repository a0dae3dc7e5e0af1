"""Centralised settings for the web scraper backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).

The settings object is immutable; components take it as a keyword argument
so tests can hand in a modified copy::

    from dataclasses import replace
    fast = replace(settings, page_delay_min=0.0, page_delay_max=0.0)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # ------------------------------------------------------------------
    # Standalone mode / server
    # ------------------------------------------------------------------
    target_url: Optional[str] = field(
        default_factory=lambda: os.environ.get("TARGET_URL") or None
    )
    host: str = field(default_factory=lambda: os.environ.get("HOST", "127.0.0.1"))
    port: int = field(default_factory=lambda: int(os.environ.get("PORT", "3000")))
    frontend_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get(
                "FRONTEND_DIR", Path(__file__).resolve().parent.parent / "Frontend"
            )
        )
    )
    log_level: str = field(default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO"))

    # ------------------------------------------------------------------
    # Browser engines
    # ------------------------------------------------------------------
    headless: bool = field(default_factory=lambda: _env_bool("HEADLESS", "true"))
    # Keep background tabs running at foreground speed.  Chromium only.
    browser_args: tuple[str, ...] = (
        "--disable-background-timer-throttling",
        "--disable-backgrounding-occluded-windows",
        "--disable-renderer-backgrounding",
    )
    viewport_width: int = 1920
    viewport_height: int = 1080

    # ------------------------------------------------------------------
    # Timeouts (seconds)
    # ------------------------------------------------------------------
    navigation_timeout: float = field(
        default_factory=lambda: float(os.environ.get("NAVIGATION_TIMEOUT", "200"))
    )
    interstitial_timeout: float = 15.0
    job_timeout_per_page: float = field(
        default_factory=lambda: float(os.environ.get("JOB_TIMEOUT_PER_PAGE", "200"))
    )
    search_timeout: float = field(
        default_factory=lambda: float(os.environ.get("SEARCH_TIMEOUT", "30"))
    )

    # ------------------------------------------------------------------
    # Pagination pacing (seconds)
    # ------------------------------------------------------------------
    page_delay_min: float = 1.0
    page_delay_max: float = 2.0

    # ------------------------------------------------------------------
    # URL discovery
    # ------------------------------------------------------------------
    search_url: str = "https://html.duckduckgo.com/html/"
    discovery_limit: int = field(
        default_factory=lambda: int(os.environ.get("DISCOVERY_LIMIT", "4"))
    )
    screenshot_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("SCREENSHOT_DIR", "."))
    )

    @property
    def viewport(self) -> dict[str, int]:
        """Viewport mapping in the shape Playwright expects."""
        return {"width": self.viewport_width, "height": self.viewport_height}


# Module-level singleton — import this everywhere:
#   from backend.config import settings
settings = Settings()
