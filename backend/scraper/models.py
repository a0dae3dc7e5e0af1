"""Data models for the scraper pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class BrowserEngine(str, Enum):
    """The two automation engines a batch is spread across."""

    CHROMIUM = "chromium"
    WEBKIT = "webkit"


class ChallengeKind(str, Enum):
    COOKIE_BANNER = "cookie_banner"
    CAPTCHA = "captcha"
    NONE = "none"


class ResolutionOutcome(str, Enum):
    """How a best-effort challenge resolution attempt ended."""

    RESOLVED = "resolved"
    NOT_APPLICABLE = "not_applicable"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class ScrapeJob:
    """One base URL to scrape, bound to the engine that will run it."""

    base_url: str
    page_count: int
    engine: BrowserEngine


@dataclass(frozen=True)
class PageResult:
    """Structured content extracted from one rendered page.

    Frozen once built.  The freeze is shallow: ``headings`` and
    ``paragraphs`` are plain lists that nothing mutates after extraction.
    """

    url: str
    title: str
    headings: List[str] = field(default_factory=list)
    paragraphs: List[str] = field(default_factory=list)


@dataclass
class JobResult:
    """Outcome of one scrape job.

    A job that failed as a whole still produces a result: ``error`` is set
    and ``results`` is empty.  ``skipped_pages`` lists the 1-based page
    indices that failed during pagination.
    """

    base_url: str
    results: List[PageResult] = field(default_factory=list)
    error: Optional[str] = None
    skipped_pages: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class PageState:
    """The parts of a rendered page the challenge detector looks at."""

    text: str
    frame_sources: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ChallengeSignal:
    present: bool
    kind: ChallengeKind = ChallengeKind.NONE


@dataclass(frozen=True)
class Resolution:
    """Result of a cookie-banner or CAPTCHA resolution attempt."""

    outcome: ResolutionOutcome
    kind: ChallengeKind = ChallengeKind.NONE
    detail: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.outcome is ResolutionOutcome.RESOLVED
