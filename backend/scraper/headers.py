"""Realistic request headers and user agents for browser pages."""

from __future__ import annotations

from fake_useragent import UserAgent

_user_agents = UserAgent()
_desktop_user_agents = UserAgent(platforms="desktop")


def desktop_user_agent() -> str:
    """Return a random desktop browser user-agent string."""
    return _desktop_user_agents.random


def get_headers() -> dict[str, str]:
    """Return a fresh header set with a randomly chosen user agent."""
    return {
        "User-Agent": _user_agents.random,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
        "Upgrade-Insecure-Requests": "1",
        "Referer": "https://www.google.com/",
    }
