"""Web scraper CLI — entry-point for standalone runs and the HTTP server.

Usage:
    python cli/main.py --help

Commands:
    scrape   → scrape one URL (defaults to TARGET_URL), optionally paginated
    search   → discover URLs for a keyword and batch-scrape them
    serve    → run the HTTP API
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from backend.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import asyncio
import json
import logging
from dataclasses import asdict
from typing import Optional

import typer

from backend.config import settings

logger = logging.getLogger("cli")

app = typer.Typer(
    name="webscraper",
    help="Headless-browser web scraper.",
    no_args_is_help=True,
)


def _configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def _dump(data: object) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Scrape commands
# ---------------------------------------------------------------------------
@app.command("scrape")
def scrape(
    url: Optional[str] = typer.Argument(None, help="URL to scrape (defaults to TARGET_URL)."),
    pages: int = typer.Option(1, "--pages", min=1, help="Number of paginated pages to scrape."),
) -> None:
    """Scrape a URL and print the extracted content as JSON."""
    from backend.scraper import scrape_multiple_pages, scrape_single_url

    _configure_logging()
    target = url or settings.target_url
    if not target:
        typer.echo("[scrape] No URL given and TARGET_URL is not set.", err=True)
        raise typer.Exit(1)

    logger.info("Scraping %r (%d page(s))", target, pages)
    try:
        if pages > 1:
            results = asyncio.run(scrape_multiple_pages(target, pages))
            _dump([asdict(r) for r in results])
        else:
            _dump(asdict(asyncio.run(scrape_single_url(target))))
    except Exception as exc:
        typer.echo(f"[scrape] Scraping failed: {exc}", err=True)
        raise typer.Exit(1)


@app.command("search")
def search(
    keyword: str = typer.Argument(..., help="Search keyword."),
    pages: int = typer.Option(1, "--pages", min=1, help="Pages to scrape per discovered URL."),
    limit: int = typer.Option(settings.discovery_limit, "--limit", min=1, help="Maximum URLs to scrape."),
) -> None:
    """Discover URLs for a keyword and scrape them across Chromium and WebKit."""
    from backend.scraper import discover_urls, dispatch_batch

    _configure_logging()
    urls = asyncio.run(discover_urls(keyword, limit))
    if not urls:
        typer.echo(f"[search] No URLs found for {keyword!r}.", err=True)
        raise typer.Exit(1)

    logger.info("Scraping %d URL(s) for %r", len(urls), keyword)
    results = asyncio.run(dispatch_batch(urls, pages))
    _dump([asdict(r) for r in results])


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option(settings.host, help="Interface to bind."),
    port: int = typer.Option(settings.port, help="Port to listen on."),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    _configure_logging()
    uvicorn.run("backend.api.app:app", host=host, port=port, log_level=settings.log_level.lower())


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
