"""FastAPI application factory.

Routers
-------
All scraping endpoints are mounted under ``/api``:

    GET  /api/scrape   — scrape one URL (optionally paginated)
    POST /api/search   — discover URLs for a keyword and batch-scrape them

Static files
------------
When the configured frontend directory exists it is served from ``/``.
It is mounted last so it never shadows the API routes.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from backend.config import Settings, settings as default_settings

from backend.api.routers import scrape as scrape_router

logger = logging.getLogger(__name__)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed input as a 400 with the usual ``{"error": ...}`` body."""
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Invalid request parameters."})


def create_app(settings: Settings = default_settings) -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Web Scraper API",
        description=(
            "Headless-browser scraping of titles, headings and paragraphs, "
            "with pagination and keyword-driven discovery of target URLs."
        ),
        version="1.0.0",
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(scrape_router.router, prefix="/api", tags=["scrape"])

    if settings.frontend_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.frontend_dir, html=True), name="frontend")

    return app


# Module-level instance used by uvicorn:
#   uvicorn backend.api.app:app --reload
app = create_app()
