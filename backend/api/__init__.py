"""HTTP API of the scraper service.

Exposes ``GET /api/scrape`` and ``POST /api/search``; the ASGI app is
re-exported for uvicorn::

    uvicorn backend.api:app
"""

from backend.api.app import app

__all__ = ["app"]
