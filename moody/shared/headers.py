"""Response headers for API services."""

from fastapi import FastAPI, Request
from fastapi.responses import Response


def setup_nosniff_header(app: FastAPI) -> None:
    """Add X-Content-Type-Options header."""

    @app.middleware("http")
    async def add_nosniff_header(request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        return response


def setup_cache_control(app: FastAPI) -> None:
    """Mark API responses as non-cacheable; the client keeps its own cache."""

    @app.middleware("http")
    async def add_cache_control(request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.setdefault(
            "Cache-Control",
            "no-cache, no-store, must-revalidate",
        )
        return response
