"""FastAPI application factory for the miner-spy API."""

from __future__ import annotations

import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.cors import CORSMiddleware

from config.settings import settings

# Rate limiter (shared instance)
limiter = Limiter(key_func=get_remote_address)

DEFAULT_RETRY_AFTER_SEC = 60


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    """``{error, details}`` body used by every failing endpoint."""
    body: dict[str, str] = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def _retry_after_seconds(exc: RateLimitExceeded) -> int:
    try:
        return int(exc.limit.limit.get_expiry())
    except AttributeError:
        return DEFAULT_RETRY_AFTER_SEC


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 with Retry-After so dashboard clients know how long to back off."""
    response = error_response(429, "Rate limit exceeded", str(exc.detail))
    response.headers["Retry-After"] = str(_retry_after_seconds(exc))
    return response


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app = FastAPI(
        title="Miner Spy API",
        version="0.1.0",
        docs_url="/api/docs" if os.getenv("API_DEBUG") else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if os.getenv("API_DEBUG") else None,
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)  # type: ignore[arg-type]

    # CORS: dashboard dev server runs on its own port
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["Retry-After"],
    )

    # Import and include routers
    from src.api.routers.analysis import router as analysis_router
    from src.api.routers.cache import router as cache_router
    from src.api.routers.health import router as health_router
    from src.api.routers.subnet import router as subnet_router

    app.include_router(health_router)
    app.include_router(subnet_router)
    app.include_router(analysis_router)
    app.include_router(cache_router)

    return app
