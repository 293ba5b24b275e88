"""Health check and registry connectivity probe — no auth required."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from config.settings import Settings
from src.api.dependencies import get_cache, get_settings, get_taostats
from src.db.cache import ResultCache
from src.parsers.exceptions import MinerSpyError, UpstreamUnavailable
from src.parsers.taostats.client import TaostatsClient

router = APIRouter(prefix="/api", tags=["health"])


class HealthConfig(BaseModel):
    api_base: str
    default_subnet: int
    api_key_configured: bool
    cache_ttl_sec: int
    registry_min_interval_sec: float


class HealthCache(BaseModel):
    keys: int
    stats: dict[str, int]


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    config: HealthConfig
    cache: HealthCache


@router.get("/health", response_model=HealthResponse)
async def health_check(
    cache: ResultCache = Depends(get_cache),
    cfg: Settings = Depends(get_settings),
) -> HealthResponse:
    """Process status, configured defaults and cache size."""
    stats = await cache.stats()
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        config=HealthConfig(
            api_base=cfg.taostats_base_url,
            default_subnet=cfg.default_subnet_id,
            api_key_configured=bool(cfg.taostats_api_key),
            cache_ttl_sec=cache.ttl,
            registry_min_interval_sec=cfg.registry_min_interval_sec,
        ),
        cache=HealthCache(keys=stats["keys"], stats=stats),
    )


@router.get("/test-connection")
async def test_connection(
    client: TaostatsClient = Depends(get_taostats),
    cfg: Settings = Depends(get_settings),
) -> Any:
    """Probe the registry API with a single subnet-metadata call."""
    try:
        probe = await client.test_connection(cfg.default_subnet_id)
    except MinerSpyError as e:
        logger.warning(f"[API] Registry connection test failed: {e}")
        body = e.body if isinstance(e, UpstreamUnavailable) else None
        return JSONResponse(
            status_code=500,
            content={
                "status": "error",
                "message": "API connection failed",
                "error": str(e),
                "api_response": body,
            },
        )

    return {
        "status": "success",
        "message": "API connection successful",
        "subnet_found": probe["subnet_found"],
        "api_response_structure": {
            "has_pagination": probe["has_pagination"],
            "has_data": probe["has_data"],
            "data_count": probe["data_count"],
        },
    }
