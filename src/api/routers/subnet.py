"""Subnet snapshot endpoint — cached, built on miss."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger

from config.settings import settings
from src.api.app import error_response, limiter
from src.api.dependencies import get_builder, get_cache
from src.db.cache import CacheSlot, ResultCache
from src.models.subnet import Snapshot
from src.parsers.exceptions import MinerSpyError, UpstreamUnavailable
from src.parsers.snapshot_builder import SnapshotBuilder

router = APIRouter(prefix="/api", tags=["subnet"])


@router.get("/subnet/{subnet_id}", response_model=Snapshot)
@limiter.limit(settings.api_rate_limit)
async def get_subnet(
    request: Request,
    subnet_id: int,
    cache: ResultCache = Depends(get_cache),
    builder: SnapshotBuilder = Depends(get_builder),
) -> Snapshot | JSONResponse:
    """Return the subnet snapshot, fetching and geolocating on cache miss."""
    try:
        cached = await cache.get_snapshot(subnet_id)
        if cached is not None:
            logger.debug(f"[API] Returning cached subnet {subnet_id} data")
            return cached

        snapshot = await builder.build(subnet_id)
        await cache.set(CacheSlot.SNAPSHOT, subnet_id, snapshot)
    except MinerSpyError as e:
        logger.error(f"[API] Error fetching subnet {subnet_id} data: {e}")
        if isinstance(e, UpstreamUnavailable) and e.body:
            logger.error(f"[API] Upstream response: {e.body[:500]}")
        return error_response(500, "Failed to fetch subnet data", str(e))
    except Exception as e:
        logger.exception(f"[API] Unexpected error serving subnet {subnet_id}")
        return error_response(500, "Failed to fetch subnet data", str(e))

    logger.info(f"[API] Cached subnet {subnet_id} data with {len(snapshot.miners)} miners")
    return snapshot
