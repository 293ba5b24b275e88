"""Centralization analysis endpoint — derived from the cached snapshot only."""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from loguru import logger

from src.api.app import error_response
from src.api.dependencies import get_cache
from src.db.cache import CacheSlot, ResultCache
from src.models.analysis import AnalysisReport
from src.parsers.concentration import analyze
from src.parsers.exceptions import PreconditionMissing

router = APIRouter(prefix="/api", tags=["analysis"])


@router.get("/analyze/{subnet_id}", response_model=AnalysisReport)
async def analyze_subnet(
    subnet_id: int,
    cache: ResultCache = Depends(get_cache),
) -> AnalysisReport | JSONResponse:
    """Analyze centralization. Requires GET /api/subnet/{id} first."""
    try:
        cached = await cache.get_analysis(subnet_id)
        if cached is not None:
            return cached

        snapshot = await cache.require_snapshot(subnet_id)
        report = analyze(snapshot, analyzed_at=datetime.now(UTC))
        await cache.set(CacheSlot.ANALYSIS, subnet_id, report)
    except PreconditionMissing as e:
        logger.warning(f"[API] Analysis requested before fetch: {e}")
        return error_response(400, "Subnet data not found", "Fetch subnet data first.")
    except Exception as e:
        logger.exception(f"[API] Error analyzing subnet {subnet_id}")
        return error_response(500, "Failed to analyze centralization", str(e))

    logger.info(
        f"[API] Subnet {subnet_id}: {report.concentration_level.value}, "
        f"HHI={report.hhi} adjusted={report.adjusted_hhi} score={report.decentralization_score}"
    )
    return report
