"""Cache maintenance endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.api.dependencies import get_cache
from src.db.cache import ResultCache

router = APIRouter(prefix="/api", tags=["cache"])


class ClearResponse(BaseModel):
    message: str


@router.post("/cache/clear", response_model=ClearResponse)
async def clear_cache(cache: ResultCache = Depends(get_cache)) -> ClearResponse:
    await cache.clear()
    return ClearResponse(message="Cache cleared successfully")
