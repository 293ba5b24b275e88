"""FastAPI dependency injection — cache, builder, registry client, settings."""

from __future__ import annotations

from fastapi import HTTPException, status

from config.settings import Settings, settings
from src.api.services import registry
from src.db.cache import ResultCache
from src.parsers.snapshot_builder import SnapshotBuilder
from src.parsers.taostats.client import TaostatsClient


def _not_ready(name: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=f"{name} not initialized",
    )


def get_settings() -> Settings:
    return settings


def get_cache() -> ResultCache:
    if registry.cache is None:
        raise _not_ready("cache")
    return registry.cache


def get_builder() -> SnapshotBuilder:
    if registry.builder is None:
        raise _not_ready("snapshot builder")
    return registry.builder


def get_taostats() -> TaostatsClient:
    if registry.taostats is None:
        raise _not_ready("registry client")
    return registry.taostats
