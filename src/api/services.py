"""Singleton registry for the runtime objects the API routes share.

Populated once by ``init_services()`` before uvicorn starts serving.
Routes read these references through ``src.api.dependencies``, safe
without locks because everything runs in a single asyncio event loop.
"""

from __future__ import annotations

from loguru import logger

from config.settings import Settings
from src.db.cache import MemoryCacheBackend, RedisCacheBackend, ResultCache
from src.db.redis import close_redis, connect_redis
from src.parsers.hosting_classifier import HostingVocabulary
from src.parsers.ipapi.client import IpApiClient
from src.parsers.rate_limiter import RateLimiter
from src.parsers.snapshot_builder import SnapshotBuilder
from src.parsers.taostats.client import TaostatsClient


class ServiceRegistry:
    """Holds references to runtime objects for API access."""

    taostats: TaostatsClient | None = None
    ipapi: IpApiClient | None = None
    builder: SnapshotBuilder | None = None
    cache: ResultCache | None = None
    uses_redis: bool = False


CACHE_BACKENDS = ("memory", "redis")

registry = ServiceRegistry()


async def init_services(cfg: Settings) -> ServiceRegistry:
    """Wire clients, builder and cache from settings."""
    if cfg.cache_backend not in CACHE_BACKENDS:
        raise ValueError(f"Unknown cache_backend {cfg.cache_backend!r} (use 'memory' or 'redis')")

    # One limiter per process: every registry call shares the same clock
    limiter = RateLimiter(cfg.registry_min_interval_sec)
    registry.taostats = TaostatsClient(
        api_key=cfg.taostats_api_key,
        rate_limiter=limiter,
        base_url=cfg.taostats_base_url,
        timeout=cfg.taostats_timeout_sec,
    )
    registry.ipapi = IpApiClient(
        base_url=cfg.ipapi_base_url,
        timeout=cfg.geo_timeout_sec,
        vocabulary=HostingVocabulary.with_extras(
            cloud=cfg.extra_cloud_providers,
            vps=cfg.extra_vps_providers,
            residential=cfg.extra_residential_isps,
        ),
    )
    registry.builder = SnapshotBuilder(
        registry.taostats,
        registry.ipapi,
        page_size=cfg.metagraph_page_size,
        batch_size=cfg.geo_batch_size,
        batch_delay=cfg.geo_batch_delay_sec,
    )

    if cfg.cache_backend == "redis":
        backend = RedisCacheBackend(await connect_redis(cfg.redis_url))
        registry.uses_redis = True
    else:
        backend = MemoryCacheBackend()
    registry.cache = ResultCache(backend, ttl=cfg.cache_ttl_sec)

    if not cfg.taostats_api_key:
        logger.warning("[API] TAOSTATS_API_KEY is not set, registry calls will be rejected")
    logger.info(
        f"[API] Services ready: cache={cfg.cache_backend} ttl={cfg.cache_ttl_sec}s, "
        f"registry interval={cfg.registry_min_interval_sec}s"
    )
    return registry


async def close_services() -> None:
    if registry.taostats:
        await registry.taostats.close()
    if registry.ipapi:
        await registry.ipapi.close()
    if registry.uses_redis:
        await close_redis()
    registry.taostats = registry.ipapi = registry.builder = registry.cache = None
    registry.uses_redis = False
