"""Process-wide redis connection for the redis cache backend."""

from loguru import logger
from redis.asyncio import Redis

_redis_client: Redis | None = None


async def connect_redis(url: str) -> Redis:
    """Open (once) and ping the shared client. Connection errors propagate."""
    global _redis_client
    if _redis_client is None:
        client = Redis.from_url(url, decode_responses=True)
        await client.ping()
        logger.info(f"[CACHE] Connected to redis at {url.rsplit('@', 1)[-1]}")
        _redis_client = client
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None
