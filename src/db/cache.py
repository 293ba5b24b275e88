"""Result cache — snapshot and analysis slots per subnet, fixed TTL.

Two named slots share one key space:

    snapshot:{netuid}  expensive, rate-limited fetch
    analysis:{netuid}  cheap, derived from the snapshot slot

Storing a new snapshot evicts that subnet's analysis so a report is never
served for a snapshot it was not computed from. Last writer wins.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TypeVar

from loguru import logger
from pydantic import BaseModel
from redis.asyncio import Redis

from src.models.analysis import AnalysisReport
from src.models.subnet import Snapshot
from src.parsers.exceptions import PreconditionMissing

DEFAULT_TTL_SEC = 300
REDIS_PREFIX = "minerspy:"

M = TypeVar("M", bound=BaseModel)


class CacheSlot(str, Enum):
    SNAPSHOT = "snapshot"
    ANALYSIS = "analysis"


SLOT_MODELS: dict[CacheSlot, type[BaseModel]] = {
    CacheSlot.SNAPSHOT: Snapshot,
    CacheSlot.ANALYSIS: AnalysisReport,
}


def cache_key(slot: CacheSlot, netuid: int) -> str:
    return f"{slot.value}:{netuid}"


class CacheBackend(Protocol):
    async def get(self, key: str, model: type[M]) -> M | None: ...

    async def set(self, key: str, value: BaseModel, ttl: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def clear(self) -> None: ...

    async def key_count(self) -> int: ...


class MemoryCacheBackend:
    """In-process dict of (expires_at, value). Expired entries drop on read."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, BaseModel]] = {}

    async def get(self, key: str, model: type[M]) -> M | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value  # type: ignore[return-value]

    async def set(self, key: str, value: BaseModel, ttl: int) -> None:
        self._entries[key] = (self._clock() + ttl, value)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self) -> None:
        self._entries.clear()

    async def key_count(self) -> int:
        now = self._clock()
        expired = [k for k, (exp, _) in self._entries.items() if now >= exp]
        for k in expired:
            del self._entries[k]
        return len(self._entries)


class RedisCacheBackend:
    """Redis-backed slots (JSON values, server-side expiry)."""

    def __init__(self, redis: Redis, prefix: str = REDIS_PREFIX) -> None:
        self._redis = redis
        self._prefix = prefix

    async def get(self, key: str, model: type[M]) -> M | None:
        raw = await self._redis.get(self._prefix + key)
        if raw is None:
            return None
        return model.model_validate_json(raw)

    async def set(self, key: str, value: BaseModel, ttl: int) -> None:
        await self._redis.set(self._prefix + key, value.model_dump_json(by_alias=True), ex=ttl)

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._prefix + key)

    async def clear(self) -> None:
        keys = [k async for k in self._redis.scan_iter(match=f"{self._prefix}*")]
        if keys:
            await self._redis.delete(*keys)

    async def key_count(self) -> int:
        return len([k async for k in self._redis.scan_iter(match=f"{self._prefix}*")])


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0


class ResultCache:
    """Snapshot + analysis cache keyed by subnet id."""

    def __init__(self, backend: CacheBackend, ttl: int = DEFAULT_TTL_SEC) -> None:
        self._backend = backend
        self.ttl = ttl
        self._stats = CacheStats()

    async def get(self, slot: CacheSlot, netuid: int) -> BaseModel | None:
        """Stored value, or None when missing or expired."""
        value = await self._backend.get(cache_key(slot, netuid), SLOT_MODELS[slot])
        if value is None:
            self._stats.misses += 1
        else:
            self._stats.hits += 1
        return value

    async def set(self, slot: CacheSlot, netuid: int, value: BaseModel) -> None:
        """Replace the entry and restart its TTL."""
        expected = SLOT_MODELS[slot]
        if not isinstance(value, expected):
            raise TypeError(f"{slot.value} slot holds {expected.__name__}, got {type(value).__name__}")
        await self._backend.set(cache_key(slot, netuid), value, self.ttl)
        if slot is CacheSlot.SNAPSHOT:
            await self._backend.delete(cache_key(CacheSlot.ANALYSIS, netuid))
        logger.debug(f"[CACHE] Stored {slot.value} for subnet {netuid} (ttl={self.ttl}s)")

    async def get_snapshot(self, netuid: int) -> Snapshot | None:
        return await self.get(CacheSlot.SNAPSHOT, netuid)  # type: ignore[return-value]

    async def get_analysis(self, netuid: int) -> AnalysisReport | None:
        return await self.get(CacheSlot.ANALYSIS, netuid)  # type: ignore[return-value]

    async def require_snapshot(self, netuid: int) -> Snapshot:
        """Cached snapshot or PreconditionMissing. Never triggers a fetch."""
        snapshot = await self.get_snapshot(netuid)
        if snapshot is None:
            raise PreconditionMissing(netuid)
        return snapshot

    async def clear(self) -> None:
        await self._backend.clear()
        logger.info("[CACHE] Cleared all entries")

    async def key_count(self) -> int:
        return await self._backend.key_count()

    async def stats(self) -> dict[str, int]:
        return {
            "hits": self._stats.hits,
            "misses": self._stats.misses,
            "keys": await self.key_count(),
        }
