"""TaoStats registry API client — subnet metadata and metagraph.

Every request goes through the injected RateLimiter (free plan allows
5 calls/min). No retries here: errors surface to the caller unchanged.
"""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from src.parsers.exceptions import MalformedUpstreamData, UpstreamUnavailable
from src.parsers.rate_limiter import RateLimiter
from src.parsers.taostats.models import RegistryNeuron, RegistrySubnet

BASE_URL = "https://api.taostats.io/api"
SUBNET_PATH = "/subnet/latest/v1"
METAGRAPH_PATH = "/metagraph/latest/v1"
DEFAULT_PAGE_SIZE = 500


class TaostatsClient:
    """Async REST client for the TaoStats API (key required)."""

    def __init__(
        self,
        api_key: str,
        rate_limiter: RateLimiter,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={"Authorization": api_key, "Accept": "application/json"},
        )
        self._rate_limiter = rate_limiter
        self.base_url = base_url

    async def fetch(self, path: str, params: dict[str, Any] | None = None) -> dict:
        """Rate-limited GET returning the decoded JSON object."""
        waited = await self._rate_limiter.acquire()
        if waited > 0:
            logger.debug(f"[TAOSTATS] Rate limiting: waited {waited:.1f}s before {path}")

        try:
            response = await self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"{path}: {type(e).__name__}: {e}") from e

        if response.is_error:
            raise UpstreamUnavailable(
                f"{path}: HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise MalformedUpstreamData(f"{path}: response is not JSON") from e
        if not isinstance(data, dict):
            raise MalformedUpstreamData(f"{path}: expected JSON object, got {type(data).__name__}")
        return data

    async def get_subnet(self, netuid: int) -> RegistrySubnet:
        """Latest subnet metadata (defaults if the registry has no row)."""
        rows = _data_rows(await self.fetch(SUBNET_PATH, {"netuid": netuid}), SUBNET_PATH)
        if not rows:
            logger.warning(f"[TAOSTATS] No subnet metadata for netuid={netuid}")
            return RegistrySubnet(netuid=netuid)
        try:
            return RegistrySubnet.model_validate(rows[0])
        except ValidationError as e:
            raise MalformedUpstreamData(f"{SUBNET_PATH}: {e}") from e

    async def get_metagraph(self, netuid: int, limit: int = DEFAULT_PAGE_SIZE) -> list[RegistryNeuron]:
        """Latest metagraph rows, registry order."""
        rows = _data_rows(
            await self.fetch(METAGRAPH_PATH, {"netuid": netuid, "limit": limit}),
            METAGRAPH_PATH,
        )
        try:
            neurons = [RegistryNeuron.model_validate(r) for r in rows]
        except ValidationError as e:
            raise MalformedUpstreamData(f"{METAGRAPH_PATH}: {e}") from e
        logger.info(f"[TAOSTATS] Found {len(neurons)} neurons for subnet {netuid}")
        return neurons

    async def test_connection(self, netuid: int) -> dict[str, Any]:
        """Liveness probe: one subnet row, reports the response structure."""
        data = await self.fetch(SUBNET_PATH, {"netuid": netuid, "limit": 1})
        rows = data.get("data")
        return {
            "subnet_found": bool(rows),
            "has_pagination": bool(data.get("pagination")),
            "has_data": rows is not None,
            "data_count": len(rows) if isinstance(rows, list) else 0,
        }

    async def close(self) -> None:
        await self._client.aclose()


def _data_rows(payload: dict, path: str) -> list:
    rows = payload.get("data", [])
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise MalformedUpstreamData(f"{path}: 'data' is {type(rows).__name__}, expected list")
    return rows
