"""Async client for the miner-spy API with the dashboard retry contract.

- 429: wait ``max(Retry-After, delay * attempt)`` (linear backoff)
- other failures: wait ``delay``
- after ``max_retries`` attempts: raise ClientRetryExhausted with the last error
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
from loguru import logger

DEFAULT_BASE_URL = "http://localhost:3001/api"
MAX_RETRIES = 3
RETRY_DELAY = 2.0


class ClientRetryExhausted(Exception):
    def __init__(self, attempts: int, last_error: Exception) -> None:
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


def _parse_retry_after(value: str | None) -> float | None:
    """Seconds from a Retry-After header (HTTP-date form is not supported)."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


class MinerSpyClient:
    """Async REST client for the miner-spy API."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
        timeout: float = 600.0,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
        self._max_retries = max(1, max_retries)
        self._retry_delay = retry_delay

    async def _request_json(self, method: str, path: str) -> Any:
        response = await self._client.request(method, path)
        response.raise_for_status()
        return response.json()

    def _backoff_delay(self, error: Exception, attempt: int) -> float:
        """Linear backoff floored by Retry-After on 429, fixed delay otherwise."""
        if isinstance(error, httpx.HTTPStatusError) and error.response.status_code == 429:
            delay = self._retry_delay * attempt
            retry_after = _parse_retry_after(error.response.headers.get("Retry-After"))
            if retry_after is not None:
                delay = max(retry_after, delay)
            return delay
        return self._retry_delay

    async def fetch_with_retry(self, method: str, path: str) -> Any:
        """Request ``path`` and return decoded JSON, retrying per the contract."""
        for attempt in range(1, self._max_retries):
            try:
                return await self._request_json(method, path)
            except (httpx.HTTPStatusError, httpx.TransportError) as e:
                delay = self._backoff_delay(e, attempt)
                logger.info(
                    f"[CLIENT] Attempt {attempt} failed ({type(e).__name__}). "
                    f"Retrying in {delay:.0f}s ({attempt}/{self._max_retries})"
                )
                await asyncio.sleep(delay)

        # Final attempt, no retry
        try:
            return await self._request_json(method, path)
        except (httpx.HTTPStatusError, httpx.TransportError) as e:
            raise ClientRetryExhausted(self._max_retries, e) from e

    async def get_subnet(self, subnet_id: int) -> dict:
        return await self.fetch_with_retry("GET", f"/subnet/{subnet_id}")

    async def analyze(self, subnet_id: int) -> dict:
        return await self.fetch_with_retry("GET", f"/analyze/{subnet_id}")

    async def health(self) -> dict:
        return await self.fetch_with_retry("GET", "/health")

    async def clear_cache(self) -> dict:
        return await self.fetch_with_retry("POST", "/cache/clear")

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> MinerSpyClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
