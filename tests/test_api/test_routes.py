"""Tests for the HTTP boundary — snapshot, analysis, health, cache endpoints."""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError

from config.settings import Settings
from src.api.app import create_app, limiter
from src.api.dependencies import get_builder, get_cache, get_settings, get_taostats
from src.db.cache import MemoryCacheBackend, RedisCacheBackend, ResultCache
from src.parsers.exceptions import MalformedUpstreamData, UpstreamUnavailable


@pytest.fixture
def cache() -> ResultCache:
    return ResultCache(MemoryCacheBackend(), ttl=300)


@pytest.fixture
def builder(snapshot) -> AsyncMock:
    builder = AsyncMock()
    builder.build = AsyncMock(return_value=snapshot)
    return builder


@pytest.fixture
def taostats() -> AsyncMock:
    client = AsyncMock()
    client.test_connection = AsyncMock(
        return_value={"subnet_found": True, "has_pagination": True, "has_data": True, "data_count": 1}
    )
    return client


@pytest_asyncio.fixture
async def api(cache, builder, taostats) -> AsyncGenerator[httpx.AsyncClient, None]:
    limiter.reset()
    app = create_app()
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_builder] = lambda: builder
    app.dependency_overrides[get_taostats] = lambda: taostats
    app.dependency_overrides[get_settings] = lambda: Settings(
        taostats_api_key="key", default_subnet_id=8, _env_file=None
    )
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


class TestSubnetEndpoint:
    @pytest.mark.asyncio
    async def test_builds_on_miss_then_serves_cache(self, api, builder, cache) -> None:
        first = await api.get("/api/subnet/8")
        second = await api.get("/api/subnet/8")

        assert first.status_code == 200
        assert second.json() == first.json()
        builder.build.assert_awaited_once_with(8)
        assert await cache.get_snapshot(8) is not None

        body = first.json()
        assert body["subnet"]["netuid"] == 8
        assert len(body["miners"]) == 10
        miner = body["miners"][3]
        assert miner["axonInfo"]["ip"] == "1.2.3.4"
        assert miner["validatorPermit"] is False
        assert miner["location"]["hostingType"] == "Cloud Provider"
        assert "lastUpdated" in body

    @pytest.mark.asyncio
    async def test_upstream_failure_is_500(self, api, builder, cache) -> None:
        builder.build = AsyncMock(
            side_effect=UpstreamUnavailable("HTTP 401", status_code=401, body="Unauthorized")
        )
        resp = await api.get("/api/subnet/8")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to fetch subnet data", "details": "HTTP 401"}
        assert await cache.get_snapshot(8) is None

    @pytest.mark.asyncio
    async def test_malformed_upstream_is_500(self, api, builder) -> None:
        builder.build = AsyncMock(side_effect=MalformedUpstreamData("data is dict"))
        resp = await api.get("/api/subnet/8")
        assert resp.status_code == 500
        assert resp.json()["details"] == "data is dict"

    @pytest.mark.asyncio
    async def test_cache_backend_failure_is_json_500(self, api, cache) -> None:
        redis = AsyncMock()
        redis.get = AsyncMock(side_effect=RedisConnectionError("Connection refused"))
        cache._backend = RedisCacheBackend(redis)

        resp = await api.get("/api/subnet/8")
        assert resp.status_code == 500
        assert resp.headers["content-type"].startswith("application/json")
        assert resp.json() == {"error": "Failed to fetch subnet data", "details": "Connection refused"}

    @pytest.mark.asyncio
    async def test_unexpected_build_error_is_json_500(self, api, builder) -> None:
        builder.build = AsyncMock(side_effect=RuntimeError("event loop closed"))
        resp = await api.get("/api/subnet/8")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to fetch subnet data", "details": "event loop closed"}

    @pytest.mark.asyncio
    async def test_inbound_rate_limit_returns_retry_after(self, api) -> None:
        statuses = [(await api.get("/api/subnet/8")).status_code for _ in range(30)]
        assert set(statuses) == {200}

        resp = await api.get("/api/subnet/8")
        assert resp.status_code == 429
        assert resp.headers["Retry-After"].isdigit()
        assert resp.json()["error"] == "Rate limit exceeded"


class TestAnalyzeEndpoint:
    @pytest.mark.asyncio
    async def test_requires_snapshot_first(self, api, builder) -> None:
        resp = await api.get("/api/analyze/8")
        assert resp.status_code == 400
        assert resp.json()["error"] == "Subnet data not found"
        builder.build.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_analysis_after_fetch(self, api, cache) -> None:
        await api.get("/api/subnet/8")
        resp = await api.get("/api/analyze/8")

        assert resp.status_code == 200
        report = resp.json()
        assert report["totalMiners"] == 10
        assert report["ipClusterCount"] == 1
        assert report["ipClusters"][0]["uids"] == [3, 7]
        assert report["hhi"] == 2000
        assert report["adjustedHHI"] == 2200
        assert report["concentrationLevel"] == "Moderately Concentrated"
        assert await cache.get_analysis(8) is not None

    @pytest.mark.asyncio
    async def test_cached_analysis_served(self, api) -> None:
        await api.get("/api/subnet/8")
        first = await api.get("/api/analyze/8")
        second = await api.get("/api/analyze/8")
        assert first.json()["lastAnalyzed"] == second.json()["lastAnalyzed"]

    @pytest.mark.asyncio
    async def test_analysis_failure_is_500(self, api, cache) -> None:
        await api.get("/api/subnet/8")
        with patch("src.api.routers.analysis.analyze", side_effect=ZeroDivisionError("division by zero")):
            resp = await api.get("/api/analyze/8")

        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to analyze centralization", "details": "division by zero"}
        assert await cache.get_analysis(8) is None

    @pytest.mark.asyncio
    async def test_analysis_cache_failure_is_500(self, api, cache) -> None:
        redis = AsyncMock()
        redis.get = AsyncMock(side_effect=RedisConnectionError("Connection reset"))
        cache._backend = RedisCacheBackend(redis)

        resp = await api.get("/api/analyze/8")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to analyze centralization", "details": "Connection reset"}


class TestHealthAndCache:
    @pytest.mark.asyncio
    async def test_health(self, api) -> None:
        await api.get("/api/subnet/8")
        resp = await api.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["config"]["default_subnet"] == 8
        assert body["config"]["api_key_configured"] is True
        assert body["config"]["cache_ttl_sec"] == 300
        assert body["cache"]["keys"] == 1

    @pytest.mark.asyncio
    async def test_clear_cache(self, api, cache) -> None:
        await api.get("/api/subnet/8")
        resp = await api.post("/api/cache/clear")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Cache cleared successfully"}
        assert await cache.key_count() == 0

        # analysis now needs a fresh fetch
        assert (await api.get("/api/analyze/8")).status_code == 400

    @pytest.mark.asyncio
    async def test_connection_ok(self, api, taostats) -> None:
        resp = await api.get("/api/test-connection")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "success"
        assert body["subnet_found"] is True
        assert body["api_response_structure"]["data_count"] == 1
        taostats.test_connection.assert_awaited_once_with(8)

    @pytest.mark.asyncio
    async def test_connection_failure(self, api, taostats) -> None:
        taostats.test_connection = AsyncMock(
            side_effect=UpstreamUnavailable("HTTP 401", status_code=401, body="bad key")
        )
        resp = await api.get("/api/test-connection")
        assert resp.status_code == 500
        body = resp.json()
        assert body["status"] == "error"
        assert body["api_response"] == "bad key"

