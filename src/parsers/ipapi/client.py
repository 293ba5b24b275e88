"""ip-api.com client — free geolocation with ISP / ASN / hosting flags."""

from __future__ import annotations

import httpx
from loguru import logger
from pydantic import ValidationError

from src.models.subnet import UNKNOWN, GeoRecord
from src.parsers.exceptions import ResolutionUnresolvable
from src.parsers.hosting_classifier import (
    DEFAULT_VOCABULARY,
    HostingVocabulary,
    classify_hosting_type,
)
from src.parsers.ipapi.models import IpApiResponse

BASE_URL = "http://ip-api.com"
FIELDS = (
    "status,message,country,countryCode,region,regionName,city,zip,lat,lon,"
    "timezone,isp,org,as,asname,reverse,mobile,proxy,hosting"
)


class IpApiClient:
    """Async geolocation resolver. ``resolve()`` never raises."""

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = 5.0,
        vocabulary: HostingVocabulary = DEFAULT_VOCABULARY,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
        self._vocabulary = vocabulary

    async def close(self) -> None:
        await self._client.aclose()

    async def resolve(self, ip: str) -> GeoRecord:
        """Geolocate an address, degrading to the Unknown record on any failure."""
        try:
            return await self._lookup(ip)
        except ResolutionUnresolvable as e:
            logger.debug(f"[IPAPI] {ip}: {e}")
        except (httpx.HTTPError, ValueError) as e:
            # ValueError: body is not JSON
            logger.warning(f"[IPAPI] Geolocation failed for {ip}: {type(e).__name__}: {e}")
        return GeoRecord.unknown()

    async def _lookup(self, ip: str) -> GeoRecord:
        resp = await self._client.get(f"/json/{ip}", params={"fields": FIELDS})
        if resp.status_code != 200:
            if resp.headers.get("X-Rl") == "0":
                logger.warning(
                    f"[IPAPI] Quota exhausted, resets in {resp.headers.get('X-Ttl', '?')}s"
                )
            raise ResolutionUnresolvable(f"HTTP {resp.status_code}")

        try:
            data = IpApiResponse.model_validate(resp.json())
        except ValidationError as e:
            raise ResolutionUnresolvable(f"unexpected response shape: {e.error_count()} errors") from e

        if data.status != "success":
            raise ResolutionUnresolvable(f"lookup failed ({data.message or 'no message'})")

        return _to_geo_record(data, self._vocabulary)


def _text(val: str | None) -> str:
    return val if val else UNKNOWN


def _to_geo_record(data: IpApiResponse, vocabulary: HostingVocabulary) -> GeoRecord:
    return GeoRecord(
        resolved=True,
        country=_text(data.country),
        country_code=_text(data.countryCode),
        city=_text(data.city),
        region=_text(data.regionName),
        lat=data.lat or 0.0,
        lon=data.lon or 0.0,
        isp=_text(data.isp),
        organization=_text(data.org),
        asn=_text(data.as_),
        asname=_text(data.asname),
        hosting_type=classify_hosting_type(
            data.isp, data.org, data.as_, data.hosting, vocabulary=vocabulary
        ),
        is_proxy=data.proxy,
        is_mobile=data.mobile,
        is_hosting=data.hosting,
        timezone=_text(data.timezone),
    )
