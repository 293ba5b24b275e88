"""Pydantic models for ip-api.com JSON responses."""

from pydantic import BaseModel, Field


class IpApiResponse(BaseModel):
    """Response from /json/{ip}. Missing fields only on ``status == "fail"``."""

    status: str
    message: str | None = None
    country: str | None = None
    countryCode: str | None = None
    region: str | None = None
    regionName: str | None = None
    city: str | None = None
    zip: str | None = None
    lat: float | None = None
    lon: float | None = None
    timezone: str | None = None
    isp: str | None = None
    org: str | None = None
    as_: str | None = Field(default=None, alias="as")  # "AS16509 Amazon.com, Inc."
    asname: str | None = None
    reverse: str | None = None
    mobile: bool = False
    proxy: bool = False
    hosting: bool = False

    model_config = {"extra": "ignore", "populate_by_name": True}
