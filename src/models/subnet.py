"""Snapshot models — one subnet's registry enriched with geolocation."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from src.models.base import ApiModel

UNKNOWN = "Unknown"
NO_ADDRESS = "N/A"
NON_ROUTABLE_IPS = frozenset({"0.0.0.0", "127.0.0.1"})

# Registry scores are passed through untouched (TaoStats mixes numbers and numeric strings)
Opaque = int | float | str | None


class HostingType(str, Enum):
    """Closed set of hosting classifications, ordered by centralization risk."""

    HOSTING_CLOUD = "Hosting/Cloud"  # upstream flagged as hosting/datacenter
    CLOUD_PROVIDER = "Cloud Provider"
    VPS_HOSTING = "VPS/Hosting"
    HOSTING_DATACENTER = "Hosting/Datacenter"
    RESIDENTIAL = "Residential"
    UNKNOWN = "Unknown"


CLOUD_HOSTING_TYPES = frozenset({
    HostingType.CLOUD_PROVIDER,
    HostingType.HOSTING_CLOUD,
    HostingType.VPS_HOSTING,
})


class AxonInfo(ApiModel):
    """Advertised network address. ``ip == "N/A"`` means the neuron serves nothing."""

    ip: str = NO_ADDRESS
    port: int | None = None
    protocol: int | str | None = None

    @classmethod
    def none(cls) -> AxonInfo:
        return cls()

    @property
    def has_address(self) -> bool:
        return bool(self.ip) and self.ip != NO_ADDRESS


def is_routable(ip: str | None) -> bool:
    return bool(ip) and ip != NO_ADDRESS and ip not in NON_ROUTABLE_IPS


class GeoRecord(ApiModel):
    """Geolocation + network provider metadata for one address.

    ``resolved`` tags the variant: an unresolved record carries placeholder
    fields only and must not feed any aggregate that trusts its values.
    """

    resolved: bool = False
    country: str = UNKNOWN
    country_code: str = UNKNOWN
    city: str = UNKNOWN
    region: str = UNKNOWN
    lat: float = 0.0
    lon: float = 0.0
    isp: str = UNKNOWN
    organization: str = UNKNOWN
    asn: str = UNKNOWN  # e.g. "AS16509 Amazon.com, Inc."
    asname: str = UNKNOWN
    hosting_type: HostingType = HostingType.UNKNOWN
    is_proxy: bool = False
    is_mobile: bool = False
    is_hosting: bool = False
    timezone: str = UNKNOWN

    @classmethod
    def unknown(cls) -> GeoRecord:
        return cls(resolved=False)

    @property
    def asn_id(self) -> str | None:
        """AS number token ("AS16509"), None when unresolved."""
        if not self.resolved or not self.asn or self.asn == UNKNOWN:
            return None
        return self.asn.split(" ")[0]

    @property
    def label(self) -> str:
        return f"{self.city}, {self.country}"


class Miner(ApiModel):
    """One registered neuron (miner or validator)."""

    uid: int
    hotkey: str | None = None
    coldkey: str | None = None
    stake: Opaque = None
    trust: Opaque = None
    consensus: Opaque = None
    incentive: Opaque = None
    dividends: Opaque = None
    emission: Opaque = None
    daily_reward: Opaque = None
    active: bool | None = None
    validator_permit: bool = False
    axon_info: AxonInfo = AxonInfo()
    location: GeoRecord = GeoRecord()


class SubnetInfo(ApiModel):
    netuid: int
    name: str
    owner: str | None = None
    max_neurons: int | None = None
    active_keys: int | None = None
    validators: int | None = None
    active_validators: int | None = None
    active_miners: int | None = None
    tempo: int | None = None
    difficulty: Opaque = None
    emission: Opaque = None
    registration_cost: Opaque = None


class Snapshot(ApiModel):
    """Immutable registry snapshot, miners in registry order."""

    subnet: SubnetInfo
    miners: tuple[Miner, ...] = ()
    last_updated: datetime
