"""Centralization analysis report models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from src.models.base import ApiModel
from src.models.subnet import HostingType


class ConcentrationLevel(str, Enum):
    HIGHLY_CONCENTRATED = "Highly Concentrated"
    MODERATELY_CONCENTRATED = "Moderately Concentrated"
    UNCONCENTRATED = "Unconcentrated"
    HIGHLY_DECENTRALIZED = "Highly Decentralized"


class IpCluster(ApiModel):
    """Several miners advertising the same address (shared host / NAT)."""

    ip: str
    count: int
    uids: tuple[int, ...]
    location: str
    hosting_type: HostingType


class AsnConcentration(ApiModel):
    asn: str
    asname: str
    count: int
    percentage: float
    hosting_type: HostingType


class HostingShare(ApiModel):
    type: HostingType
    count: int
    percentage: float


class OwnerShare(ApiModel):
    coldkey: str  # truncated label
    count: int
    percentage: float


class AnalysisReport(ApiModel):
    total_miners: int
    unique_owners: int
    hhi: int
    adjusted_hhi: int = Field(alias="adjustedHHI")
    concentration_level: ConcentrationLevel
    top_owners: tuple[OwnerShare, ...]
    geographic_distribution: dict[str, int]
    decentralization_score: float

    ip_clusters: tuple[IpCluster, ...]
    ip_cluster_count: int
    asn_concentration: tuple[AsnConcentration, ...]
    hosting_distribution: tuple[HostingShare, ...]
    cloud_centralization_risk: float
    total_unique_ips: int = Field(alias="totalUniqueIPs")
    total_unique_asns: int = Field(alias="totalUniqueASNs")
    geolocated_miners: int

    miners_with_ips: int = Field(alias="minersWithIPs")
    miners_without_ips: int = Field(alias="minersWithoutIPs")
    validator_count: int
    validators_without_axons: int
    potentially_inactive_miners: int
    miner_axon_coverage: float
    axon_coverage: float  # legacy name for miner_axon_coverage

    last_analyzed: datetime
