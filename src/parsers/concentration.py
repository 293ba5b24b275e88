"""Subnet centralization analysis — ownership HHI, IP clustering, ASN and hosting mix.

Pure function of a Snapshot: no I/O, deterministic, never mutates its input.

Scoring:
- Base HHI over coldkey groups (percentage shares, 0..10000)
- Shared-IP penalty: each cluster of 2+ miners on one address adds its
  squared share at half weight (NAT / shared host risk not visible in keys)
- Decentralization score: 100 - HHI/100, minus capped cluster (20) and
  cloud hosting (30) penalties, floored at 0
"""

from __future__ import annotations

import math
from collections import Counter, defaultdict
from datetime import datetime

from loguru import logger

from src.models.analysis import (
    AnalysisReport,
    AsnConcentration,
    ConcentrationLevel,
    HostingShare,
    IpCluster,
    OwnerShare,
)
from src.models.subnet import CLOUD_HOSTING_TYPES, UNKNOWN, Miner, Snapshot

UNKNOWN_OWNER = "unknown"
TOP_N = 10
IP_CLUSTER_WEIGHT = 0.5
MAX_CLUSTER_PENALTY = 20.0
CLUSTER_PENALTY_EACH = 5.0
MAX_CLOUD_PENALTY = 30.0
CLOUD_PENALTY_FACTOR = 0.5

# (adjusted HHI above, suspicious clusters above, level); first match wins
LEVEL_THRESHOLDS: tuple[tuple[float, int, ConcentrationLevel], ...] = (
    (2500, 5, ConcentrationLevel.HIGHLY_CONCENTRATED),
    (1500, 2, ConcentrationLevel.MODERATELY_CONCENTRATED),
    (1000, 0, ConcentrationLevel.UNCONCENTRATED),
)


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round ties away from zero for non-negative values (0.25 -> 0.3, 262.5 -> 263)."""
    scale = 10**ndigits
    return math.floor(value * scale + 0.5) / scale


def share_pct(count: int, total: int) -> float:
    """Percentage share; 0 when total is 0."""
    if total == 0:
        return 0.0
    return count / total * 100


def group_by_owner(miners: tuple[Miner, ...]) -> dict[str, list[Miner]]:
    """Coldkey groups by exact string match, insertion ordered."""
    groups: dict[str, list[Miner]] = defaultdict(list)
    for m in miners:
        groups[m.coldkey or UNKNOWN_OWNER].append(m)
    return groups


def herfindahl_index(group_sizes: list[int], total: int) -> float:
    return sum(share_pct(size, total) ** 2 for size in group_sizes)


def find_ip_clusters(miners: tuple[Miner, ...]) -> tuple[list[IpCluster], int]:
    """Shared-address clusters (2+ miners), largest first, plus distinct IP count."""
    by_ip: dict[str, list[Miner]] = defaultdict(list)
    for m in miners:
        if m.axon_info.has_address:
            by_ip[m.axon_info.ip].append(m)

    clusters = [
        IpCluster(
            ip=ip,
            count=len(members),
            uids=tuple(m.uid for m in members),
            location=members[0].location.label,
            hosting_type=members[0].location.hosting_type,
        )
        for ip, members in by_ip.items()
        if len(members) > 1
    ]
    clusters.sort(key=lambda c: c.count, reverse=True)
    return clusters, len(by_ip)


def asn_concentration(miners: tuple[Miner, ...], total: int) -> tuple[list[AsnConcentration], int]:
    """Top ASNs by miner count, plus distinct ASN count."""
    by_asn: dict[str, list[Miner]] = defaultdict(list)
    for m in miners:
        asn_id = m.location.asn_id
        if asn_id:
            by_asn[asn_id].append(m)

    rows = [
        AsnConcentration(
            asn=asn_id,
            asname=members[0].location.asname or UNKNOWN,
            count=len(members),
            percentage=round_half_up(share_pct(len(members), total), 2),
            hosting_type=members[0].location.hosting_type,
        )
        for asn_id, members in by_asn.items()
    ]
    rows.sort(key=lambda r: r.count, reverse=True)
    return rows[:TOP_N], len(by_asn)


def classify_concentration(adjusted_hhi: float, cluster_count: int) -> ConcentrationLevel:
    for hhi_limit, cluster_limit, level in LEVEL_THRESHOLDS:
        if adjusted_hhi > hhi_limit or cluster_count > cluster_limit:
            return level
    return ConcentrationLevel.HIGHLY_DECENTRALIZED


def decentralization_score(base_hhi: float, cluster_count: int, cloud_risk: float) -> float:
    base = max(0.0, 100 - base_hhi / 100)
    cluster_penalty = min(MAX_CLUSTER_PENALTY, cluster_count * CLUSTER_PENALTY_EACH)
    cloud_penalty = min(MAX_CLOUD_PENALTY, cloud_risk * CLOUD_PENALTY_FACTOR)
    return max(0.0, base - cluster_penalty - cloud_penalty)


def analyze(snapshot: Snapshot, *, analyzed_at: datetime | None = None) -> AnalysisReport:
    """Compute the centralization report for one snapshot.

    ``analyzed_at`` defaults to the snapshot time so repeated calls on the
    same snapshot return equal reports.
    """
    miners = snapshot.miners
    total = len(miners)

    owners = group_by_owner(miners)
    base_hhi = herfindahl_index([len(g) for g in owners.values()], total)

    ip_clusters, unique_ips = find_ip_clusters(miners)
    cluster_penalty = sum(
        share_pct(c.count, total) ** 2 * IP_CLUSTER_WEIGHT for c in ip_clusters
    )
    adjusted_hhi = base_hhi + cluster_penalty
    level = classify_concentration(adjusted_hhi, len(ip_clusters))

    asn_rows, unique_asns = asn_concentration(miners, total)

    hosting_counts = Counter(m.location.hosting_type for m in miners)
    hosting_distribution = sorted(
        (
            HostingShare(type=t, count=n, percentage=round_half_up(share_pct(n, total), 1))
            for t, n in hosting_counts.items()
        ),
        key=lambda h: h.count,
        reverse=True,
    )
    cloud_count = sum(hosting_counts[t] for t in CLOUD_HOSTING_TYPES)
    cloud_risk = share_pct(cloud_count, total)

    score = decentralization_score(base_hhi, len(ip_clusters), cloud_risk) if total else 0.0

    top_owners = sorted(
        (
            OwnerShare(
                coldkey=coldkey[:8] + "...",
                count=len(group),
                percentage=round_half_up(share_pct(len(group), total), 2),
            )
            for coldkey, group in owners.items()
        ),
        key=lambda o: o.count,
        reverse=True,
    )[:TOP_N]

    with_ips = sum(1 for m in miners if m.axon_info.has_address)
    validators_no_axon = sum(
        1 for m in miners if not m.axon_info.has_address and m.validator_permit
    )
    inactive = sum(
        1 for m in miners if not m.axon_info.has_address and not m.validator_permit
    )
    coverage = round_half_up(share_pct(with_ips, total), 2)

    if ip_clusters:
        logger.debug(
            f"[ANALYZE] Subnet {snapshot.subnet.netuid}: {len(ip_clusters)} shared-IP clusters, "
            f"largest {ip_clusters[0].ip} x{ip_clusters[0].count}"
        )

    return AnalysisReport(
        total_miners=total,
        unique_owners=len(owners),
        hhi=int(round_half_up(base_hhi)),
        adjusted_hhi=int(round_half_up(adjusted_hhi)),
        concentration_level=level,
        top_owners=tuple(top_owners),
        geographic_distribution=dict(Counter(m.location.country for m in miners)),
        decentralization_score=round_half_up(score, 2),
        ip_clusters=tuple(ip_clusters),
        ip_cluster_count=len(ip_clusters),
        asn_concentration=tuple(asn_rows),
        hosting_distribution=tuple(hosting_distribution),
        cloud_centralization_risk=round_half_up(cloud_risk, 2),
        total_unique_ips=unique_ips,
        total_unique_asns=unique_asns,
        geolocated_miners=sum(1 for m in miners if m.location.resolved),
        miners_with_ips=with_ips,
        miners_without_ips=total - with_ips,
        validator_count=sum(1 for m in miners if m.validator_permit),
        validators_without_axons=validators_no_axon,
        potentially_inactive_miners=inactive,
        miner_axon_coverage=coverage,
        axon_coverage=coverage,
        last_analyzed=analyzed_at or snapshot.last_updated,
    )
