"""Hosting type classification from ISP / organization / AS text.

Precedence (first match wins):
1. Upstream hosting flag
2. Named cloud vendor in ISP, org or AS
3. Named VPS / budget host in ISP or org
4. Named residential ISP in ISP or org
5. Generic datacenter tokens in ISP
6. Generic cable/fiber tokens in ISP
Cloud and VPS lists are checked before residential brands so a reseller with
a consumer-sounding name still lands in the cloud bucket.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.models.subnet import HostingType

CLOUD_PROVIDERS: tuple[str, ...] = (
    "amazon", "aws", "microsoft", "azure", "google", "gcp", "digitalocean",
    "vultr", "linode", "ovh", "hetzner", "cloudflare", "oracle",
)

VPS_PROVIDERS: tuple[str, ...] = (
    "contabo", "hostinger", "godaddy", "namecheap", "dreamhost", "bluehost",
)

RESIDENTIAL_ISPS: tuple[str, ...] = (
    "comcast", "verizon", "att", "charter", "cox", "spectrum", "frontier",
    "centurylink", "telus", "rogers", "bell", "shaw", "bt", "sky", "vodafone",
)

DATACENTER_TOKENS: tuple[str, ...] = ("datacenter", "server", "hosting")
BROADBAND_TOKENS: tuple[str, ...] = ("cable", "fiber", "broadband")


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(p.strip().lower() for p in value.split(",") if p.strip())


@dataclass(frozen=True)
class HostingVocabulary:
    """Vendor word lists. Built-ins can be extended, never replaced."""

    cloud: tuple[str, ...] = CLOUD_PROVIDERS
    vps: tuple[str, ...] = VPS_PROVIDERS
    residential: tuple[str, ...] = RESIDENTIAL_ISPS

    @classmethod
    def with_extras(
        cls,
        *,
        cloud: str = "",
        vps: str = "",
        residential: str = "",
    ) -> HostingVocabulary:
        """Build from comma-separated extras (settings.extra_* values)."""
        return cls(
            cloud=CLOUD_PROVIDERS + _split_csv(cloud),
            vps=VPS_PROVIDERS + _split_csv(vps),
            residential=RESIDENTIAL_ISPS + _split_csv(residential),
        )


DEFAULT_VOCABULARY = HostingVocabulary()


def _contains_any(haystacks: tuple[str, ...], needles: tuple[str, ...]) -> bool:
    return any(n in h for n in needles for h in haystacks)


def classify_hosting_type(
    isp: str | None,
    org: str | None,
    asn: str | None,
    is_hosting: bool | None,
    *,
    vocabulary: HostingVocabulary = DEFAULT_VOCABULARY,
) -> HostingType:
    """Classify an address by who operates its network."""
    lower_isp = (isp or "").lower()
    lower_org = (org or "").lower()
    lower_asn = (asn or "").lower()

    if is_hosting:
        return HostingType.HOSTING_CLOUD

    if _contains_any((lower_isp, lower_org, lower_asn), vocabulary.cloud):
        return HostingType.CLOUD_PROVIDER

    if _contains_any((lower_isp, lower_org), vocabulary.vps):
        return HostingType.VPS_HOSTING

    if _contains_any((lower_isp, lower_org), vocabulary.residential):
        return HostingType.RESIDENTIAL

    if _contains_any((lower_isp,), DATACENTER_TOKENS):
        return HostingType.HOSTING_DATACENTER

    if _contains_any((lower_isp,), BROADBAND_TOKENS):
        return HostingType.RESIDENTIAL

    return HostingType.UNKNOWN
