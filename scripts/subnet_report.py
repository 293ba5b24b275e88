"""Subnet centralization report — fetches a snapshot + analysis from the API.

Uses the same retry contract as the dashboard (429 → Retry-After, linear
backoff). The first run for a subnet can take minutes: the server geolocates
every miner before answering.

Usage:
    python scripts/subnet_report.py 8
    python scripts/subnet_report.py 8 --base-url http://localhost:3001/api --refresh
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.settings import settings  # noqa: E402
from src.client.api_client import ClientRetryExhausted, MinerSpyClient  # noqa: E402
from src.utils.logger import setup_logger  # noqa: E402


def print_report(subnet: dict, analysis: dict) -> None:
    info = subnet.get("subnet", {})
    print(f"\n{'=' * 80}")
    print(f"  {info.get('name', '?')} — {analysis['totalMiners']} miners, "
          f"{analysis['uniqueOwners']} owners (updated {subnet.get('lastUpdated', '?')})")
    print(f"{'=' * 80}\n")

    print(f"Concentration:        {analysis['concentrationLevel']}")
    print(f"HHI / adjusted:       {analysis['hhi']} / {analysis['adjustedHHI']}")
    print(f"Decentralization:     {analysis['decentralizationScore']:.2f} / 100")
    print(f"Cloud risk:           {analysis['cloudCentralizationRisk']:.2f}%")
    print(f"Axon coverage:        {analysis['minerAxonCoverage']:.2f}% "
          f"({analysis['validatorsWithoutAxons']} validators w/o axon, "
          f"{analysis['potentiallyInactiveMiners']} potentially inactive)")

    print(f"\n{'Owner':<14} {'Miners':>7} {'Share':>8}")
    print("-" * 32)
    for owner in analysis["topOwners"]:
        print(f"{owner['coldkey']:<14} {owner['count']:>7} {owner['percentage']:>7.2f}%")

    if analysis["ipClusters"]:
        print(f"\n🚩 SHARED IPs: {analysis['ipClusterCount']}")
        for c in analysis["ipClusters"]:
            uids = ", ".join(str(u) for u in c["uids"])
            print(f"   {c['ip']:<16} x{c['count']:<3} {c['location']:<30} {c['hostingType']:<18} uids={uids}")

    print(f"\n{'ASN':<10} {'Name':<30} {'Miners':>7} {'Share':>8}")
    print("-" * 58)
    for a in analysis["asnConcentration"]:
        print(f"{a['asn']:<10} {a['asname'][:30]:<30} {a['count']:>7} {a['percentage']:>7.2f}%")

    print("\nHosting:")
    for h in analysis["hostingDistribution"]:
        print(f"   {h['type']:<20} {h['count']:>5} ({h['percentage']:.1f}%)")

    print("\nCountries:")
    countries = sorted(analysis["geographicDistribution"].items(), key=lambda kv: kv[1], reverse=True)
    for country, count in countries[:15]:
        print(f"   {country:<25} {count:>5}")


async def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("subnet_id", type=int, nargs="?", default=settings.default_subnet_id)
    parser.add_argument("--base-url", default=settings.client_base_url)
    parser.add_argument("--refresh", action="store_true", help="clear the server cache first")
    args = parser.parse_args()

    setup_logger(level=settings.log_level, log_file=None, stream=sys.stderr)
    async with MinerSpyClient(
        args.base_url,
        max_retries=settings.client_max_retries,
        retry_delay=settings.client_retry_delay_sec,
        timeout=settings.client_timeout_sec,
    ) as client:
        try:
            if args.refresh:
                await client.clear_cache()
            subnet = await client.get_subnet(args.subnet_id)
            analysis = await client.analyze(args.subnet_id)
        except ClientRetryExhausted as e:
            print(f"❌ {e}", file=sys.stderr)
            return 1

    print_report(subnet, analysis)
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
