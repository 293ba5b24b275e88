"""Snapshot builder — registry fetch + per-miner geolocation.

Geolocation runs strictly sequentially with a pause every ``batch_size``
lookups. That pacing targets ip-api's own quota and is independent of the
registry RateLimiter inside TaostatsClient.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from typing import Protocol

from loguru import logger

from src.models.subnet import AxonInfo, GeoRecord, Miner, Snapshot, SubnetInfo, is_routable
from src.parsers.taostats.client import DEFAULT_PAGE_SIZE
from src.parsers.taostats.models import RegistryNeuron, RegistrySubnet


class RegistrySource(Protocol):
    async def get_subnet(self, netuid: int) -> RegistrySubnet: ...

    async def get_metagraph(self, netuid: int, limit: int = ...) -> list[RegistryNeuron]: ...


class GeoResolver(Protocol):
    async def resolve(self, ip: str) -> GeoRecord: ...


class SnapshotBuilder:
    """Assembles an immutable Snapshot for one subnet."""

    def __init__(
        self,
        registry: RegistrySource,
        resolver: GeoResolver,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        batch_size: int = 20,
        batch_delay: float = 1.0,
    ) -> None:
        self._registry = registry
        self._resolver = resolver
        self._page_size = page_size
        self._batch_size = max(1, batch_size)
        self._batch_delay = batch_delay

    async def build(self, netuid: int) -> Snapshot:
        """Fetch + enrich. Registry errors propagate; geolocation never fails."""
        logger.info(f"[SNAPSHOT] Fetching subnet {netuid} data from API...")
        subnet = await self._registry.get_subnet(netuid)
        neurons = await self._registry.get_metagraph(netuid, limit=self._page_size)

        logger.info(f"[SNAPSHOT] Processing {len(neurons)} miners with geolocation...")
        miners: list[Miner] = []
        lookups = 0
        for neuron in neurons:
            ip = neuron.axon.ip if neuron.axon else None
            if not is_routable(ip):
                miners.append(_to_miner(neuron, AxonInfo.none(), GeoRecord.unknown()))
                continue

            location = await self._resolver.resolve(ip)
            lookups += 1
            axon = AxonInfo(ip=ip, port=neuron.axon.port, protocol=neuron.axon.protocol)
            miners.append(_to_miner(neuron, axon, location))

            if lookups % self._batch_size == 0:
                logger.debug(f"[SNAPSHOT] Geolocated {lookups} addresses, pausing {self._batch_delay}s")
                await asyncio.sleep(self._batch_delay)

        snapshot = Snapshot(
            subnet=_to_subnet_info(subnet, netuid),
            miners=tuple(miners),
            last_updated=datetime.now(UTC),
        )
        resolved = sum(1 for m in snapshot.miners if m.location.resolved)
        logger.info(
            f"[SNAPSHOT] Subnet {netuid}: {len(miners)} miners, "
            f"{lookups} lookups, {resolved} geolocated"
        )
        return snapshot


def _to_miner(neuron: RegistryNeuron, axon: AxonInfo, location: GeoRecord) -> Miner:
    return Miner(
        uid=neuron.uid,
        hotkey=neuron.hotkey.ss58 if neuron.hotkey else None,
        coldkey=neuron.coldkey.ss58 if neuron.coldkey else None,
        stake=neuron.stake,
        trust=neuron.trust,
        consensus=neuron.consensus,
        incentive=neuron.incentive,
        dividends=neuron.dividends,
        emission=neuron.emission,
        daily_reward=neuron.daily_reward,
        active=neuron.active,
        validator_permit=neuron.validator_permit,
        axon_info=axon,
        location=location,
    )


def _to_subnet_info(subnet: RegistrySubnet, netuid: int) -> SubnetInfo:
    uid = subnet.netuid if subnet.netuid is not None else netuid
    return SubnetInfo(
        netuid=uid,
        name=f"Subnet {uid}",
        owner=subnet.owner.ss58 if subnet.owner else None,
        max_neurons=subnet.max_neurons,
        active_keys=subnet.active_keys,
        validators=subnet.validators,
        active_validators=subnet.active_validators,
        active_miners=subnet.active_miners,
        tempo=subnet.tempo,
        difficulty=subnet.difficulty,
        emission=subnet.emission,
        registration_cost=subnet.neuron_registration_cost,
    )
