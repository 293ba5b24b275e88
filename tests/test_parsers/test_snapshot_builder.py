"""Tests for snapshot assembly and geolocation pacing."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from src.models.subnet import NO_ADDRESS, GeoRecord
from src.parsers.exceptions import UpstreamUnavailable
from src.parsers.snapshot_builder import SnapshotBuilder
from src.parsers.taostats.models import RegistryNeuron, RegistrySubnet
from tests.factories import make_geo


def _neuron(uid: int, ip: str | None, *, validator: bool = False) -> RegistryNeuron:
    return RegistryNeuron.model_validate({
        "uid": uid,
        "hotkey": {"ss58": f"5Hot{uid}"},
        "coldkey": {"ss58": f"5Cold{uid % 3}"},
        "stake": str(uid * 1000),
        "validator_permit": validator,
        "axon": {"ip": ip, "port": 8091, "protocol": 4} if ip is not None else None,
    })


def _registry(neurons: list[RegistryNeuron]) -> AsyncMock:
    registry = AsyncMock()
    registry.get_subnet = AsyncMock(return_value=RegistrySubnet(netuid=8, max_neurons=256))
    registry.get_metagraph = AsyncMock(return_value=neurons)
    return registry


def _resolver() -> AsyncMock:
    resolver = AsyncMock()
    resolver.resolve = AsyncMock(side_effect=lambda ip: make_geo(city=f"city-{ip}"))
    return resolver


@pytest.mark.asyncio
async def test_non_routable_addresses_skip_resolver() -> None:
    neurons = [
        _neuron(0, "1.1.1.1"),
        _neuron(1, "0.0.0.0"),
        _neuron(2, "127.0.0.1"),
        _neuron(3, None, validator=True),
        _neuron(4, ""),
    ]
    resolver = _resolver()
    builder = SnapshotBuilder(_registry(neurons), resolver, batch_delay=0)

    snapshot = await builder.build(8)

    resolver.resolve.assert_awaited_once_with("1.1.1.1")
    assert snapshot.miners[0].axon_info.ip == "1.1.1.1"
    assert snapshot.miners[0].location.city == "city-1.1.1.1"
    for miner in snapshot.miners[1:]:
        assert miner.axon_info.ip == NO_ADDRESS
        assert miner.axon_info.port is None
        assert miner.location == GeoRecord.unknown()


@pytest.mark.asyncio
async def test_preserves_registry_order_and_fields() -> None:
    neurons = [_neuron(uid, f"2.2.2.{uid}") for uid in (5, 1, 9, 3)]
    builder = SnapshotBuilder(_registry(neurons), _resolver(), batch_delay=0)

    snapshot = await builder.build(8)

    assert [m.uid for m in snapshot.miners] == [5, 1, 9, 3]
    assert snapshot.miners[0].hotkey == "5Hot5"
    assert snapshot.miners[0].coldkey == "5Cold2"
    assert snapshot.miners[0].stake == "5000"
    assert snapshot.subnet.name == "Subnet 8"
    assert snapshot.subnet.max_neurons == 256
    assert snapshot.last_updated.tzinfo is not None


@pytest.mark.asyncio
async def test_passes_page_size_to_registry() -> None:
    registry = _registry([])
    builder = SnapshotBuilder(registry, _resolver(), page_size=123)
    snapshot = await builder.build(8)
    registry.get_metagraph.assert_awaited_once_with(8, limit=123)
    assert snapshot.miners == ()


@pytest.mark.asyncio
async def test_pauses_every_batch_of_lookups() -> None:
    # 45 routable + 10 without address → 45 lookups → pauses after 20 and 40
    neurons = [_neuron(uid, f"3.3.{uid}.1") for uid in range(45)]
    neurons += [_neuron(uid, None) for uid in range(45, 55)]
    resolver = _resolver()
    builder = SnapshotBuilder(_registry(neurons), resolver, batch_size=20, batch_delay=1.5)

    with patch("src.parsers.snapshot_builder.asyncio.sleep", new=AsyncMock()) as sleep:
        await builder.build(8)

    assert resolver.resolve.await_count == 45
    assert sleep.await_count == 2
    sleep.assert_awaited_with(1.5)


@pytest.mark.asyncio
async def test_lookups_are_sequential() -> None:
    in_flight = 0
    max_in_flight = 0

    async def resolve(ip: str) -> GeoRecord:
        nonlocal in_flight, max_in_flight
        in_flight += 1
        max_in_flight = max(max_in_flight, in_flight)
        await asyncio.sleep(0)
        in_flight -= 1
        return make_geo()

    resolver = AsyncMock()
    resolver.resolve = resolve
    neurons = [_neuron(uid, f"4.4.4.{uid}") for uid in range(5)]
    await SnapshotBuilder(_registry(neurons), resolver, batch_delay=0).build(8)
    assert max_in_flight == 1


@pytest.mark.asyncio
async def test_registry_error_propagates() -> None:
    registry = _registry([])
    registry.get_metagraph = AsyncMock(
        side_effect=UpstreamUnavailable("HTTP 500", status_code=500, body="boom")
    )
    resolver = _resolver()
    with pytest.raises(UpstreamUnavailable):
        await SnapshotBuilder(registry, resolver).build(8)
    resolver.resolve.assert_not_awaited()


@pytest.mark.asyncio
async def test_unresolved_lookup_keeps_address() -> None:
    resolver = AsyncMock()
    resolver.resolve = AsyncMock(return_value=GeoRecord.unknown())
    snapshot = await SnapshotBuilder(_registry([_neuron(0, "6.6.6.6")]), resolver).build(8)
    miner = snapshot.miners[0]
    assert miner.axon_info.has_address
    assert miner.location.resolved is False
