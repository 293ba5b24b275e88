"""Shared test fixtures."""

import pytest

from src.models.subnet import Snapshot
from tests.factories import make_miner, make_snapshot


@pytest.fixture
def snapshot() -> Snapshot:
    """Ten miners, five owners, distinct IPs except uids 3 and 7 sharing 1.2.3.4."""
    miners = []
    for uid in range(10):
        ip = "1.2.3.4" if uid in (3, 7) else f"10.0.0.{uid + 1}"
        miners.append(make_miner(uid, coldkey=f"5Owner{uid % 5:02d}xxxxxxxxxxxx", ip=ip))
    return make_snapshot(miners)
