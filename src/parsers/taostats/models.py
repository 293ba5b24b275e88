"""Pydantic models for TaoStats API responses (v1 endpoints)."""

from pydantic import BaseModel

from src.models.subnet import Opaque


class TaostatsKey(BaseModel):
    """Account reference — TaoStats returns both encodings."""

    ss58: str | None = None
    hex: str | None = None

    model_config = {"extra": "ignore"}


class TaostatsAxon(BaseModel):
    ip: str | None = None
    port: int | None = None
    protocol: int | str | None = None
    ip_type: int | None = None
    version: int | None = None

    model_config = {"extra": "ignore"}


class RegistryNeuron(BaseModel):
    """One row of /metagraph/latest/v1."""

    uid: int
    hotkey: TaostatsKey | None = None
    coldkey: TaostatsKey | None = None
    stake: Opaque = None
    trust: Opaque = None
    consensus: Opaque = None
    incentive: Opaque = None
    dividends: Opaque = None
    emission: Opaque = None
    daily_reward: Opaque = None
    active: bool | None = None
    validator_permit: bool = False
    axon: TaostatsAxon | None = None

    model_config = {"extra": "ignore"}


class RegistrySubnet(BaseModel):
    """One row of /subnet/latest/v1."""

    netuid: int | None = None
    owner: TaostatsKey | None = None
    max_neurons: int | None = None
    active_keys: int | None = None
    validators: int | None = None
    active_validators: int | None = None
    active_miners: int | None = None
    tempo: int | None = None
    difficulty: Opaque = None
    emission: Opaque = None
    neuron_registration_cost: Opaque = None

    model_config = {"extra": "ignore"}
