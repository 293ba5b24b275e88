from src.models.analysis import (
    AnalysisReport,
    AsnConcentration,
    ConcentrationLevel,
    HostingShare,
    IpCluster,
    OwnerShare,
)
from src.models.subnet import AxonInfo, GeoRecord, HostingType, Miner, Snapshot, SubnetInfo

__all__ = [
    "AnalysisReport",
    "AsnConcentration",
    "AxonInfo",
    "ConcentrationLevel",
    "GeoRecord",
    "HostingShare",
    "HostingType",
    "IpCluster",
    "Miner",
    "OwnerShare",
    "Snapshot",
    "SubnetInfo",
]
