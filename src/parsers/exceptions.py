class MinerSpyError(Exception):
    pass


class UpstreamUnavailable(MinerSpyError):
    """Registry (or other upstream) call failed. Carries status + body unchanged."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MalformedUpstreamData(MinerSpyError):
    pass


class PreconditionMissing(MinerSpyError):
    """Analysis requested before the subnet snapshot was cached."""

    def __init__(self, subnet_id: int) -> None:
        super().__init__(f"No cached snapshot for subnet {subnet_id}")
        self.subnet_id = subnet_id


class ResolutionUnresolvable(MinerSpyError):
    """Geolocation failed. Never leaves the resolver."""
