import asyncio


class RateLimiter:
    """Minimum-interval limiter for async HTTP clients.

    Holds a single "last call" timestamp. ``acquire()`` suspends the caller
    until ``min_interval`` has passed since the previous call, then stamps the
    new call. Callers are serialized by the lock, so the interval holds no
    matter how many tasks share the instance. Pass the SAME instance to every
    client that shares an upstream quota.
    """

    def __init__(self, min_interval: float) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self._min_interval = min_interval
        self._last_request: float | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_rps(cls, max_rps: float) -> "RateLimiter":
        return cls(1.0 / max_rps)

    @property
    def min_interval(self) -> float:
        return self._min_interval

    def seconds_until_ready(self) -> float:
        """Remaining wait before the next call may go out (0 if none)."""
        if self._last_request is None:
            return 0.0
        now = asyncio.get_event_loop().time()
        return max(0.0, self._min_interval - (now - self._last_request))

    async def acquire(self) -> float:
        """Wait for the next slot. Returns the number of seconds waited."""
        async with self._lock:
            wait = self.seconds_until_ready()
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request = asyncio.get_event_loop().time()
            return wait
