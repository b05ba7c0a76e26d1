"""Request spacing shared by every clone of the API facade."""

import asyncio

from ..utils.config import Config
from ..utils.logger import logger
from ..utils.timing import get_monotonic


class RateLimiter:
    """Spaces request starts at least 1/rate seconds apart."""

    def __init__(self, rate_per_second: float = Config.RATE_LIMIT_PER_SECOND):
        if rate_per_second <= 0:
            raise ValueError("rate_per_second must be positive")
        self.rate_per_second = rate_per_second
        self._lock = asyncio.Lock()
        self._last_request: float | None = None

    @property
    def min_interval(self) -> float:
        return 1.0 / self.rate_per_second

    async def wait(self) -> None:
        """Suspend until the next request slot is available, then claim it."""
        async with self._lock:
            if self._last_request is not None:
                elapsed = get_monotonic() - self._last_request
                if elapsed < self.min_interval:
                    delay = self.min_interval - elapsed
                    logger.debug(f"Rate limited, waiting {delay:.3f}s")
                    await asyncio.sleep(delay)
            self._last_request = get_monotonic()

    async def __aenter__(self):
        await self.wait()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None
