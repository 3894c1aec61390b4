from __future__ import annotations

import logging
import math
import time
from collections.abc import Mapping

from limits import parse
from limits.aio.strategies import FixedWindowRateLimiter
from limits.storage import storage_from_string

logger = logging.getLogger(__name__)

BLOG_GENERATION = "blog-generation"
RESEARCH_TOPICS = "research-topics"

DEFAULT_LIMITS: dict[str, str] = {
    BLOG_GENERATION: "10/hour",
    RESEARCH_TOPICS: "2/day",
}

ASYNC_SCHEME_PREFIX = "async+"


def async_storage_uri(storage_uri: str) -> str:
    """Map a ``limits`` storage URI onto its asyncio variant (``redis://`` -> ``async+redis://``)."""
    if storage_uri.startswith(ASYNC_SCHEME_PREFIX):
        return storage_uri
    return ASYNC_SCHEME_PREFIX + storage_uri


class RateLimiter:
    """Per-shop, per-action quotas over fixed windows.

    Counters live in whatever ``limits`` storage the URI names, so the
    in-memory default can be replaced by ``redis://...`` when several
    workers must share quotas. Storage is always the asyncio variant so a
    network store never blocks the event loop.
    """

    def __init__(
        self,
        storage_uri: str = "memory://",
        limits: Mapping[str, str] | None = None,
    ) -> None:
        self._storage = storage_from_string(async_storage_uri(storage_uri))
        self._strategy = FixedWindowRateLimiter(self._storage)
        self._limits = {
            action: parse(value) for action, value in (limits or DEFAULT_LIMITS).items()
        }

    async def retry_after(self, subject: str, action: str) -> int:
        item = self._limits[action]
        reset_time, _ = await self._strategy.get_window_stats(item, subject, action)
        return max(math.ceil(reset_time - time.time()), 1)

    async def check(self, subject: str, action: str) -> str | None:
        """Count one hit and return a throttle message once the quota is spent."""
        item = self._limits[action]
        if await self._strategy.hit(item, subject, action):
            return None

        seconds = await self.retry_after(subject, action)
        logger.info("Rate limit exceeded for %s:%s (retry in %ss)", subject, action, seconds)
        return f"Rate limit exceeded. Try again in {seconds} seconds."

    async def reset(self) -> None:
        await self._storage.reset()
