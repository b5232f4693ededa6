import math
from datetime import datetime, timedelta
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from inkthread.core.core import Service
from inkthread.core.modules.cooldown.store import CooldownStore, MemoryCooldownStore, MongoCooldownStore
from inkthread.errors import RateLimitedError

logger = structlog.get_logger(__name__)


def remaining_cooldown(last_create: datetime | None, at: datetime, window: timedelta) -> timedelta:
    """Time left before the actor may post again; zero when free to post."""
    if last_create is None:
        return timedelta(0)
    return max(last_create + window - at, timedelta(0))


class CooldownService(Service):
    """Anti-spam throttle applied to comment creation only.

    A creation claims the actor's window right before it is stored and releases it
    again if storing fails. Expiry is checked lazily on the next attempt.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("cooldowns")
        self._store: CooldownStore = MemoryCooldownStore()

    async def on_start(self) -> None:
        if self.core.config.cooldown_backend == "mongo":
            self._store = MongoCooldownStore(self._collection)
        logger.debug("cooldown_service_started", backend=self.core.config.cooldown_backend)

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.core.config.cooldown_seconds)

    async def claim(self, actor_id: str, at: datetime) -> None:
        """Start the actor's window at `at`, raise RateLimitedError while the previous one is open."""
        last_create = await self._store.claim(actor_id, at, self.window)
        if last_create is None:
            return
        # The window may have closed since the claim was refused
        retry_after = max(math.ceil(remaining_cooldown(last_create, at, self.window).total_seconds()), 1)
        logger.info("comment_rate_limited", actor_id=actor_id, retry_after=retry_after)
        raise RateLimitedError(retry_after)

    async def release(self, actor_id: str, at: datetime) -> None:
        """Give the window back after a claimed creation failed to be stored."""
        await self._store.release(actor_id, at)
        logger.debug("cooldown_released", actor_id=actor_id)
