"""Storage for the last successful comment creation of each actor.

`claim` is the only write: it checks the open window and starts a new one in a
single atomic step, so concurrent creations of one actor cannot both pass.
"""

from datetime import datetime, timedelta
from typing import Any, Protocol

from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from inkthread.core.db import mongo_datetime
from inkthread.utils import as_utc


class CooldownStore(Protocol):
    async def get_last_create(self, actor_id: str) -> datetime | None: ...

    async def claim(self, actor_id: str, at: datetime, window: timedelta) -> datetime | None:
        """Start a window at `at` unless one is open; return the open window's start, or None when claimed."""
        ...

    async def release(self, actor_id: str, at: datetime) -> None:
        """Drop the window claimed at `at` because its creation failed."""
        ...


class MemoryCooldownStore:
    """Per-process store. Lost on restart, which is fine for a UX throttle."""

    def __init__(self) -> None:
        self._last_create: dict[str, datetime] = {}

    async def get_last_create(self, actor_id: str) -> datetime | None:
        return self._last_create.get(actor_id)

    async def claim(self, actor_id: str, at: datetime, window: timedelta) -> datetime | None:
        # No await between the check and the write
        last_create = self._last_create.get(actor_id)
        if last_create is not None and at - last_create < window:
            return last_create
        self._last_create[actor_id] = at
        return None

    async def release(self, actor_id: str, at: datetime) -> None:
        if self._last_create.get(actor_id) == at:
            del self._last_create[actor_id]


class MongoCooldownStore:
    """Store shared by every process instance, one document per actor."""

    def __init__(self, collection: AsyncCollection[dict[str, Any]]) -> None:
        self._collection = collection

    async def get_last_create(self, actor_id: str) -> datetime | None:
        doc = await self._collection.find_one({"_id": actor_id})
        if doc is None:
            return None
        return as_utc(doc["last_create_at"])

    async def claim(self, actor_id: str, at: datetime, window: timedelta) -> datetime | None:
        stamp = mongo_datetime(at)
        try:
            # Matches only an expired window; a missing document is upserted
            await self._collection.find_one_and_update(
                {"_id": actor_id, "last_create_at": {"$lte": stamp - window}},
                {"$set": {"last_create_at": stamp}},
                upsert=True,
            )
        except DuplicateKeyError:
            # The document exists and its window is still open
            last_create = await self.get_last_create(actor_id)
            return last_create if last_create is not None else as_utc(stamp)
        return None

    async def release(self, actor_id: str, at: datetime) -> None:
        await self._collection.delete_one({"_id": actor_id, "last_create_at": mongo_datetime(at)})
