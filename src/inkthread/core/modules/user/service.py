from collections.abc import Iterable
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from inkthread.core.core import Service
from inkthread.core.modules.user.models import AuthorSummary, UserProfile

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Resolves author ids to display summaries."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def get_author_summaries(self, user_ids: Iterable[str]) -> dict[str, AuthorSummary]:
        """Batch lookup; ids without a profile get a placeholder summary."""
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        profiles = await UserProfile.list_cursor(self._collection.find({"_id": {"$in": ids}}))
        summaries = {profile.id: AuthorSummary.from_domain(profile) for profile in profiles}
        return {user_id: summaries.get(user_id) or AuthorSummary.unknown(user_id) for user_id in ids}

    async def sync_profile(self, profile: UserProfile) -> UserProfile:
        """Create or replace a display profile."""
        await self._collection.replace_one({"_id": profile.id}, profile.to_mongo(), upsert=True)
        logger.debug("user_profile_synced", user_id=profile.id)
        return profile
