from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from inkthread.core.core import Service
from inkthread.core.modules.comment.models import CommentScope
from inkthread.core.modules.content.models import Content
from inkthread.errors import NotFoundError

logger = structlog.get_logger(__name__)


class ContentService(Service):
    """Read access to content ownership, written only by the surrounding catalog."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("contents")

    async def on_start(self) -> None:
        await self._collection.create_index([("owner_id", 1)])

    async def get_content(self, content_id: int) -> Content:
        """Get a content item by ID."""
        doc = await self._collection.find_one({"_id": content_id})
        if doc is None:
            raise NotFoundError(f"Content '{content_id}' not found")
        return Content.model_validate(doc)

    async def ensure_scope(self, scope: CommentScope) -> Content:
        """Ensure the content item and, if given, its sub-scope exist."""
        content = await self.get_content(scope.content_id)
        if scope.sub_scope_id is not None and not content.has_sub_scope(scope.sub_scope_id):
            raise NotFoundError(f"Chapter '{scope.sub_scope_id}' not found in content '{scope.content_id}'")
        return content

    async def register_content(self, content_id: int, owner_id: str, title: str, sub_scope_ids: list[int]) -> Content:
        """Create or replace the ownership record of a content item."""
        content = Content(id=content_id, owner_id=owner_id, title=title, sub_scope_ids=sub_scope_ids)
        await self._collection.replace_one({"_id": content_id}, content.to_mongo(), upsert=True)
        logger.debug("content_registered", content_id=content_id, owner_id=owner_id, sub_scopes=len(sub_scope_ids))
        return content
