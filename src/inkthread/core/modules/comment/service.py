import re
from collections import Counter
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from inkthread.core.core import Service
from inkthread.core.db import mongo_datetime
from inkthread.core.modules.comment.models import Comment, CommentScope
from inkthread.core.modules.counter.models import CounterType
from inkthread.core.pagination import PaginationResult, page_offset
from inkthread.errors import EditWindowExpiredError, NotFoundError, ValidationError
from inkthread.utils import now, plain_text

logger = structlog.get_logger(__name__)


def scope_query(content_id: int, sub_scope_id: int | None = None, anchor_id: int | None = None) -> dict[str, Any]:
    """Mongo filter for a root listing scope.

    Without a sub-scope only general discussion matches. A sub-scope without anchor
    matches every anchor of that sub-scope.
    """
    query: dict[str, Any] = {"content_id": content_id, "sub_scope_id": sub_scope_id}
    if sub_scope_id is not None and anchor_id is not None:
        query["anchor_id"] = anchor_id
    return query


def validate_body(body: str) -> None:
    if not plain_text(body):
        raise ValidationError("Comment cannot be empty")


class CommentService(Service):
    """Durable comment records. Authorization happens in the App facade before these methods run."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("comments")

    async def on_start(self) -> None:
        """Create indexes for scope listing, reply walking and moderation search."""
        await self._collection.create_index([("content_id", 1), ("sub_scope_id", 1), ("anchor_id", 1)])
        await self._collection.create_index([("parent_id", 1)])
        await self._collection.create_index([("author_id", 1)])
        await self._collection.create_index([("created_at", -1)])

    async def get_comment(self, comment_id: int) -> Comment:
        """Get comment by ID."""
        doc = await self._collection.find_one({"_id": comment_id})
        if doc is None:
            raise NotFoundError(f"Comment '{comment_id}' not found")
        return Comment.model_validate(doc)

    async def get_comments(self, comment_ids: Iterable[int]) -> dict[int, Comment]:
        """Batch lookup; missing ids are simply absent from the result."""
        ids = list(set(comment_ids))
        if not ids:
            return {}
        comments = await Comment.list_cursor(self._collection.find({"_id": {"$in": ids}}))
        return {comment.id: comment for comment in comments}

    async def resolve_reply_scope(self, scope: CommentScope, parent_id: int) -> tuple[Comment, CommentScope]:
        """Load the parent and return the scope a reply to it lives in.

        A reply inherits the parent's anchor when it does not name one; any other mismatch means
        the parent does not exist in the requested scope.
        """
        try:
            parent = await self.get_comment(parent_id)
        except NotFoundError:
            raise NotFoundError(f"Parent comment '{parent_id}' not found") from None

        anchor_id = parent.anchor_id if scope.anchor_id is None else scope.anchor_id
        reply_scope = CommentScope(content_id=scope.content_id, sub_scope_id=scope.sub_scope_id, anchor_id=anchor_id)
        if reply_scope != parent.scope:
            raise NotFoundError(f"Parent comment '{parent_id}' not found in this discussion")
        return parent, reply_scope

    async def create_comment(
        self, author_id: str, scope: CommentScope, body: str, parent_id: int | None = None
    ) -> Comment:
        """Validate, throttle and store a new comment, then notify the parent's author in the background."""
        validate_body(body)
        await self.core.services.content.ensure_scope(scope)

        parent: Comment | None = None
        if parent_id is not None:
            parent, scope = await self.resolve_reply_scope(scope, parent_id)

        created_at = now()
        await self.core.services.cooldown.claim(author_id, created_at)
        try:
            comment = Comment(
                id=await self.core.services.counter.get_next_sequence(CounterType.COMMENT),
                content_id=scope.content_id,
                sub_scope_id=scope.sub_scope_id,
                anchor_id=scope.anchor_id,
                parent_id=parent_id,
                author_id=author_id,
                body=body,
                created_at=created_at,
            )
            await self._collection.insert_one(comment.to_mongo())
        except Exception:
            # A failed creation must not start the cooldown
            await self.core.services.cooldown.release(author_id, created_at)
            raise

        if parent is not None:
            self.core.services.notification.notify_reply(parent.author_id, author_id, comment.id)

        logger.info(
            "comment_created",
            comment_id=comment.id,
            author_id=author_id,
            content_id=scope.content_id,
            sub_scope_id=scope.sub_scope_id,
            anchor_id=scope.anchor_id,
            parent_id=parent_id,
        )
        return comment

    async def update_body(self, comment_id: int, author_id: str, body: str, at: datetime, window: timedelta) -> Comment:
        """Replace the body of the author's comment and stamp edited_at.

        The edit window is part of the update filter, so a comment that ages out between the
        policy check and the write is left untouched.
        """
        validate_body(body)
        doc = await self._collection.find_one_and_update(
            {"_id": comment_id, "author_id": author_id, "created_at": {"$gt": mongo_datetime(at - window)}},
            {"$set": {"body": body, "edited_at": at}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            comment = await self.get_comment(comment_id)
            if comment.author_id != author_id:
                raise NotFoundError(f"Comment '{comment_id}' not found")
            minutes = int(window.total_seconds() // 60)
            raise EditWindowExpiredError(f"Comments can only be edited within {minutes} minutes of posting")
        logger.info("comment_edited", comment_id=comment_id, author_id=author_id)
        return Comment.model_validate(doc)

    async def set_pinned(self, comment: Comment, pinned: bool, actor_id: str) -> Comment:
        """Pin or unpin a comment, recording who pinned it and when."""
        limit = self.core.config.max_pins_per_content
        if pinned and not comment.pinned and limit is not None:
            pinned_count = await self._collection.count_documents({"content_id": comment.content_id, "pinned": True})
            if pinned_count >= limit:
                raise ValidationError(f"At most {limit} comments can be pinned")

        update: dict[str, Any]
        if pinned:
            update = {"pinned": True, "pinned_at": now(), "pinned_by": actor_id}
        else:
            update = {"pinned": False, "pinned_at": None, "pinned_by": None}
        doc = await self._collection.find_one_and_update(
            {"_id": comment.id}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFoundError(f"Comment '{comment.id}' not found")
        logger.info("comment_pin_changed", comment_id=comment.id, pinned=pinned, actor_id=actor_id)
        return Comment.model_validate(doc)

    async def delete_comment(self, comment_id: int) -> None:
        """Hard delete a comment and its votes. Its replies stay and later render as roots."""
        result = await self._collection.delete_one({"_id": comment_id})
        if result.deleted_count == 0:
            raise NotFoundError(f"Comment '{comment_id}' not found")
        await self.core.services.vote.delete_votes_for_comment(comment_id)

    async def find_by_scope(
        self, content_id: int, sub_scope_id: int | None = None, anchor_id: int | None = None
    ) -> list[Comment]:
        """Every comment (roots and replies) of a listing scope."""
        cursor = self._collection.find(scope_query(content_id, sub_scope_id, anchor_id), sort=[("_id", 1)])
        return await Comment.list_cursor(cursor)

    async def find_descendants(self, root_id: int) -> list[Comment]:
        """All replies below a comment, walking parent links downwards one level per query."""
        seen = {root_id}
        descendants: list[Comment] = []
        frontier = [root_id]
        while frontier:
            level = await Comment.list_cursor(self._collection.find({"parent_id": {"$in": frontier}}))
            fresh = [comment for comment in level if comment.id not in seen]
            seen.update(comment.id for comment in fresh)
            descendants.extend(fresh)
            frontier = [comment.id for comment in fresh]
        return descendants

    async def count_direct_replies(self, comment_ids: Iterable[int]) -> dict[int, int]:
        """Number of immediate replies of each comment."""
        ids = list(set(comment_ids))
        counts: Counter[int] = Counter({comment_id: 0 for comment_id in ids})
        if not ids:
            return dict(counts)
        cursor = self._collection.find({"parent_id": {"$in": ids}}, projection={"parent_id": 1})
        async for doc in cursor:
            counts[doc["parent_id"]] += 1
        return dict(counts)

    async def find_sub_scope_roots(self, content_id: int, limit: int) -> list[Comment]:
        """Newest root comments posted in any chapter of a content item."""
        query = {"content_id": content_id, "sub_scope_id": {"$ne": None}, "parent_id": None}
        cursor = self._collection.find(query, sort=[("created_at", -1), ("_id", -1)], limit=limit)
        return await Comment.list_cursor(cursor)

    async def search_comments(self, page: int, page_size: int, search: str | None = None) -> PaginationResult[Comment]:
        """Every comment newest first, optionally filtered by a case-insensitive body substring."""
        query: dict[str, Any] = {}
        if search:
            query["body"] = {"$regex": re.escape(search), "$options": "i"}

        total = await self._collection.count_documents(query)
        cursor = self._collection.find(
            query, sort=[("created_at", -1), ("_id", -1)], skip=page_offset(page, page_size), limit=page_size
        )
        items = await Comment.list_cursor(cursor)

        logger.debug("search_comments", search=search, total=total, page=page, returned=len(items))
        return PaginationResult(items=items, total=total, page=page, page_size=page_size)
