from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from inkthread.config import Config
from inkthread.core.core import Core
from inkthread.core.modules.access.models import Actor
from inkthread.core.modules.access.policy import (
    ensure_actor,
    ensure_can_delete,
    ensure_can_edit,
    ensure_can_pin,
    ensure_can_post,
)
from inkthread.core.modules.comment.models import CommentScope
from inkthread.core.modules.content.models import Content
from inkthread.core.modules.thread.models import CommentView, PinResult
from inkthread.core.modules.thread.ranking import SortMode, parse_sort_mode
from inkthread.core.modules.user.models import UserProfile
from inkthread.core.modules.vote.models import VoteDirection, VoteResult, parse_vote_direction
from inkthread.core.pagination import PaginationResult, validate_page
from inkthread.errors import ValidationError
from inkthread.utils import now

logger = structlog.get_logger(__name__)


class App:
    """Facade for all discussion operations, validates permissions before delegating to Core."""

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None = None) -> None:
        self._core = Core(config, database)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # === Commands ===
    async def create_comment(
        self,
        actor: Actor | None,
        content_id: int,
        body: str,
        sub_scope_id: int | None = None,
        anchor_id: int | None = None,
        parent_id: int | None = None,
    ) -> CommentView:
        """Post a root comment or a reply (verified actors only, throttled per actor)."""
        actor = ensure_can_post(actor)
        scope = self._build_scope(content_id, sub_scope_id, anchor_id)
        comment = await self._core.services.comment.create_comment(actor.id, scope, body, parent_id)
        return await self._core.services.thread.get_comment_view(comment.id, actor.id)

    async def edit_comment(self, actor: Actor | None, comment_id: int, body: str) -> CommentView:
        """Replace the body of a comment (author only, within the edit window)."""
        actor = ensure_actor(actor)
        comment = await self._core.services.comment.get_comment(comment_id)
        window = timedelta(seconds=self._core.config.edit_window_seconds)
        at = now()
        ensure_can_edit(actor, comment, at, window)
        await self._core.services.comment.update_body(comment.id, actor.id, body, at, window)
        return await self._core.services.thread.get_comment_view(comment.id, actor.id)

    async def delete_comment(self, actor: Actor | None, comment_id: int) -> None:
        """Hard delete a comment (author, content owner or staff)."""
        actor = ensure_actor(actor)
        comment = await self._core.services.comment.get_comment(comment_id)
        can_moderate = await self._core.services.access.can_moderate(actor, comment.scope)
        ensure_can_delete(actor, comment, can_moderate)
        await self._core.services.comment.delete_comment(comment.id)

        if comment.author_id == actor.id:
            logger.info("comment_deleted", comment_id=comment.id, actor_id=actor.id)
        else:
            logger.info(
                "comment_moderated",
                comment_id=comment.id,
                actor_id=actor.id,
                actor_role=actor.role,
                author_id=comment.author_id,
                content_id=comment.content_id,
            )

    async def vote_comment(self, actor: Actor | None, comment_id: int, direction: VoteDirection | str) -> VoteResult:
        """Vote on a comment; repeating the same vote clears it."""
        actor = ensure_actor(actor)
        if not isinstance(direction, VoteDirection):
            direction = parse_vote_direction(direction)
        comment = await self._core.services.comment.get_comment(comment_id)
        return await self._core.services.vote.cast_vote(comment.id, actor.id, direction)

    async def set_pinned(self, actor: Actor | None, comment_id: int, pinned: bool) -> PinResult:
        """Pin or unpin a comment (content owner or staff)."""
        actor = ensure_actor(actor)
        comment = await self._core.services.comment.get_comment(comment_id)
        ensure_can_pin(await self._core.services.access.can_moderate(actor, comment.scope))
        updated = await self._core.services.comment.set_pinned(comment, pinned, actor.id)
        return PinResult(comment_id=updated.id, pinned=updated.pinned)

    # === Queries ===
    async def list_roots(
        self,
        actor: Actor | None,
        content_id: int,
        sub_scope_id: int | None = None,
        anchor_id: int | None = None,
        page: int = 1,
        sort: SortMode | str = SortMode.NEWEST,
        page_size: int | None = None,
    ) -> PaginationResult[CommentView]:
        """Get a ranked page of root comments for a content item, chapter or paragraph."""
        page_size = self._resolve_page_size(page, page_size)
        if not isinstance(sort, SortMode):
            sort = parse_sort_mode(sort)
        scope = self._build_scope(content_id, sub_scope_id, anchor_id)
        return await self._core.services.thread.list_roots(
            scope.content_id, scope.sub_scope_id, scope.anchor_id, page, page_size, sort, self._viewer_id(actor)
        )

    async def list_replies(
        self, actor: Actor | None, root_id: int, page: int = 1, page_size: int | None = None
    ) -> PaginationResult[CommentView]:
        """Get a page of the replies under one comment, oldest first."""
        page_size = self._resolve_page_size(page, page_size)
        return await self._core.services.thread.list_replies(root_id, page, page_size, self._viewer_id(actor))

    async def get_comment(self, actor: Actor | None, comment_id: int) -> CommentView:
        """Get a single comment."""
        return await self._core.services.thread.get_comment_view(comment_id, self._viewer_id(actor))

    async def list_chapter_discussions(
        self, actor: Actor | None, content_id: int, limit: int = 10
    ) -> list[CommentView]:
        """Get the newest chapter-level root comments of a content item."""
        self._resolve_page_size(1, limit)
        await self._core.services.content.get_content(content_id)
        return await self._core.services.thread.list_sub_scope_discussions(content_id, limit, self._viewer_id(actor))

    async def list_all_comments(
        self, actor: Actor | None, page: int = 1, search: str | None = None, page_size: int | None = None
    ) -> PaginationResult[CommentView]:
        """Get every comment for moderation, newest first (staff only)."""
        actor = self._core.services.access.ensure_staff(actor)
        page_size = self._resolve_page_size(page, page_size)
        search = search.strip() if search else None
        return await self._core.services.thread.list_all(page, page_size, search or None, actor.id)

    # === Integration hooks for the surrounding system ===
    async def register_content(
        self, content_id: int, owner_id: str, title: str = "", sub_scope_ids: list[int] | None = None
    ) -> Content:
        """Record who owns a content item and which chapters it has."""
        return await self._core.services.content.register_content(content_id, owner_id, title, sub_scope_ids or [])

    async def sync_author_profile(
        self,
        user_id: str,
        name: str | None = None,
        nickname: str | None = None,
        username: str | None = None,
        image: str | None = None,
    ) -> UserProfile:
        """Store the display profile used for author summaries."""
        profile = UserProfile(id=user_id, name=name, nickname=nickname, username=username, image=image)
        return await self._core.services.user.sync_profile(profile)

    # === Private helpers ===
    def _resolve_page_size(self, page: int, page_size: int | None) -> int:
        """Apply the default page size and reject invalid paging arguments."""
        page_size = page_size if page_size is not None else self._core.config.page_size
        validate_page(page, page_size, self._core.config.max_page_size)
        return page_size

    @staticmethod
    def _build_scope(content_id: int, sub_scope_id: int | None, anchor_id: int | None) -> CommentScope:
        """Anchors only exist inside a sub-scope."""
        if anchor_id is not None and sub_scope_id is None:
            raise ValidationError("A paragraph can only be given together with its chapter")
        return CommentScope(content_id=content_id, sub_scope_id=sub_scope_id, anchor_id=anchor_id)

    @staticmethod
    def _viewer_id(actor: Actor | None) -> str | None:
        return actor.id if actor is not None else None
