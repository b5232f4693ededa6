from collections.abc import Mapping

import structlog

from inkthread.core.core import Service
from inkthread.core.modules.comment.models import Comment
from inkthread.core.modules.thread.flatten import count_direct_replies, flatten_threads, sort_replies
from inkthread.core.modules.thread.models import CommentView, ParentPreview
from inkthread.core.modules.thread.ranking import SortMode, rank_threads
from inkthread.core.pagination import PaginationResult, paginate
from inkthread.utils import excerpt

logger = structlog.get_logger(__name__)


class ThreadService(Service):
    """Read side: flattens, ranks and paginates comments, then renders them for one viewer."""

    async def render(
        self, entries: list[tuple[Comment, int]], known: Mapping[int, Comment], viewer_id: str | None
    ) -> list[CommentView]:
        """Build views for (comment, reply_count) pairs, in the given order.

        `known` holds comments already loaded by the caller; parents missing from it are fetched.
        """
        comments = [comment for comment, _ in entries]
        parent_ids = {comment.parent_id for comment in comments if comment.parent_id is not None}
        parents = {parent_id: known[parent_id] for parent_id in parent_ids if parent_id in known}
        parents.update(await self.core.services.comment.get_comments(parent_ids - set(parents)))

        authors = await self.core.services.user.get_author_summaries(
            [comment.author_id for comment in comments] + [parent.author_id for parent in parents.values()]
        )
        comment_ids = [comment.id for comment in comments]
        scores = await self.core.services.vote.get_scores(comment_ids)
        viewer_votes = await self.core.services.vote.get_actor_votes(viewer_id, comment_ids) if viewer_id else {}
        excerpt_length = self.core.config.excerpt_length

        views = []
        for comment, reply_count in entries:
            preview = None
            parent = parents.get(comment.parent_id) if comment.parent_id is not None else None
            if parent is not None:
                preview = ParentPreview(
                    id=parent.id, author=authors[parent.author_id], excerpt=excerpt(parent.body, excerpt_length)
                )
            views.append(
                CommentView.from_domain(
                    comment,
                    author=authors[comment.author_id],
                    score=scores.get(comment.id, 0),
                    actor_vote=viewer_votes.get(comment.id),
                    reply_count=reply_count,
                    parent=preview,
                )
            )
        return views

    async def list_roots(
        self,
        content_id: int,
        sub_scope_id: int | None,
        anchor_id: int | None,
        page: int,
        page_size: int,
        sort: SortMode,
        viewer_id: str | None = None,
    ) -> PaginationResult[CommentView]:
        """Ranked page of root threads, each carrying its oldest replies as a preview."""
        comments = await self.core.services.comment.find_by_scope(content_id, sub_scope_id, anchor_id)
        threads = flatten_threads(comments)

        scores = None
        if sort is SortMode.VOTES:
            scores = await self.core.services.vote.get_scores(thread.root.id for thread in threads)
        result = paginate(rank_threads(threads, sort, scores), page, page_size)

        preview_size = self.core.config.reply_preview_size
        entries: list[tuple[Comment, int]] = []
        for thread in result.items:
            entries.append((thread.root, thread.reply_count))
            direct = count_direct_replies(thread.children)
            entries.extend((reply, direct[reply.id]) for reply in thread.children[:preview_size])

        views = {view.id: view for view in await self.render(entries, {c.id: c for c in comments}, viewer_id)}
        items = []
        for thread in result.items:
            root_view = views[thread.root.id]
            root_view.replies = [views[reply.id] for reply in thread.children[:preview_size]]
            items.append(root_view)

        logger.debug(
            "list_roots",
            content_id=content_id,
            sub_scope_id=sub_scope_id,
            anchor_id=anchor_id,
            sort=sort,
            loaded=len(comments),
            total=result.total,
            page=page,
            returned=len(items),
        )
        return PaginationResult(items=items, total=result.total, page=page, page_size=page_size)

    async def list_replies(
        self, root_id: int, page: int, page_size: int, viewer_id: str | None = None
    ) -> PaginationResult[CommentView]:
        """Every reply below one comment, oldest first, without loading the rest of its scope."""
        root = await self.core.services.comment.get_comment(root_id)
        replies = sort_replies(await self.core.services.comment.find_descendants(root_id))
        result = paginate(replies, page, page_size)

        direct = count_direct_replies(replies)
        known = {root.id: root} | {reply.id: reply for reply in replies}
        views = await self.render([(reply, direct[reply.id]) for reply in result.items], known, viewer_id)
        return PaginationResult(items=views, total=result.total, page=page, page_size=page_size)

    async def get_comment_view(self, comment_id: int, viewer_id: str | None = None) -> CommentView:
        """Single comment; roots count their whole thread, replies their immediate replies."""
        comment = await self.core.services.comment.get_comment(comment_id)
        descendants = await self.core.services.comment.find_descendants(comment_id)
        # A reply whose parent was deleted renders as a root
        is_root = comment.parent_id is None or not await self.core.services.comment.get_comments([comment.parent_id])
        if is_root:
            reply_count = len(descendants)
        else:
            reply_count = count_direct_replies(descendants)[comment.id]
        views = await self.render([(comment, reply_count)], {}, viewer_id)
        return views[0]

    async def list_sub_scope_discussions(
        self, content_id: int, limit: int, viewer_id: str | None = None
    ) -> list[CommentView]:
        """Newest chapter-level root comments of a content item."""
        roots = await self.core.services.comment.find_sub_scope_roots(content_id, limit)
        entries = [(root, len(await self.core.services.comment.find_descendants(root.id))) for root in roots]
        return await self.render(entries, {}, viewer_id)

    async def list_all(
        self, page: int, page_size: int, search: str | None = None, viewer_id: str | None = None
    ) -> PaginationResult[CommentView]:
        """Moderation listing of every comment, newest first."""
        result = await self.core.services.comment.search_comments(page, page_size, search)
        direct = await self.core.services.comment.count_direct_replies(comment.id for comment in result.items)
        views = await self.render([(comment, direct[comment.id]) for comment in result.items], {}, viewer_id)
        return PaginationResult(items=views, total=result.total, page=page, page_size=page_size)
