from datetime import datetime

from pydantic import BaseModel, Field

from inkthread.core.modules.comment.models import Comment
from inkthread.core.modules.user.models import AuthorSummary
from inkthread.core.modules.vote.models import VoteDirection


class ParentPreview(BaseModel):
    """Who a reply answers and a short quote of what they said."""

    id: int = Field(..., description="Immediate parent comment ID")
    author: AuthorSummary = Field(..., description="Author of the parent comment")
    excerpt: str = Field(..., description="Truncated plain text of the parent body")


class CommentView(BaseModel):
    """Comment as presented to a particular viewer (API representation)."""

    id: int = Field(..., description="Comment ID")
    content_id: int = Field(..., description="Content item the comment belongs to")
    sub_scope_id: int | None = Field(None, description="Chapter, if any")
    anchor_id: int | None = Field(None, description="Paragraph within the chapter, if any")
    parent_id: int | None = Field(None, description="Immediate parent comment ID, null for roots")
    body: str = Field(..., description="Rich-text body, verbatim")
    author: AuthorSummary = Field(..., description="Comment author")
    created_at: datetime = Field(..., description="Creation time")
    edited_at: datetime | None = Field(None, description="Last edit time, null if never edited")
    pinned: bool = Field(False, description="Pinned by a moderator")
    score: int = Field(0, description="Upvotes minus downvotes")
    actor_vote: VoteDirection | None = Field(None, description="The viewer's own vote")
    reply_count: int = Field(0, description="Replies in the thread for roots, immediate replies otherwise")
    parent: ParentPreview | None = Field(None, description="Reply context, only for replies")
    replies: list["CommentView"] = Field(default_factory=list, description="Oldest replies, embedded in root listings")

    @classmethod
    def from_domain(
        cls,
        comment: Comment,
        author: AuthorSummary,
        score: int = 0,
        actor_vote: VoteDirection | None = None,
        reply_count: int = 0,
        parent: ParentPreview | None = None,
    ) -> "CommentView":
        """Create view model from domain model."""
        return cls(
            id=comment.id,
            content_id=comment.content_id,
            sub_scope_id=comment.sub_scope_id,
            anchor_id=comment.anchor_id,
            parent_id=comment.parent_id,
            body=comment.body,
            author=author,
            created_at=comment.created_at,
            edited_at=comment.edited_at,
            pinned=comment.pinned,
            score=score,
            actor_vote=actor_vote,
            reply_count=reply_count,
            parent=parent,
        )


class PinResult(BaseModel):
    """Pin state right after a pin command."""

    comment_id: int = Field(..., description="Comment ID")
    pinned: bool = Field(..., description="Whether the comment is now pinned")
