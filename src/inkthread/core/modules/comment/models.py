from pydantic import BaseModel, Field

from inkthread.core.db import MongoModel, UtcDatetime


class CommentScope(BaseModel):
    """Where a comment lives: a content item, optionally a sub-scope (chapter) and an anchor (paragraph)."""

    content_id: int
    sub_scope_id: int | None = None
    anchor_id: int | None = None


class Comment(MongoModel):
    """Stored comment. Replies point at their parent; the display hierarchy is derived on read.

    Indexed on _id (sequential), (content_id, sub_scope_id, anchor_id), parent_id, created_at.
    """

    id: int = Field(alias="_id", serialization_alias="id")
    content_id: int
    sub_scope_id: int | None = None  # None: general discussion of the content item
    anchor_id: int | None = None
    parent_id: int | None = None  # None: root comment
    author_id: str
    body: str  # Opaque rich text, returned verbatim
    created_at: UtcDatetime
    edited_at: UtcDatetime | None = None
    pinned: bool = False
    pinned_at: UtcDatetime | None = None
    pinned_by: str | None = None

    @property
    def scope(self) -> CommentScope:
        return CommentScope(content_id=self.content_id, sub_scope_id=self.sub_scope_id, anchor_id=self.anchor_id)
