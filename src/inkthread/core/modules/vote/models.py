from enum import StrEnum

from pydantic import BaseModel, Field

from inkthread.core.db import MongoModel, UtcDatetime
from inkthread.errors import ValidationError


class VoteDirection(StrEnum):
    UP = "up"
    DOWN = "down"

    @property
    def weight(self) -> int:
        return 1 if self is VoteDirection.UP else -1


def parse_vote_direction(value: str) -> VoteDirection:
    """Accept `up`/`down` in any case, plus the legacy `UPVOTE`/`DOWNVOTE` spelling."""
    normalized = value.strip().lower().removesuffix("vote")
    try:
        return VoteDirection(normalized)
    except ValueError:
        raise ValidationError(f"Vote direction must be 'up' or 'down', got '{value}'") from None


def vote_key(comment_id: int, actor_id: str) -> str:
    """Document id of a vote; one vote per (comment, actor) is enforced by _id uniqueness."""
    return f"{comment_id}:{actor_id}"


def resolve_vote(current: VoteDirection | None, requested: VoteDirection) -> VoteDirection | None:
    """Repeating the current direction clears the vote, anything else replaces it."""
    if current == requested:
        return None
    return requested


class Vote(MongoModel):
    """Vote of one actor on one comment.

    A cleared vote stays behind with no direction so that `version` keeps counting;
    every change is a compare-and-set on it. Indexed on comment_id and actor_id.
    """

    id: str = Field(alias="_id", serialization_alias="id")
    comment_id: int
    actor_id: str
    direction: VoteDirection | None
    voted_at: UtcDatetime
    version: int = 0


class VoteResult(BaseModel):
    """Authoritative vote state right after a vote command."""

    comment_id: int = Field(..., description="Voted comment")
    score: int = Field(..., description="Upvotes minus downvotes")
    actor_vote: VoteDirection | None = Field(None, description="The caller's vote after the change, if any")
