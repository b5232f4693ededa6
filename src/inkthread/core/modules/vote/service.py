from collections import Counter
from collections.abc import Iterable
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from inkthread.core.core import Service
from inkthread.core.modules.vote.models import Vote, VoteDirection, VoteResult, resolve_vote, vote_key
from inkthread.utils import now

logger = structlog.get_logger(__name__)


class VoteService(Service):
    """Stores votes and aggregates scores. Scores are always recomputed from the votes themselves."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("comment_votes")

    async def on_start(self) -> None:
        await self._collection.create_index([("comment_id", 1), ("direction", 1)])
        await self._collection.create_index([("actor_id", 1)])

    async def get_actor_vote(self, comment_id: int, actor_id: str) -> VoteDirection | None:
        doc = await self._collection.find_one({"_id": vote_key(comment_id, actor_id)})
        if doc is None:
            return None
        return Vote.model_validate(doc).direction

    async def cast_vote(self, comment_id: int, actor_id: str, direction: VoteDirection) -> VoteResult:
        """Toggle or switch the actor's vote and return the resulting score.

        Each attempt writes only if the vote is still at the version it was read at;
        a lost race re-reads and resolves the toggle again.
        """
        key = vote_key(comment_id, actor_id)
        while True:
            doc = await self._collection.find_one({"_id": key})
            if doc is None:
                previous = None
                actor_vote: VoteDirection | None = direction
                vote = Vote(id=key, comment_id=comment_id, actor_id=actor_id, direction=direction, voted_at=now())
                try:
                    await self._collection.insert_one(vote.to_mongo())
                except DuplicateKeyError:
                    continue
                break

            current = Vote.model_validate(doc)
            previous = current.direction
            actor_vote = resolve_vote(previous, direction)
            result = await self._collection.update_one(
                {"_id": key, "version": current.version},
                {
                    "$set": {"direction": actor_vote.value if actor_vote else None, "voted_at": now()},
                    "$inc": {"version": 1},
                },
            )
            if result.matched_count == 1:
                break
            logger.debug("comment_vote_retry", comment_id=comment_id, actor_id=actor_id)

        score = await self.get_score(comment_id)
        logger.info(
            "comment_vote_cast",
            comment_id=comment_id,
            actor_id=actor_id,
            requested=direction,
            previous=previous,
            actor_vote=actor_vote,
            score=score,
        )
        return VoteResult(comment_id=comment_id, score=score, actor_vote=actor_vote)

    async def get_score(self, comment_id: int) -> int:
        """Upvotes minus downvotes of one comment."""
        upvotes = await self._collection.count_documents(
            {"comment_id": comment_id, "direction": VoteDirection.UP.value}
        )
        downvotes = await self._collection.count_documents(
            {"comment_id": comment_id, "direction": VoteDirection.DOWN.value}
        )
        return upvotes - downvotes

    async def get_scores(self, comment_ids: Iterable[int]) -> dict[int, int]:
        """Scores for many comments in one query; comments without votes score 0."""
        ids = list(set(comment_ids))
        scores: Counter[int] = Counter({comment_id: 0 for comment_id in ids})
        if not ids:
            return dict(scores)
        votes = await Vote.list_cursor(self._collection.find({"comment_id": {"$in": ids}, "direction": {"$ne": None}}))
        for vote in votes:
            if vote.direction is not None:
                scores[vote.comment_id] += vote.direction.weight
        return dict(scores)

    async def get_actor_votes(self, actor_id: str, comment_ids: Iterable[int]) -> dict[int, VoteDirection]:
        """The actor's own votes among the given comments."""
        keys = [vote_key(comment_id, actor_id) for comment_id in set(comment_ids)]
        if not keys:
            return {}
        votes = await Vote.list_cursor(self._collection.find({"_id": {"$in": keys}}))
        return {vote.comment_id: vote.direction for vote in votes if vote.direction is not None}

    async def delete_votes_for_comment(self, comment_id: int) -> int:
        """Delete all votes of a comment, cleared ones included, and return how many were removed."""
        result = await self._collection.delete_many({"comment_id": comment_id})
        return result.deleted_count
