"""Ordering of root threads. Replies inside a thread are never reordered here."""

from collections.abc import Mapping
from enum import StrEnum

from inkthread.core.modules.thread.flatten import Thread
from inkthread.errors import ValidationError


class SortMode(StrEnum):
    NEWEST = "newest"
    VOTES = "votes"
    REPLIES = "replies"


def parse_sort_mode(value: str) -> SortMode:
    try:
        return SortMode(value.strip().lower())
    except ValueError:
        allowed = ", ".join(mode.value for mode in SortMode)
        raise ValidationError(f"Sort must be one of: {allowed}") from None


def rank_threads(threads: list[Thread], sort: SortMode, scores: Mapping[int, int] | None = None) -> list[Thread]:
    """Pinned roots first, then the chosen metric descending, then newest first.

    `scores` maps root ids to vote scores and is only read in VOTES mode.
    """
    scores = scores or {}

    def metric(thread: Thread) -> int:
        if sort is SortMode.VOTES:
            return scores.get(thread.root.id, 0)
        if sort is SortMode.REPLIES:
            return thread.reply_count
        return 0

    return sorted(
        threads,
        key=lambda thread: (thread.root.pinned, metric(thread), thread.root.created_at, thread.root.id),
        reverse=True,
    )
