"""Two-level display hierarchy built from an arbitrarily deep reply graph.

Every reply is attached to the root of its chain, not to its immediate parent.
This is a read-side transformation only; stored parent links are never touched.
"""

from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime

from inkthread.core.modules.comment.models import Comment


@dataclass
class Thread:
    """A root comment and every reply below it, oldest reply first."""

    root: Comment
    children: list[Comment] = field(default_factory=list)

    @property
    def reply_count(self) -> int:
        return len(self.children)

    def comments(self) -> list[Comment]:
        return [self.root, *self.children]


def reply_order(comment: Comment) -> tuple[datetime, int]:
    return (comment.created_at, comment.id)


def sort_replies(replies: Iterable[Comment]) -> list[Comment]:
    """Oldest first; ids break ties between equal timestamps."""
    return sorted(replies, key=reply_order)


def find_effective_root(comment: Comment, by_id: Mapping[int, Comment]) -> Comment:
    """Follow parent links up to the topmost loaded ancestor.

    A comment whose parent is not loaded (deleted or out of scope) is its own root.
    A comment whose chain loops back on itself is also its own root. The walk never
    takes more steps than there are loaded comments.
    """
    current = comment
    visited = {comment.id}
    for _ in range(len(by_id)):
        parent_id = current.parent_id
        if parent_id is None or parent_id not in by_id:
            return current
        if parent_id in visited:
            return comment
        visited.add(parent_id)
        current = by_id[parent_id]
    return comment


def flatten_threads(comments: Iterable[Comment]) -> list[Thread]:
    """Group comments into threads. Roots keep the order in which they were given."""
    by_id = {comment.id: comment for comment in comments}
    root_ids = {comment_id: find_effective_root(comment, by_id).id for comment_id, comment in by_id.items()}

    threads = {
        comment_id: Thread(root=comment) for comment_id, comment in by_id.items() if root_ids[comment_id] == comment_id
    }
    for comment_id, comment in by_id.items():
        root_id = root_ids[comment_id]
        if root_id != comment_id:
            threads[root_id].children.append(comment)

    for thread in threads.values():
        thread.children = sort_replies(thread.children)
    return list(threads.values())


def count_direct_replies(comments: Iterable[Comment]) -> Counter[int]:
    """Immediate reply count per parent id among the given comments."""
    return Counter(comment.parent_id for comment in comments if comment.parent_id is not None)
