"""Authorization rules for comment commands.

Every check raises on failure and has no side effects, so callers run them
before touching storage.
"""

from datetime import datetime, timedelta

from inkthread.core.modules.access.models import Actor
from inkthread.core.modules.comment.models import Comment
from inkthread.errors import AccessDeniedError, AuthenticationError, EditWindowExpiredError, EmailNotVerifiedError


def ensure_actor(actor: Actor | None) -> Actor:
    """Reject anonymous callers."""
    if actor is None:
        raise AuthenticationError
    return actor


def ensure_can_post(actor: Actor | None) -> Actor:
    """Only authenticated actors with a verified email may write comments."""
    actor = ensure_actor(actor)
    if not actor.email_verified:
        raise EmailNotVerifiedError
    return actor


def is_within_edit_window(comment: Comment, at: datetime, window: timedelta) -> bool:
    return at - comment.created_at < window


def ensure_can_edit(actor: Actor, comment: Comment, at: datetime, window: timedelta) -> None:
    """Only the author may edit, and only inside the edit window. Moderator status does not matter."""
    if comment.author_id != actor.id:
        raise AccessDeniedError("Only the author can edit this comment")
    if not is_within_edit_window(comment, at, window):
        minutes = int(window.total_seconds() // 60)
        raise EditWindowExpiredError(f"Comments can only be edited within {minutes} minutes of posting")


def ensure_can_delete(actor: Actor, comment: Comment, can_moderate: bool) -> None:
    """The author or any moderator of the thread may delete."""
    if comment.author_id != actor.id and not can_moderate:
        raise AccessDeniedError("You cannot delete this comment")


def ensure_can_pin(can_moderate: bool) -> None:
    """Pinning is reserved to moderators and content owners; authorship grants nothing here."""
    if not can_moderate:
        raise AccessDeniedError("Only moderators can pin comments")
