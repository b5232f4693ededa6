import html
import re
from datetime import UTC, datetime

TAG_RE = re.compile(r"<[^>]*>")
WHITESPACE_RE = re.compile(r"\s+")


def now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from MongoDB."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def plain_text(body: str) -> str:
    """Strip markup from a rich-text body and collapse whitespace."""
    text = html.unescape(TAG_RE.sub(" ", body))
    return WHITESPACE_RE.sub(" ", text.replace("\xa0", " ")).strip()


def excerpt(body: str, length: int) -> str:
    """Short plain-text quote of a body, with an ellipsis when cut."""
    text = plain_text(body)
    if len(text) <= length:
        return text
    return text[:length] + "..."
