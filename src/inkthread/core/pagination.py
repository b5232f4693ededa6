from typing import Generic, TypeVar

from pydantic import BaseModel, Field, computed_field

from inkthread.errors import ValidationError

T = TypeVar("T")


class PaginationResult(BaseModel, Generic[T]):
    """Page-numbered result wrapper for list endpoints."""

    items: list[T] = Field(..., description="List of items in current page")
    total: int = Field(..., description="Total number of items across all pages", ge=0)
    page: int = Field(..., description="1-based page number", ge=1)
    page_size: int = Field(..., description="Maximum items per page", ge=1)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_more(self) -> bool:
        """Whether there are more items beyond the current page."""
        return page_offset(self.page, self.page_size) + self.page_size < self.total


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def validate_page(page: int, page_size: int, max_page_size: int) -> None:
    """Reject page numbers and sizes callers are not allowed to request."""
    if page < 1:
        raise ValidationError(f"Page must be 1 or greater, got {page}")
    if page_size < 1 or page_size > max_page_size:
        raise ValidationError(f"Page size must be between 1 and {max_page_size}, got {page_size}")


def paginate(items: list[T], page: int, page_size: int) -> PaginationResult[T]:
    """Slice an already ordered in-memory list into one page."""
    offset = page_offset(page, page_size)
    return PaginationResult(items=items[offset : offset + page_size], total=len(items), page=page, page_size=page_size)
