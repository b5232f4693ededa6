"""Comment-related API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from inkthread.core.modules.thread.models import CommentView, PinResult
from inkthread.core.modules.vote.models import VoteResult
from inkthread.core.pagination import PaginationResult
from inkthread.web.deps import ActorDep, AppDep
from inkthread.web.openapi import ErrorResponse, RateLimitedResponse

router: APIRouter = APIRouter(tags=["comments"])


class CreateCommentRequest(BaseModel):
    """Request to create a new comment or reply."""

    content_id: int = Field(..., description="Content item to discuss")
    body: str = Field(..., description="Rich-text body (HTML allowed, stored verbatim)")
    sub_scope_id: int | None = Field(None, description="Chapter to discuss, omit for the general discussion")
    anchor_id: int | None = Field(None, description="Paragraph within the chapter")
    parent_id: int | None = Field(None, description="Comment being replied to")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"content_id": 12, "sub_scope_id": 3, "body": "<p>That twist!</p>"},
                {"content_id": 12, "sub_scope_id": 3, "parent_id": 41, "body": "Agreed."},
            ]
        }
    }


class UpdateCommentRequest(BaseModel):
    """Request to replace a comment body."""

    body: str = Field(..., description="New rich-text body")


class VoteRequest(BaseModel):
    """Request to vote on a comment."""

    direction: str = Field(..., description="`up` or `down`; repeating your current vote clears it")


class PinRequest(BaseModel):
    """Request to change the pin state of a comment."""

    pinned: bool = Field(..., description="Whether the comment should be pinned")


@router.get(
    "/comments",
    summary="List root comments",
    description=(
        "Get a ranked page of root comments for a content item, a chapter (`sub_scope_id`) or a paragraph "
        "(`sub_scope_id` + `anchor_id`). Pinned comments come first. Every root embeds its oldest replies."
    ),
    operation_id="listComments",
    responses={
        200: {"description": "Paginated list of root comments"},
        400: {"model": ErrorResponse, "description": "Invalid page, page size or sort"},
    },
)
async def list_comments(
    app: AppDep,
    actor: ActorDep,
    content_id: Annotated[int, Query(description="Content item")],
    sub_scope_id: Annotated[int | None, Query(description="Chapter")] = None,
    anchor_id: Annotated[int | None, Query(description="Paragraph within the chapter")] = None,
    page: Annotated[int, Query(description="1-based page number")] = 1,
    sort: Annotated[str, Query(description="`newest`, `votes` or `replies`")] = "newest",
    page_size: Annotated[int | None, Query(description="Items per page")] = None,
) -> PaginationResult[CommentView]:
    return await app.list_roots(actor, content_id, sub_scope_id, anchor_id, page, sort, page_size)


@router.post(
    "/comments",
    summary="Create comment",
    description="Post a root comment, or a reply when `parent_id` is given. Requires a verified email.",
    operation_id="createComment",
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Comment created successfully"},
        400: {"model": ErrorResponse, "description": "Empty body or invalid scope"},
        401: {"model": ErrorResponse, "description": "Not authenticated or email not verified"},
        404: {"model": ErrorResponse, "description": "Content, chapter or parent comment not found"},
        429: {"model": RateLimitedResponse, "description": "Posting too fast"},
    },
)
async def create_comment(request: CreateCommentRequest, app: AppDep, actor: ActorDep) -> CommentView:
    return await app.create_comment(
        actor, request.content_id, request.body, request.sub_scope_id, request.anchor_id, request.parent_id
    )


@router.get(
    "/comments/{comment_id}",
    summary="Get comment",
    operation_id="getComment",
    responses={
        200: {"description": "Comment details"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
    },
)
async def get_comment(comment_id: int, app: AppDep, actor: ActorDep) -> CommentView:
    return await app.get_comment(actor, comment_id)


@router.put(
    "/comments/{comment_id}",
    summary="Edit comment",
    description="Replace the body of your own comment. Only possible shortly after posting.",
    operation_id="editComment",
    responses={
        200: {"description": "Comment updated successfully"},
        400: {"model": ErrorResponse, "description": "Empty body"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the author, or the edit window has closed"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
    },
)
async def edit_comment(comment_id: int, request: UpdateCommentRequest, app: AppDep, actor: ActorDep) -> CommentView:
    return await app.edit_comment(actor, comment_id, request.body)


@router.delete(
    "/comments/{comment_id}",
    summary="Delete comment",
    description="Delete a comment. Allowed for its author and for moderators. Replies stay and move up a level.",
    operation_id="deleteComment",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        204: {"description": "Comment deleted successfully"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Neither the author nor a moderator"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
    },
)
async def delete_comment(comment_id: int, app: AppDep, actor: ActorDep) -> None:
    await app.delete_comment(actor, comment_id)


@router.get(
    "/comments/{comment_id}/replies",
    summary="List replies",
    description="Get every reply below a comment, oldest first.",
    operation_id="listReplies",
    responses={
        200: {"description": "Paginated list of replies"},
        400: {"model": ErrorResponse, "description": "Invalid page or page size"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
    },
)
async def list_replies(
    comment_id: int,
    app: AppDep,
    actor: ActorDep,
    page: Annotated[int, Query(description="1-based page number")] = 1,
    page_size: Annotated[int | None, Query(description="Items per page")] = None,
) -> PaginationResult[CommentView]:
    return await app.list_replies(actor, comment_id, page, page_size)


@router.post(
    "/comments/{comment_id}/vote",
    summary="Vote on comment",
    operation_id="voteComment",
    responses={
        200: {"description": "Score and your vote after the change"},
        400: {"model": ErrorResponse, "description": "Unknown vote direction"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
    },
)
async def vote_comment(comment_id: int, request: VoteRequest, app: AppDep, actor: ActorDep) -> VoteResult:
    return await app.vote_comment(actor, comment_id, request.direction)


@router.put(
    "/comments/{comment_id}/pin",
    summary="Pin or unpin comment",
    operation_id="setCommentPinned",
    responses={
        200: {"description": "Pin state after the change"},
        400: {"model": ErrorResponse, "description": "Pin limit reached"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not a moderator"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
    },
)
async def set_comment_pinned(comment_id: int, request: PinRequest, app: AppDep, actor: ActorDep) -> PinResult:
    return await app.set_pinned(actor, comment_id, request.pinned)
