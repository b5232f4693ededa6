from typing import Annotated

from fastapi import APIRouter, Query

from inkthread.core.modules.thread.models import CommentView
from inkthread.core.pagination import PaginationResult
from inkthread.web.deps import ActorDep, AppDep
from inkthread.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["admin"])


@router.get(
    "/admin/comments",
    summary="List all comments (staff only)",
    description="Get every comment across all content, newest first. Optionally filter by body text.",
    operation_id="listAllComments",
    responses={
        200: {"description": "Paginated list of comments"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not a moderator or admin"},
    },
)
async def list_all_comments(
    app: AppDep,
    actor: ActorDep,
    page: Annotated[int, Query(description="1-based page number")] = 1,
    search: Annotated[str | None, Query(description="Case-insensitive text to look for in comment bodies")] = None,
) -> PaginationResult[CommentView]:
    return await app.list_all_comments(actor, page, search)
