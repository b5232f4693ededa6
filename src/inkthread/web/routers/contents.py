from typing import Annotated

from fastapi import APIRouter, Query

from inkthread.core.modules.thread.models import CommentView
from inkthread.web.deps import ActorDep, AppDep
from inkthread.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["contents"])


@router.get(
    "/contents/{content_id}/discussions",
    summary="List chapter discussions",
    description="Get the newest root comments posted on the chapters of a content item.",
    operation_id="listChapterDiscussions",
    responses={
        200: {"description": "Newest chapter comments"},
        400: {"model": ErrorResponse, "description": "Invalid limit"},
        404: {"model": ErrorResponse, "description": "Content not found"},
    },
)
async def list_chapter_discussions(
    content_id: int,
    app: AppDep,
    actor: ActorDep,
    limit: Annotated[int, Query(description="Maximum items to return")] = 10,
) -> list[CommentView]:
    return await app.list_chapter_discussions(actor, content_id, limit)
