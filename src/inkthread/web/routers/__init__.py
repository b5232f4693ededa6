from inkthread.web.routers.admin import router as admin_router
from inkthread.web.routers.comments import router as comments_router
from inkthread.web.routers.contents import router as contents_router

__all__ = [
    "admin_router",
    "comments_router",
    "contents_router",
]
