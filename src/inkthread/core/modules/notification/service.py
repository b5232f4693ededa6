import asyncio
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from inkthread.core.core import Service
from inkthread.core.modules.notification.models import Notification, NotificationType
from inkthread.utils import now

logger = structlog.get_logger(__name__)


class NotificationService(Service):
    """Fire-and-forget reply notifications. Failures are logged, never raised to the caller."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("notifications")
        self._notification_tasks: set[asyncio.Task[None]] = set()

    async def on_start(self) -> None:
        await self._collection.create_index([("recipient_id", 1), ("created_at", -1)])

    async def on_stop(self) -> None:
        await self.wait_pending()

    async def wait_pending(self) -> None:
        """Wait until every scheduled notification has been written or has failed."""
        if self._notification_tasks:
            await asyncio.gather(*list(self._notification_tasks), return_exceptions=True)

    async def _store_reply_notification(self, recipient_id: str, actor_id: str, comment_id: int) -> None:
        try:
            notification = Notification(
                recipient_id=recipient_id,
                actor_id=actor_id,
                type=NotificationType.REPLY_COMMENT,
                resource_id=str(comment_id),
                created_at=now(),
            )
            await self._collection.insert_one(notification.to_mongo())
            logger.debug("reply_notification_stored", recipient_id=recipient_id, comment_id=comment_id)
        except Exception as e:
            logger.exception(
                "reply_notification_failed",
                recipient_id=recipient_id,
                actor_id=actor_id,
                comment_id=comment_id,
                error=str(e),
            )

    def notify_reply(self, recipient_id: str, actor_id: str, comment_id: int) -> None:
        """Tell the parent's author about a reply, in the background. Replies to oneself are ignored."""
        if recipient_id == actor_id:
            return
        task = asyncio.create_task(self._store_reply_notification(recipient_id, actor_id, comment_id))
        self._notification_tasks.add(task)
        task.add_done_callback(self._notification_tasks.discard)

    async def get_notifications(self, recipient_id: str, limit: int = 50) -> list[Notification]:
        """Latest notifications of a recipient."""
        cursor = self._collection.find({"recipient_id": recipient_id}, sort=[("created_at", -1)], limit=limit)
        return await Notification.list_cursor(cursor)
