from enum import StrEnum
from uuid import uuid4

from pydantic import Field

from inkthread.core.db import MongoModel, UtcDatetime


class NotificationType(StrEnum):
    REPLY_COMMENT = "reply_comment"


class Notification(MongoModel):
    """Notification handed to the delivery system, which owns reading and marking them."""

    id: str = Field(alias="_id", serialization_alias="id", default_factory=lambda: uuid4().hex)
    recipient_id: str
    actor_id: str
    type: NotificationType
    resource_type: str = "comment"
    resource_id: str
    created_at: UtcDatetime
    read: bool = False
