"""Content items (novels) comments can be attached to."""

from pydantic import Field

from inkthread.core.db import MongoModel


class Content(MongoModel):
    """Ownership record of a content item, synced from the surrounding catalog.

    The owner (uploader) moderates every thread of the item.
    """

    id: int = Field(alias="_id", serialization_alias="id")
    owner_id: str
    title: str = ""
    sub_scope_ids: list[int] = Field(default_factory=list)  # Chapters

    def has_sub_scope(self, sub_scope_id: int) -> bool:
        return sub_scope_id in self.sub_scope_ids
