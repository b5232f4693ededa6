from datetime import datetime
from typing import Annotated, Any, Self

from pydantic import AfterValidator, BaseModel, ConfigDict
from pymongo.asynchronous.cursor import AsyncCursor

from inkthread.utils import as_utc

# MongoDB hands back naive datetimes unless the client is tz-aware
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


def mongo_datetime(value: datetime) -> datetime:
    """Naive UTC at millisecond precision, exactly as MongoDB stores it.

    Use for datetimes compared or matched inside query filters.
    """
    value = as_utc(value)
    return value.replace(tzinfo=None, microsecond=value.microsecond // 1000 * 1000)


class MongoModel(BaseModel):
    """Base for stored documents. Subclasses declare `id` aliased to `_id`."""

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
        json_schema_serialization_defaults_required=True,
    )

    def to_mongo(self) -> dict[str, Any]:
        """Convert the model to a dictionary for MongoDB storage with _id field."""
        data = self.model_dump()
        if "id" in data:
            data["_id"] = data.pop("id")  # Rename id → _id for MongoDB
        return data

    @classmethod
    async def list_cursor(cls, cursor: AsyncCursor[dict[str, Any]]) -> list[Self]:
        """Iterate over an AsyncCursor and return a list of model instances."""
        return [cls.model_validate(item) async for item in cursor]
