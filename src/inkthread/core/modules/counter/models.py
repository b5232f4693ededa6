"""Auto-incrementing counters for sequential ids."""

from enum import StrEnum

from pydantic import Field

from inkthread.core.db import MongoModel


class CounterType(StrEnum):
    """Entities that get sequential numeric ids."""

    COMMENT = "comment"


class Counter(MongoModel):
    """Atomic counter, one document per counter type.

    Uses MongoDB atomic operations so ids stay unique across process instances.
    """

    id: CounterType = Field(alias="_id", serialization_alias="id")
    seq: int = 0  # Last issued value; next id will be seq + 1
