from pydantic import BaseModel, Field

from inkthread.core.db import MongoModel

UNKNOWN_AUTHOR_NAME = "Anonymous"


class UserProfile(MongoModel):
    """Display profile of a user, synced from the account system."""

    id: str = Field(alias="_id", serialization_alias="id")
    name: str | None = None
    nickname: str | None = None
    username: str | None = None
    image: str | None = None

    @property
    def display_name(self) -> str:
        return self.nickname or self.name or self.username or UNKNOWN_AUTHOR_NAME


class AuthorSummary(BaseModel):
    """Author of a comment (API representation)."""

    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    username: str | None = Field(None, description="Username, if the user picked one")
    image: str | None = Field(None, description="Avatar URL")

    @classmethod
    def from_domain(cls, profile: UserProfile) -> "AuthorSummary":
        """Create view model from domain model."""
        return cls(id=profile.id, name=profile.display_name, username=profile.username, image=profile.image)

    @classmethod
    def unknown(cls, user_id: str) -> "AuthorSummary":
        """Placeholder for authors without a synced profile."""
        return cls(id=user_id, name=UNKNOWN_AUTHOR_NAME)
