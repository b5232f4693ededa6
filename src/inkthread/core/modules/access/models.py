"""Current actor as handed over by the authentication system."""

from enum import StrEnum

from pydantic import BaseModel, Field


class Role(StrEnum):
    USER = "user"
    MODERATOR = "moderator"
    ADMIN = "admin"


class Actor(BaseModel):
    """Authenticated caller. The core never loads or stores actors itself."""

    id: str = Field(..., min_length=1)
    role: Role = Role.USER
    email_verified: bool = False

    @property
    def is_staff(self) -> bool:
        """Moderators and admins can moderate every thread."""
        return self.role in (Role.MODERATOR, Role.ADMIN)
