from abc import ABC


class UserError(ABC, Exception):
    """Base class for user-related errors.

    All errors that inherit from UserError will have their messages
    displayed to the user. These errors should not contain any
    sensitive information.
    """


class NotFoundError(UserError):
    """Raised when a requested resource is not found."""

    def __init__(self, message: str = "Document not found") -> None:
        super().__init__(message)


class AuthenticationError(UserError):
    """Raised when there is no authenticated actor."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class EmailNotVerifiedError(AuthenticationError):
    """Raised when the actor has not verified their email address yet."""

    def __init__(self, message: str = "Please verify your email address before commenting") -> None:
        super().__init__(message)


class AccessDeniedError(UserError):
    """Raised when a user tries to access a resource they do not have permission for."""


class EditWindowExpiredError(AccessDeniedError):
    """Raised when the author tries to edit a comment after the edit window closed."""


class ValidationError(UserError):
    """Raised when user input fails validation."""


class RateLimitedError(UserError):
    """Raised when the actor is still inside the posting cooldown."""

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"You are posting too fast, try again in {retry_after}s")
