from typing import Annotated, Any, cast

from fastapi import Depends, Request
from fastapi.security import APIKeyCookie
from pydantic import ValidationError as PydanticValidationError

from inkthread.app import App
from inkthread.core.modules.access.models import Actor
from inkthread.errors import AuthenticationError

# The auth system signs the actor into the shared session cookie
session_scheme = APIKeyCookie(name="session", auto_error=False)


async def get_app(request: Request) -> App:
    return cast(App, request.app.state.app)


async def get_actor(request: Request, _: Annotated[str | None, Depends(session_scheme)] = None) -> Actor | None:
    """Actor stored in the session by the auth system, or None for anonymous readers."""
    data: dict[str, Any] | None = request.session.get("actor")
    if not data:
        return None
    try:
        return Actor.model_validate(data)
    except PydanticValidationError:
        raise AuthenticationError("Invalid session") from None


# Type aliases for dependencies
AppDep = Annotated[App, Depends(get_app)]
ActorDep = Annotated[Actor | None, Depends(get_actor)]
