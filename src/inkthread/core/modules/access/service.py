from inkthread.core.core import Service
from inkthread.core.modules.access.models import Actor
from inkthread.core.modules.access.policy import ensure_actor
from inkthread.core.modules.comment.models import CommentScope
from inkthread.errors import AccessDeniedError


class AccessService(Service):
    async def can_moderate(self, actor: Actor, scope: CommentScope) -> bool:
        """Staff moderate everything; content owners moderate their own threads."""
        if actor.is_staff:
            return True
        content = await self.core.services.content.get_content(scope.content_id)
        return content.owner_id == actor.id

    def ensure_staff(self, actor: Actor | None) -> Actor:
        """Ensure the actor is a moderator or admin, raise AccessDeniedError if not."""
        actor = ensure_actor(actor)
        if not actor.is_staff:
            raise AccessDeniedError("Moderator privileges required")
        return actor
