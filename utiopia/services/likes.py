"""
Likes on messages.

A like row is never deleted; toggling flips its ``active`` flag so each
(message, user) pair has at most one row.
"""

from __future__ import annotations

import logging
from typing import Callable

from utiopia.auth.gate import AuthorizationGate
from utiopia.auth.permissions import Permission
from utiopia.core.errors import PermissionDenied
from utiopia.core.models import Actor, ContentKind, Like
from utiopia.core.utils import utc_now
from utiopia.services.audit import AuditSink, record_safely
from utiopia.services.content import load_content
from utiopia.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)


class LikeService:
    def __init__(
        self,
        storage: MetadataStorage,
        gate: AuthorizationGate,
        audit: AuditSink,
        clock: Callable = utc_now,
    ):
        self.storage = storage
        self.gate = gate
        self.audit = audit
        self.clock = clock

    async def toggle_like(self, actor: Actor, message_id: int) -> bool:
        """Like or un-like a message. Returns True if the message is now liked."""
        self.gate.ensure(actor, Permission.LIKE_TOGGLE)
        if actor.is_guest:
            raise PermissionDenied("guests cannot like")

        async with self.storage.transaction():
            await load_content(self.storage, ContentKind.MESSAGE, message_id)

            rows = await self.storage.query(
                Collections.LIKES,
                filters={"message_id": message_id, "user_id": actor.id},
                limit=1,
            )
            if rows:
                liked = not rows[0]["active"]
                await self.storage.update(Collections.LIKES, rows[0]["id"], {"active": liked})
            else:
                liked = True
                like = Like(message_id=message_id, user_id=actor.id, created_at=self.clock())
                await self.storage.insert(Collections.LIKES, like.model_dump(exclude={"id"}))

            await record_safely(
                self.audit,
                "like.add" if liked else "like.remove",
                actor.id,
                {"message_id": message_id},
            )

        logger.debug(f"User {actor.id} {'liked' if liked else 'unliked'} message {message_id}")
        return liked

    async def count_likes(self, message_id: int) -> int:
        return await self.storage.count(
            Collections.LIKES,
            filters={"message_id": message_id, "active": True},
        )
