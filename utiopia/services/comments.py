"""
Comment threads.

Threads are two levels deep no matter how replies nest: every comment
points at its direct ``parent_id`` and at the thread's ``root_id``, the
first comment of the chain. A reply to a reply therefore shares the root of
its parent.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from utiopia.auth.gate import AuthorizationGate
from utiopia.auth.permissions import Permission
from utiopia.core.errors import BannedIdentity, InvalidInput, NotFound, PermissionDenied
from utiopia.core.models import Actor, Comment, ContentKind, RegisteredAuthor, UserRecord
from utiopia.core.utils import clamp_page, utc_now
from utiopia.services.audit import AuditSink, record_safely
from utiopia.services.content import insert_content, load_all, load_content
from utiopia.services.visibility import VisibilityFilter
from utiopia.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50


def thread_root(parent: Comment) -> int:
    """Root id for a reply to ``parent``."""
    return parent.root_id or parent.id


class CommentThreads:
    """Create and list comments under a message."""

    def __init__(
        self,
        storage: MetadataStorage,
        gate: AuthorizationGate,
        visibility: VisibilityFilter,
        audit: AuditSink,
        max_length: int = 1000,
        clock: Callable = utc_now,
    ):
        self.storage = storage
        self.gate = gate
        self.visibility = visibility
        self.audit = audit
        self.max_length = max_length
        self.clock = clock

    async def create_comment(
        self,
        actor: Actor,
        message_id: int,
        body: str,
        parent_id: int | None = None,
        anonymous: bool = False,
    ) -> Comment:
        """
        Comment on a message, or reply to another comment on it.

        Comments go live immediately (status ``approved``).
        """
        self.gate.ensure(actor, Permission.COMMENT_CREATE)
        if actor.is_guest:
            raise PermissionDenied("guests cannot comment")

        body = (body or "").strip()
        if not 1 <= len(body) <= self.max_length:
            raise InvalidInput(f"comment must be 1 to {self.max_length} characters")

        async with self.storage.transaction():
            user = await self.storage.get(Collections.USERS, actor.id)
            if user is not None and UserRecord.model_validate(user).banned:
                raise BannedIdentity(f"user {actor.id} is banned")

            await load_content(self.storage, ContentKind.MESSAGE, message_id)

            root_id = None
            if parent_id:
                parent = await load_content(self.storage, ContentKind.COMMENT, parent_id)
                if parent.message_id != message_id:
                    raise NotFound(f"comment {parent_id} is not on message {message_id}")
                root_id = thread_root(parent)

            comment = Comment(
                body=body,
                authorship=RegisteredAuthor(user_id=actor.id),
                anonymous=anonymous,
                message_id=message_id,
                parent_id=parent_id or None,
                root_id=root_id,
                created_at=self.clock(),
            )
            await insert_content(self.storage, comment)
            await record_safely(self.audit, "comment.create", actor.id, {
                "id": comment.id,
                "message_id": message_id,
                "parent_id": comment.parent_id,
            })

        logger.info(f"Comment {comment.id} on message {message_id} by {actor.id}")
        return comment

    async def list_comments(
        self,
        viewer: Actor,
        message_id: int,
        page: int = 1,
        page_size: int = 20,
    ) -> dict[str, Any]:
        """
        Comments of a message, grouped by thread.

        Threads are ordered by their root, replies follow their root in
        creation order.
        """
        self.gate.ensure(viewer, Permission.MESSAGE_READ)
        message = await load_content(self.storage, ContentKind.MESSAGE, message_id)
        if not self.visibility.visible(message, viewer):
            raise NotFound(f"message {message_id} is not visible to {viewer.id}")

        comments = await load_all(self.storage, ContentKind.COMMENT, message_id=message_id)
        comments.sort(key=lambda c: (c.root_id or c.id, c.id))

        rows = self.visibility.filter(comments, viewer, "all")
        page, page_size, offset = clamp_page(page, page_size, MAX_PAGE_SIZE)
        return {
            "items": rows[offset:offset + page_size],
            "total": len(rows),
            "page": page,
            "page_size": page_size,
        }
