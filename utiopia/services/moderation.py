"""
Moderation state machine.

Messages are pre-moderated: they start ``pending`` and a moderator moves
them to ``approved`` or ``rejected`` exactly once. An owner edit is the only
way back to ``pending``, and it always goes back there.

Comments are displayed immediately (they start ``approved``) and are
moderated after the fact, so either verdict can be applied from any status
other than the one the comment already has.

Every transition authorizes first, then loads (missing or soft-deleted
targets are NotFound), then writes the item and its audit entry inside one
storage transaction. Events for the notification service are published only
after the transaction has committed.
"""

from __future__ import annotations

import logging
from typing import Callable

from utiopia.auth.gate import AuthorizationGate
from utiopia.auth.permissions import Permission
from utiopia.core.errors import InvalidInput, InvalidState
from utiopia.core.events import EventBus, status_changed
from utiopia.core.models import (
    Actor,
    ContentItem,
    ContentKind,
    ContentStatus,
    Message,
    UserRecord,
)
from utiopia.core.utils import utc_now
from utiopia.services.audit import AuditSink, record_safely
from utiopia.services.content import load_content, save_content
from utiopia.services.validation import check_image_url
from utiopia.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)


S = ContentStatus

# (kind, from) → allowed targets
TRANSITIONS: dict[tuple[ContentKind, ContentStatus], frozenset[ContentStatus]] = {
    (ContentKind.MESSAGE, S.PENDING): frozenset({S.APPROVED, S.REJECTED}),
    (ContentKind.MESSAGE, S.APPROVED): frozenset(),
    (ContentKind.MESSAGE, S.REJECTED): frozenset(),
    (ContentKind.COMMENT, S.PENDING): frozenset({S.APPROVED, S.REJECTED}),
    (ContentKind.COMMENT, S.APPROVED): frozenset({S.REJECTED}),
    (ContentKind.COMMENT, S.REJECTED): frozenset({S.APPROVED}),
}

VERDICT_PERMISSIONS: dict[tuple[ContentKind, ContentStatus], Permission] = {
    (ContentKind.MESSAGE, S.APPROVED): Permission.MESSAGE_APPROVE,
    (ContentKind.MESSAGE, S.REJECTED): Permission.MESSAGE_REJECT,
    (ContentKind.COMMENT, S.APPROVED): Permission.COMMENT_APPROVE,
    (ContentKind.COMMENT, S.REJECTED): Permission.COMMENT_REJECT,
}

DELETE_PERMISSIONS: dict[ContentKind, Permission] = {
    ContentKind.MESSAGE: Permission.MESSAGE_DELETE,
    ContentKind.COMMENT: Permission.COMMENT_DELETE,
}


def can_transition(kind: ContentKind, current: ContentStatus, target: ContentStatus) -> bool:
    return target in TRANSITIONS[(ContentKind(kind), ContentStatus(current))]


class ModerationStateMachine:
    """Applies approve / reject / edit / soft-delete to content items."""

    def __init__(
        self,
        storage: MetadataStorage,
        gate: AuthorizationGate,
        audit: AuditSink,
        bus: EventBus,
        message_max_length: int = 500,
        clock: Callable = utc_now,
    ):
        self.storage = storage
        self.gate = gate
        self.audit = audit
        self.bus = bus
        self.message_max_length = message_max_length
        self.clock = clock

    # =========================================================================
    # Verdicts
    # =========================================================================

    async def approve(self, kind: ContentKind | str, content_id: int, actor: Actor) -> ContentItem:
        return await self._review(ContentKind(kind), content_id, actor, S.APPROVED)

    async def reject(
        self,
        kind: ContentKind | str,
        content_id: int,
        actor: Actor,
        reason: str | None = None,
    ) -> ContentItem:
        """Reject content. Only messages keep the reason."""
        return await self._review(ContentKind(kind), content_id, actor, S.REJECTED, reason)

    async def _review(
        self,
        kind: ContentKind,
        content_id: int,
        actor: Actor,
        target: ContentStatus,
        reason: str | None = None,
    ) -> ContentItem:
        self.gate.ensure(actor, VERDICT_PERMISSIONS[(kind, target)])

        async with self.storage.transaction():
            item = await load_content(self.storage, kind, content_id)
            if not can_transition(kind, item.status, target):
                raise InvalidState(
                    f"{kind.value} {content_id} cannot go from {item.status.value} to {target.value}"
                )

            previous = item.status
            item.status = target
            item.reviewed_by = actor.id
            item.reviewed_at = self.clock()
            if isinstance(item, Message):
                item.reject_reason = reason if target is S.REJECTED else None

            await save_content(self.storage, item)
            await record_safely(self.audit, f"{kind.value}.{_verb(target)}", actor.id, {
                "id": content_id,
                "from": previous.value,
                "reason": reason if target is S.REJECTED else None,
            })

        logger.info(f"{kind.value} {content_id}: {previous.value} -> {target.value} by {actor.id}")

        recipient = await self._recipient(item)
        await self.bus.publish(status_changed(
            kind.value,
            content_id,
            target.value,
            actor_id=actor.id,
            recipient=recipient,
            reason=reason if target is S.REJECTED else None,
        ))
        return item

    # =========================================================================
    # Owner / moderator mutations
    # =========================================================================

    async def edit(
        self,
        content_id: int,
        actor: Actor,
        body: str,
        secret: str | None = None,
        image_url: str | None = None,
    ) -> Message:
        """
        Edit a message body.

        Owner and passphrase edits always send the message back to
        ``pending`` with review stamps cleared. A moderator editing someone
        else's message keeps its status.
        """
        body = (body or "").strip()
        if not 1 <= len(body) <= self.message_max_length:
            raise InvalidInput(f"message must be 1 to {self.message_max_length} characters")

        async with self.storage.transaction():
            item = await load_content(self.storage, ContentKind.MESSAGE, content_id)
            decision = await self.gate.require(actor, Permission.MESSAGE_UPDATE, item, secret)

            previous = item.status
            item.body = body
            if image_url is not None:
                item.image_url = check_image_url(image_url)
            if decision.by_owner:
                item.status = S.PENDING
                item.clear_review()

            await save_content(self.storage, item)
            await record_safely(self.audit, "message.update", actor.id, {
                "id": content_id,
                "via": decision.via,
                "from": previous.value,
                "status": item.status.value,
            })

        logger.info(f"message {content_id} edited via {decision.via}, status {item.status.value}")
        return item

    async def soft_delete(
        self,
        kind: ContentKind | str,
        content_id: int,
        actor: Actor,
        secret: str | None = None,
    ) -> ContentItem:
        """Mark content deleted. Status is left as it was."""
        kind = ContentKind(kind)

        async with self.storage.transaction():
            item = await load_content(self.storage, kind, content_id)
            decision = await self.gate.require(actor, DELETE_PERMISSIONS[kind], item, secret)

            item.deleted_at = self.clock()
            await save_content(self.storage, item)
            await record_safely(self.audit, f"{kind.value}.delete", actor.id, {
                "id": content_id,
                "via": decision.via,
            })

        logger.info(f"{kind.value} {content_id} soft-deleted via {decision.via}")
        return item

    # =========================================================================
    # Internal
    # =========================================================================

    async def _recipient(self, item: ContentItem) -> str | None:
        """Where the author is notified: account email or the anonymous email."""
        if item.is_anonymous_author:
            return item.anon_email

        row = await self.storage.get(Collections.USERS, item.owner_user_id)
        if row is None:
            logger.debug(f"No user record for author {item.owner_user_id}")
            return None
        return UserRecord.model_validate(row).email


def _verb(status: ContentStatus) -> str:
    return "approve" if status is S.APPROVED else "reject"
