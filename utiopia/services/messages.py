"""
Message board - posting, listing, reading and searching messages.

Registered users post as themselves (optionally shown as anonymous). Guests
post anonymously by giving a campus email, a student id and a passphrase;
the passphrase is the only way to edit or delete that message later.

All reads are redacted by VisibilityFilter.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from utiopia.auth.gate import AuthorizationGate
from utiopia.auth.identity import IdentityResolver
from utiopia.auth.permissions import Permission
from utiopia.config import Settings
from utiopia.core.errors import BannedIdentity, InvalidInput, NotFound
from utiopia.core.events import Event, EventBus
from utiopia.core.models import (
    Actor,
    AnonymousAuthor,
    ContentItem,
    ContentKind,
    Message,
    RegisteredAuthor,
    UserRecord,
)
from utiopia.core.utils import clamp_page, utc_now
from utiopia.services.audit import AuditSink, record_safely
from utiopia.services.bans import BanRegistry
from utiopia.services.content import insert_content, load_all, load_content
from utiopia.services.validation import IdentityValidator, check_image_url
from utiopia.services.visibility import VisibilityFilter
from utiopia.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50


class MessageBoard:
    """Create and read messages."""

    def __init__(
        self,
        storage: MetadataStorage,
        gate: AuthorizationGate,
        identity: IdentityResolver,
        bans: BanRegistry,
        visibility: VisibilityFilter,
        audit: AuditSink,
        bus: EventBus,
        settings: Settings,
        validator: IdentityValidator | None = None,
        clock: Callable = utc_now,
    ):
        self.storage = storage
        self.gate = gate
        self.identity = identity
        self.bans = bans
        self.visibility = visibility
        self.audit = audit
        self.bus = bus
        self.settings = settings
        self.validator = validator or IdentityValidator(settings)
        self.clock = clock

    # =========================================================================
    # Posting
    # =========================================================================

    async def create_message(
        self,
        actor: Actor,
        body: str,
        image_url: str | None = None,
        anonymous: bool = False,
        anon_email: str | None = None,
        anon_student_id: str | None = None,
        passphrase: str | None = None,
    ) -> Message:
        """
        Post a new message. It starts ``pending`` until a moderator reviews it.

        Raises:
            InvalidInput: bad body length, identity format or missing passphrase
            BannedIdentity: the account, email or student id is banned
        """
        self.gate.ensure(actor, Permission.MESSAGE_CREATE)

        body = (body or "").strip()
        limit = self.settings.message_max_length
        if not 1 <= len(body) <= limit:
            raise InvalidInput(f"message must be 1 to {limit} characters")
        image_url = check_image_url(image_url)

        if actor.is_guest:
            email = (anon_email or "").strip()
            student_id = (anon_student_id or "").strip()
            self.validator.check("email", email)
            self.validator.check("student_id", student_id)
            if not passphrase:
                raise InvalidInput("passphrase is required for anonymous messages")
            authorship: RegisteredAuthor | AnonymousAuthor = AnonymousAuthor(
                email=email,
                student_id=student_id,
                secret_hash=await self.identity.hash_secret(passphrase),
            )
        else:
            authorship = RegisteredAuthor(user_id=actor.id)

        async with self.storage.transaction():
            await self._ensure_not_banned(actor, authorship)

            message = Message(
                body=body,
                authorship=authorship,
                anonymous=anonymous or actor.is_guest,
                image_url=image_url,
                created_at=self.clock(),
            )
            await insert_content(self.storage, message)
            await record_safely(self.audit, "message.create", actor.id, {
                "id": message.id,
                "anonymous": message.is_anonymous_author,
            })

        logger.info(f"Message {message.id} created ({'guest' if actor.is_guest else actor.id})")
        await self.bus.publish(Event(
            event_type="message.created",
            actor_id=actor.id,
            payload={"content_id": message.id},
        ))
        return message

    async def _ensure_not_banned(
        self,
        actor: Actor,
        authorship: RegisteredAuthor | AnonymousAuthor,
    ) -> None:
        if isinstance(authorship, AnonymousAuthor):
            if await self.bans.is_identity_banned(authorship.email, authorship.student_id):
                raise BannedIdentity("anonymous identity has an active ban")
            return

        row = await self.storage.get(Collections.USERS, actor.id)
        if row is not None and UserRecord.model_validate(row).banned:
            raise BannedIdentity(f"user {actor.id} is banned")

    # =========================================================================
    # Reading
    # =========================================================================

    async def list_messages(
        self,
        viewer: Actor,
        status: str | None = None,
        page: int = 1,
        page_size: int = 10,
        public: bool = False,
    ) -> dict[str, Any]:
        """Newest messages first, one page at a time."""
        self.gate.ensure(viewer, Permission.MESSAGE_READ)
        items = await load_all(self.storage, ContentKind.MESSAGE)
        rows = self.visibility.filter(items, viewer, status, public=public)
        return _paginate(rows, page, page_size)

    async def get_message(self, viewer: Actor, message_id: int) -> dict[str, Any]:
        """A single message, or NotFound if this viewer may not see it."""
        self.gate.ensure(viewer, Permission.MESSAGE_READ)
        item = await load_content(self.storage, ContentKind.MESSAGE, message_id)
        if not self.visibility.visible(item, viewer):
            raise NotFound(f"message {message_id} is not visible to {viewer.id}")
        return self.visibility.project(item, viewer)

    async def search(
        self,
        viewer: Actor,
        query: str,
        page: int = 1,
        page_size: int = 10,
    ) -> dict[str, Any]:
        """
        Case-insensitive substring search over message and comment bodies.

        Moderators also match on anonymous authors' email and student id.
        Each result carries ``result_type`` ("message" or "comment").
        """
        self.gate.ensure(viewer, Permission.MESSAGE_READ)
        needle = (query or "").strip().lower()
        if not needle:
            return _paginate([], page, page_size)

        rows: list[dict[str, Any]] = []
        for kind in (ContentKind.MESSAGE, ContentKind.COMMENT):
            privileged = self.visibility.is_privileged(viewer.role, kind)
            matches = [
                item for item in await load_all(self.storage, kind)
                if _matches(item, needle, privileged)
            ]
            for row in self.visibility.filter(matches, viewer, "all"):
                row["result_type"] = kind.value
                rows.append(row)

        rows.sort(key=lambda row: row["created_at"], reverse=True)
        return _paginate(rows, page, page_size)


def _matches(item: ContentItem, needle: str, privileged: bool) -> bool:
    haystack = [item.body]
    if privileged and item.is_anonymous_author:
        haystack += [item.anon_email or "", item.anon_student_id or ""]
    return any(needle in text.lower() for text in haystack)


def _paginate(rows: list[dict[str, Any]], page: int, page_size: int) -> dict[str, Any]:
    page, page_size, offset = clamp_page(page, page_size, MAX_PAGE_SIZE)
    return {
        "items": rows[offset:offset + page_size],
        "total": len(rows),
        "page": page,
        "page_size": page_size,
    }
