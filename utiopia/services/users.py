"""
User administration.

Account bans here are a flag on the user record; they are separate from
identity bans in BanRegistry, which target an email or student id.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from utiopia.auth.gate import AuthorizationGate
from utiopia.auth.permissions import Permission
from utiopia.core.errors import InvalidInput, NotFound, PermissionDenied
from utiopia.core.events import EventBus, ban_status_changed
from utiopia.core.models import Actor, Role, UserRecord
from utiopia.core.utils import utc_now
from utiopia.services.audit import AuditSink, record_safely
from utiopia.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)


class UserAdmin:
    """Read and administer registered accounts."""

    def __init__(
        self,
        storage: MetadataStorage,
        gate: AuthorizationGate,
        audit: AuditSink,
        bus: EventBus,
        list_limit: int = 200,
        clock: Callable = utc_now,
    ):
        self.storage = storage
        self.gate = gate
        self.audit = audit
        self.bus = bus
        self.list_limit = list_limit
        self.clock = clock

    async def register(
        self,
        email: str,
        nickname: str,
        student_id: str | None = None,
        role: Role = Role.USER,
    ) -> UserRecord:
        """Add an account record (credentials live with the auth provider)."""
        email = (email or "").strip().lower()
        if not email or not (nickname or "").strip():
            raise InvalidInput("email and nickname are required")

        async with self.storage.transaction():
            if await self.storage.count(Collections.USERS, filters={"email": email}):
                raise InvalidInput("email is already registered")
            user = UserRecord(
                email=email,
                nickname=nickname.strip(),
                student_id=student_id,
                role=role,
                created_at=self.clock(),
            )
            user.id = await self.storage.insert(Collections.USERS, user.model_dump(exclude={"id"}))

        return user

    async def list_users(self, actor: Actor, limit: int | None = None) -> list[UserRecord]:
        """Newest accounts first. Requires ``user:read``."""
        self.gate.ensure(actor, Permission.USER_READ)
        rows = await self.storage.query(
            Collections.USERS,
            descending=True,
            limit=min(limit or self.list_limit, self.list_limit),
        )
        return [UserRecord.model_validate(row) for row in rows]

    async def update_user(
        self,
        actor: Actor,
        user_id: int,
        role: Role | str | None = None,
        nickname: str | None = None,
        student_id: str | None = None,
    ) -> UserRecord:
        """
        Change an account's role, nickname or student id.

        Only a super admin may hand out (or take away) the super admin role.
        """
        self.gate.ensure(actor, Permission.USER_UPDATE)

        updates: dict[str, Any] = {}
        if role is not None:
            try:
                updates["role"] = Role(role)
            except ValueError:
                raise InvalidInput(f"unknown role: {role}") from None
        if nickname is not None:
            if not nickname.strip():
                raise InvalidInput("nickname cannot be empty")
            updates["nickname"] = nickname.strip()
        if student_id is not None:
            updates["student_id"] = student_id or None

        async with self.storage.transaction():
            user = await self._load(user_id)
            if "role" in updates and actor.role is not Role.SUPER_ADMIN and (
                Role.SUPER_ADMIN in (updates["role"], user.role)
            ):
                raise PermissionDenied("only super_admin manages super_admin accounts")

            await self.storage.update(Collections.USERS, user_id, updates)
            await record_safely(self.audit, "user.update", actor.id, {
                "id": user_id,
                **{key: getattr(value, "value", value) for key, value in updates.items()},
            })

        return user.model_copy(update=updates)

    async def ban_user(self, actor: Actor, user_id: int) -> UserRecord:
        return await self._set_banned(actor, user_id, True)

    async def unban_user(self, actor: Actor, user_id: int) -> UserRecord:
        return await self._set_banned(actor, user_id, False)

    async def _set_banned(self, actor: Actor, user_id: int, banned: bool) -> UserRecord:
        self.gate.ensure(actor, Permission.USER_BAN if banned else Permission.USER_UNBAN)

        async with self.storage.transaction():
            user = await self._load(user_id)
            await self.storage.update(Collections.USERS, user_id, {"banned": banned})
            await record_safely(self.audit, "user.ban" if banned else "user.unban", actor.id, {
                "id": user_id,
            })

        logger.info(f"User {user_id} {'banned' if banned else 'unbanned'} by {actor.id}")
        await self.bus.publish(ban_status_changed(user_id, banned, actor.id, user.email))
        return user.model_copy(update={"banned": banned})

    async def _load(self, user_id: int) -> UserRecord:
        row = await self.storage.get(Collections.USERS, user_id)
        if row is None:
            raise NotFound(f"user {user_id} does not exist")
        return UserRecord.model_validate(row)
