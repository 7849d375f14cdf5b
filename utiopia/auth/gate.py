"""
Authorization gate - the single allow/deny decision for (actor, permission, content).

Design:
- `authorize()` returns a Decision; it never raises for a denial
- `require()` / `ensure()` raise PermissionDenied (or InvalidSecret) on denial
- `can()` is the plain boolean check ("can this viewer moderate?")

Ownable permissions (update/delete) are resolved through IdentityResolver:
- registered owner        → needs the ``:own`` variant
- anonymous content       → the passphrase alone decides, role is ignored
- registered, not owner   → needs the unscoped permission
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from utiopia.auth.identity import IdentityResolver, Ownership
from utiopia.auth.permissions import Permission, is_granted, own_variant
from utiopia.core.errors import InvalidSecret, PermissionDenied
from utiopia.core.models import Actor, ContentItem

logger = logging.getLogger(__name__)


OWNABLE_PERMISSIONS: frozenset[str] = frozenset({
    Permission.MESSAGE_UPDATE.value,
    Permission.MESSAGE_DELETE.value,
    Permission.COMMENT_DELETE.value,
})


@dataclass(frozen=True)
class Decision:
    """
    Outcome of an authorization check.

    ``reason`` is for logs only; callers see the error's public message.
    """

    allowed: bool
    via: str | None = None  # "role" | "owner" | "passphrase"
    reason: str = ""
    error: type[PermissionDenied] = PermissionDenied

    @property
    def by_passphrase(self) -> bool:
        return self.via == Ownership.PASSPHRASE.value

    @property
    def by_owner(self) -> bool:
        return self.via in ("owner", Ownership.PASSPHRASE.value)


class AuthorizationGate:
    """Composes the permission matrix with identity resolution."""

    def __init__(self, identity: IdentityResolver):
        self.identity = identity

    def can(self, actor: Actor, permission: Permission | str) -> bool:
        """Role-only check, no exceptions."""
        return is_granted(actor.role, permission)

    def check(self, actor: Actor, permission: Permission | str) -> Decision:
        """Role-only decision."""
        if self.can(actor, permission):
            return Decision(allowed=True, via="role")
        return Decision(
            allowed=False,
            reason=f"role {actor.role.value} lacks {_token(permission)}",
        )

    async def authorize(
        self,
        actor: Actor,
        permission: Permission | str,
        content: ContentItem | None = None,
        secret: str | None = None,
    ) -> Decision:
        token = _token(permission)
        if token not in OWNABLE_PERMISSIONS:
            return self.check(actor, token)

        if content is None:
            raise ValueError(f"{token} needs a content item to decide ownership")

        ownership = await self.identity.ownership(content, actor, secret)

        if content.is_anonymous_author:
            if ownership is Ownership.PASSPHRASE:
                return Decision(allowed=True, via=Ownership.PASSPHRASE.value)
            if not secret:
                return Decision(allowed=False, reason="passphrase required")
            return Decision(allowed=False, reason="passphrase mismatch", error=InvalidSecret)

        if ownership is Ownership.REGISTERED:
            scoped = own_variant(token)
            if self.can(actor, scoped):
                return Decision(allowed=True, via="owner")
            return Decision(allowed=False, reason=f"owner lacks {scoped}")

        return self.check(actor, token)

    async def require(
        self,
        actor: Actor,
        permission: Permission | str,
        content: ContentItem | None = None,
        secret: str | None = None,
    ) -> Decision:
        """Authorize or raise."""
        decision = await self.authorize(actor, permission, content, secret)
        return self._enforce(actor, permission, decision)

    def ensure(self, actor: Actor, permission: Permission | str) -> Decision:
        """Role-only authorize or raise."""
        return self._enforce(actor, permission, self.check(actor, permission))

    def _enforce(self, actor: Actor, permission: Permission | str, decision: Decision) -> Decision:
        if not decision.allowed:
            logger.info(
                f"Denied {_token(permission)} for actor {actor.id} "
                f"({decision.error.__name__}: {decision.reason})"
            )
            raise decision.error(decision.reason)
        return decision


def _token(permission: Permission | str) -> str:
    return permission.value if isinstance(permission, Permission) else permission
