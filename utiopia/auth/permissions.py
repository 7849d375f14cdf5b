"""
Permissions and the role → permission matrix.

This defines WHAT each role can do. Ownership ("own" scope) is decided
in gate.py together with identity.py.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping

from utiopia.core.errors import PermissionDenied
from utiopia.core.models import Role


WILDCARD = "*"
OWN_SUFFIX = ":own"


class Permission(str, Enum):
    """
    Known permission tokens.

    Tokens ending in ``:own`` only apply to content the actor owns.
    Lookups accept any string; unknown tokens are simply never granted
    (except to super_admin).
    """

    # Messages
    MESSAGE_READ = "message:read"
    MESSAGE_CREATE = "message:create"
    MESSAGE_UPDATE = "message:update"
    MESSAGE_UPDATE_OWN = "message:update:own"
    MESSAGE_DELETE = "message:delete"
    MESSAGE_DELETE_OWN = "message:delete:own"
    MESSAGE_APPROVE = "message:approve"
    MESSAGE_REJECT = "message:reject"

    # Likes
    LIKE_TOGGLE = "like:toggle"

    # Comments
    COMMENT_CREATE = "comment:create"
    COMMENT_DELETE = "comment:delete"
    COMMENT_DELETE_OWN = "comment:delete:own"
    COMMENT_APPROVE = "comment:approve"
    COMMENT_REJECT = "comment:reject"

    # Users
    USER_READ = "user:read"
    USER_UPDATE = "user:update"
    USER_BAN = "user:ban"
    USER_UNBAN = "user:unban"

    # Admin
    AUDIT_READ = "audit:read"
    BAN_MANAGE = "ban:manage"


P = Permission

# =============================================================================
# Permission Matrix (immutable, built once at import)
# =============================================================================

ROLE_PERMISSIONS: Mapping[Role, frozenset[str]] = MappingProxyType({
    Role.SUPER_ADMIN: frozenset({WILDCARD}),
    Role.MODERATOR: frozenset(p.value for p in (
        P.MESSAGE_READ,
        P.MESSAGE_UPDATE,
        P.MESSAGE_DELETE,
        P.MESSAGE_APPROVE,
        P.MESSAGE_REJECT,
        P.LIKE_TOGGLE,
        P.COMMENT_APPROVE,
        P.COMMENT_REJECT,
        P.USER_READ,
        P.USER_UPDATE,
        P.USER_BAN,
        P.USER_UNBAN,
        P.AUDIT_READ,
        P.BAN_MANAGE,
    )),
    Role.USER: frozenset(p.value for p in (
        P.MESSAGE_READ,
        P.MESSAGE_CREATE,
        P.MESSAGE_UPDATE_OWN,
        P.MESSAGE_DELETE_OWN,
        P.LIKE_TOGGLE,
        P.COMMENT_CREATE,
        P.COMMENT_DELETE_OWN,
    )),
})


def get_permissions(role: Role) -> frozenset[str]:
    """
    All permission tokens granted to a role (``{"*"}`` for super_admin).

    Raises ValueError for anything that is not a Role.
    """
    return ROLE_PERMISSIONS[Role(role)]


def is_granted(role: Role, permission: Permission | str) -> bool:
    """Check if a role holds a permission."""
    granted = get_permissions(role)
    if WILDCARD in granted:
        return True
    token = permission.value if isinstance(permission, Permission) else permission
    return token in granted


def ensure(role: Role, permission: Permission | str) -> None:
    """Raise PermissionDenied if the role lacks the permission."""
    if not is_granted(role, permission):
        token = permission.value if isinstance(permission, Permission) else permission
        raise PermissionDenied(f"role {Role(role).value} lacks {token}")


def own_variant(permission: Permission | str) -> str:
    """``message:update`` → ``message:update:own``."""
    token = permission.value if isinstance(permission, Permission) else permission
    return token if token.endswith(OWN_SUFFIX) else token + OWN_SUFFIX
