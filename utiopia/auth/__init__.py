"""
Authorization - who may do what to which piece of content.

Design principles:
1. One immutable role → permission table
2. Ownership proven per request (account id or passphrase), never stored
3. Decisions are values; only the enforcing helpers raise
"""

from utiopia.auth.permissions import (
    Permission,
    ROLE_PERMISSIONS,
    ensure,
    get_permissions,
    is_granted,
)
from utiopia.auth.hashing import SecretHasher, Pbkdf2SecretHasher
from utiopia.auth.identity import IdentityResolver, Ownership
from utiopia.auth.gate import AuthorizationGate, Decision

__all__ = [
    # Permission matrix
    "Permission",
    "ROLE_PERMISSIONS",
    "ensure",
    "get_permissions",
    "is_granted",
    # Secrets
    "SecretHasher",
    "Pbkdf2SecretHasher",
    # Ownership
    "IdentityResolver",
    "Ownership",
    # Gate
    "AuthorizationGate",
    "Decision",
]
