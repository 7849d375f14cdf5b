"""
Identity resolution - "is this caller the author of this content?"

Two disjoint ownership paths:
- registered content: the actor's id matches the author's user id
- anonymous content: the caller presents the passphrase chosen at creation

A registered actor never owns anonymous content by identity, and a
passphrase never proves ownership of registered content.
"""

from __future__ import annotations

import asyncio
from enum import Enum

from utiopia.auth.hashing import SecretHasher
from utiopia.core.models import Actor, AnonymousAuthor, ContentItem, RegisteredAuthor


class Ownership(str, Enum):
    """How (if at all) ownership was established."""

    NONE = "none"
    REGISTERED = "registered"
    PASSPHRASE = "passphrase"


class IdentityResolver:
    """Decides whether a requester is the legitimate author of a content item."""

    def __init__(self, hasher: SecretHasher):
        self.hasher = hasher

    async def ownership(
        self,
        content: ContentItem,
        actor: Actor,
        secret: str | None = None,
    ) -> Ownership:
        author = content.authorship

        if isinstance(author, RegisteredAuthor):
            if not actor.is_guest and actor.id == author.user_id:
                return Ownership.REGISTERED
            return Ownership.NONE

        if isinstance(author, AnonymousAuthor) and secret:
            # CPU-bound; keep it off the event loop
            matched = await asyncio.to_thread(self.hasher.verify, secret, author.secret_hash)
            if matched:
                return Ownership.PASSPHRASE

        return Ownership.NONE

    async def is_owner(
        self,
        content: ContentItem,
        actor: Actor,
        secret: str | None = None,
    ) -> bool:
        return await self.ownership(content, actor, secret) is not Ownership.NONE

    async def hash_secret(self, plain: str) -> str:
        """Hash a new passphrase off the event loop."""
        return await asyncio.to_thread(self.hasher.hash, plain)
