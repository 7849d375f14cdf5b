"""
Core module - fundamental data models and infrastructure.

This module contains:
- models: Actors, content items (messages/comments), bans, users, audit entries
- errors: Error taxonomy with caller-safe messages
- events: Event bus for committed state changes
- utils: Shared utility functions
"""

from utiopia.core.models import (
    Actor,
    AnonymousAuthor,
    AuditEntry,
    Ban,
    BanType,
    Comment,
    ContentItem,
    ContentKind,
    ContentStatus,
    Like,
    Message,
    RegisteredAuthor,
    Role,
    UserRecord,
)

from utiopia.core.errors import (
    BannedIdentity,
    EngineError,
    InvalidInput,
    InvalidSecret,
    InvalidState,
    NotFound,
    PermissionDenied,
)

from utiopia.core.events import (
    Event,
    EventBus,
)

from utiopia.core.utils import (
    clamp_page,
    utc_now,
)

__all__ = [
    # Models
    "Actor",
    "AnonymousAuthor",
    "AuditEntry",
    "Ban",
    "BanType",
    "Comment",
    "ContentItem",
    "ContentKind",
    "ContentStatus",
    "Like",
    "Message",
    "RegisteredAuthor",
    "Role",
    "UserRecord",
    # Errors
    "BannedIdentity",
    "EngineError",
    "InvalidInput",
    "InvalidSecret",
    "InvalidState",
    "NotFound",
    "PermissionDenied",
    # Events
    "Event",
    "EventBus",
    # Utils
    "clamp_page",
    "utc_now",
]
