"""
Core data models for the moderation engine.

These models represent the fundamental entities: Actors, Content Items
(messages and comments), Bans, Users and Audit Entries.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from utiopia.core.utils import utc_now


# =============================================================================
# Enums
# =============================================================================


class Role(str, Enum):
    """Fixed three-tier role hierarchy."""

    USER = "user"
    MODERATOR = "moderator"
    SUPER_ADMIN = "super_admin"


class ContentStatus(str, Enum):
    """Moderation status of a content item."""

    PENDING = "pending"  # Waiting for review
    APPROVED = "approved"  # Visible to everyone
    REJECTED = "rejected"  # Hidden, with optional reason (messages only)


class ContentKind(str, Enum):
    """The two kinds of moderated content."""

    MESSAGE = "message"
    COMMENT = "comment"


class BanType(str, Enum):
    """Identity values a ban can target."""

    EMAIL = "email"
    STUDENT_ID = "student_id"


# =============================================================================
# Actor
# =============================================================================


class Actor(BaseModel):
    """
    The resolved caller of an operation.

    ``id == 0`` with role ``user`` is the unauthenticated guest.
    Unknown role strings fail validation at construction.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(default=0, ge=0)
    role: Role = Role.USER

    @property
    def is_guest(self) -> bool:
        return self.id == 0

    @classmethod
    def guest(cls) -> Actor:
        return cls(id=0, role=Role.USER)


# =============================================================================
# Authorship (tagged union)
# =============================================================================


class RegisteredAuthor(BaseModel):
    """Content written by a registered account."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["registered"] = "registered"
    user_id: int = Field(gt=0)


class AnonymousAuthor(BaseModel):
    """Content written by a guest, bound to a passphrase."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["anonymous"] = "anonymous"
    email: str = Field(min_length=1)
    student_id: str = Field(min_length=1)
    secret_hash: str = Field(min_length=1, repr=False)


Authorship = Annotated[
    Union[RegisteredAuthor, AnonymousAuthor],
    Field(discriminator="kind"),
]


# =============================================================================
# Content Items
# =============================================================================


class ContentItem(BaseModel):
    """
    Shared shape of messages and comments.

    Authorship is exactly one of RegisteredAuthor or AnonymousAuthor. Flat rows
    using ``owner_user_id`` / ``anon_email`` / ``anon_student_id`` /
    ``anon_passphrase_hash`` are accepted too, and rejected unless they carry
    exactly one authorship mode.
    """

    kind: ClassVar[ContentKind]

    id: int = 0
    body: str
    authorship: Authorship

    # Registered authors may hide their identity from the public view
    anonymous: bool = False

    status: ContentStatus = ContentStatus.PENDING
    created_at: datetime = Field(default_factory=utc_now)
    deleted_at: datetime | None = None

    # Review stamps
    reviewed_by: int | None = None
    reviewed_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def _authorship_from_columns(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "authorship" in data:
            return data

        data = dict(data)
        owner_user_id = data.pop("owner_user_id", None) or 0
        anon = (
            data.pop("anon_email", None),
            data.pop("anon_student_id", None),
            data.pop("anon_passphrase_hash", None),
        )

        if owner_user_id > 0 and any(anon):
            raise ValueError("content cannot have both registered and anonymous authorship")
        if owner_user_id > 0:
            data["authorship"] = RegisteredAuthor(user_id=owner_user_id)
        elif all(anon):
            data["authorship"] = AnonymousAuthor(
                email=anon[0], student_id=anon[1], secret_hash=anon[2]
            )
        else:
            raise ValueError("content must have exactly one authorship mode")
        return data

    @property
    def owner_user_id(self) -> int | None:
        if isinstance(self.authorship, RegisteredAuthor):
            return self.authorship.user_id
        return None

    @property
    def is_anonymous_author(self) -> bool:
        return isinstance(self.authorship, AnonymousAuthor)

    @property
    def anon_email(self) -> str | None:
        if isinstance(self.authorship, AnonymousAuthor):
            return self.authorship.email
        return None

    @property
    def anon_student_id(self) -> str | None:
        if isinstance(self.authorship, AnonymousAuthor):
            return self.authorship.student_id
        return None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def clear_review(self) -> None:
        """Drop review stamps (an edit needs a fresh review)."""
        self.reviewed_by = None
        self.reviewed_at = None


class Message(ContentItem):
    """A note on the board. Messages are reviewed before display."""

    kind: ClassVar[ContentKind] = ContentKind.MESSAGE

    image_url: str | None = None
    reject_reason: str | None = None

    def clear_review(self) -> None:
        super().clear_review()
        self.reject_reason = None


class Comment(ContentItem):
    """
    A reply under a message.

    Comments are displayed immediately (status starts approved) and
    moderated after the fact.
    """

    kind: ClassVar[ContentKind] = ContentKind.COMMENT

    message_id: int
    parent_id: int | None = None
    root_id: int | None = None
    status: ContentStatus = ContentStatus.APPROVED


CONTENT_MODELS: dict[ContentKind, type[ContentItem]] = {
    ContentKind.MESSAGE: Message,
    ContentKind.COMMENT: Comment,
}


# =============================================================================
# Bans
# =============================================================================


class Ban(BaseModel):
    """A ban on an identity value (email or student id)."""

    id: int = 0
    type: BanType
    value: str
    stage: int = Field(ge=1, le=5)
    active: bool = True
    expires_at: datetime | None = None
    reason: str = ""
    created_by: int | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def in_effect(self, now: datetime) -> bool:
        """Active and not yet expired."""
        return self.active and (self.expires_at is None or self.expires_at > now)


# =============================================================================
# Users
# =============================================================================


class UserRecord(BaseModel):
    """A registered account."""

    id: int = 0
    email: str
    nickname: str
    student_id: str | None = None
    role: Role = Role.USER
    banned: bool = False
    created_at: datetime = Field(default_factory=utc_now)


# =============================================================================
# Likes
# =============================================================================


class Like(BaseModel):
    """A user's like on a message (toggled, never hard-deleted)."""

    id: int = 0
    message_id: int
    user_id: int
    active: bool = True
    created_at: datetime = Field(default_factory=utc_now)


# =============================================================================
# Audit
# =============================================================================


class AuditEntry(BaseModel):
    """One recorded state-changing operation."""

    id: int = 0
    action: str  # e.g. "message.approve", "ban.create"
    actor_id: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
