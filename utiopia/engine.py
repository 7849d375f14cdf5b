"""
Engine wiring.

Builds every component against one storage backend, one event bus and one
set of settings. Transport layers (HTTP handlers, workers) hold an Engine
and call into its services with an already-resolved Actor.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from utiopia.auth.gate import AuthorizationGate
from utiopia.auth.hashing import Pbkdf2SecretHasher, SecretHasher
from utiopia.auth.identity import IdentityResolver
from utiopia.config import Settings, get_settings
from utiopia.core.events import EventBus
from utiopia.core.utils import utc_now
from utiopia.services.audit import AuditLog, AuditSink, StorageAuditSink
from utiopia.services.bans import BanRegistry
from utiopia.services.comments import CommentThreads
from utiopia.services.likes import LikeService
from utiopia.services.messages import MessageBoard
from utiopia.services.moderation import ModerationStateMachine
from utiopia.services.notification import LoggingNotifier, NotificationService, Notifier
from utiopia.services.users import UserAdmin
from utiopia.services.validation import IdentityValidator
from utiopia.services.visibility import VisibilityFilter
from utiopia.storage import MetadataStorage, create_local_storage

logger = logging.getLogger(__name__)


@dataclass
class Engine:
    """All engine components, wired together."""

    settings: Settings
    storage: MetadataStorage
    bus: EventBus
    gate: AuthorizationGate
    identity: IdentityResolver
    visibility: VisibilityFilter
    audit: AuditSink
    audit_log: AuditLog
    bans: BanRegistry
    moderation: ModerationStateMachine
    messages: MessageBoard
    comments: CommentThreads
    likes: LikeService
    users: UserAdmin
    notifier: Notifier
    notifications: NotificationService


def configure_logging(settings: Settings | None = None) -> None:
    """Set the ``utiopia`` logger level from settings."""
    settings = settings or get_settings()
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("utiopia").setLevel(settings.log_level.upper())


def create_engine(
    settings: Settings | None = None,
    storage: MetadataStorage | None = None,
    hasher: SecretHasher | None = None,
    notifier: Notifier | None = None,
    audit: AuditSink | None = None,
    bus: EventBus | None = None,
    clock: Callable = utc_now,
) -> Engine:
    """
    Build an Engine.

    Anything not passed in gets the development default: in-memory storage,
    PBKDF2 passphrase hashing, a logging notifier and a private event bus.
    """
    settings = settings or get_settings()
    storage = storage or create_local_storage()
    hasher = hasher or Pbkdf2SecretHasher(iterations=settings.secret_hash_iterations)
    notifier = notifier or LoggingNotifier()
    audit = audit or StorageAuditSink(storage, clock=clock)
    bus = bus or EventBus()

    identity = IdentityResolver(hasher)
    gate = AuthorizationGate(identity)
    visibility = VisibilityFilter()
    validator = IdentityValidator(settings)
    bans = BanRegistry(storage, gate, audit, settings, validator=validator, clock=clock)

    notifications = NotificationService(notifier)
    notifications.attach(bus)

    engine = Engine(
        settings=settings,
        storage=storage,
        bus=bus,
        gate=gate,
        identity=identity,
        visibility=visibility,
        audit=audit,
        audit_log=AuditLog(storage, gate, default_limit=settings.audit_list_limit),
        bans=bans,
        moderation=ModerationStateMachine(
            storage,
            gate,
            audit,
            bus,
            message_max_length=settings.message_max_length,
            clock=clock,
        ),
        messages=MessageBoard(
            storage,
            gate,
            identity,
            bans,
            visibility,
            audit,
            bus,
            settings,
            validator=validator,
            clock=clock,
        ),
        comments=CommentThreads(
            storage,
            gate,
            visibility,
            audit,
            max_length=settings.comment_max_length,
            clock=clock,
        ),
        likes=LikeService(storage, gate, audit, clock=clock),
        users=UserAdmin(storage, gate, audit, bus, list_limit=settings.user_list_limit, clock=clock),
        notifier=notifier,
        notifications=notifications,
    )

    logger.info(f"Engine ready ({settings.environment})")
    return engine
