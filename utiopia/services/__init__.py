"""Services - the moderation engine's operations, one concern each."""

from utiopia.services.base import Service
from utiopia.services.audit import AuditLog, AuditSink, StorageAuditSink
from utiopia.services.bans import BanRegistry
from utiopia.services.comments import CommentThreads
from utiopia.services.likes import LikeService
from utiopia.services.messages import MessageBoard
from utiopia.services.moderation import ModerationStateMachine
from utiopia.services.notification import LoggingNotifier, NotificationService, Notifier
from utiopia.services.users import UserAdmin
from utiopia.services.validation import IdentityValidator, check_image_url
from utiopia.services.visibility import VisibilityFilter

__all__ = [
    "Service",
    "AuditLog",
    "AuditSink",
    "StorageAuditSink",
    "BanRegistry",
    "CommentThreads",
    "LikeService",
    "MessageBoard",
    "ModerationStateMachine",
    "LoggingNotifier",
    "NotificationService",
    "Notifier",
    "UserAdmin",
    "IdentityValidator",
    "check_image_url",
    "VisibilityFilter",
]
