"""
Notification Service.

Tells authors about moderation outcomes and account bans. Triggered by
committed events on the bus, so a failed notification can never roll back
the transition it reports.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

from utiopia.core.events import Event
from utiopia.core.utils import utc_now
from utiopia.services.base import Service

logger = logging.getLogger(__name__)


class Notifier(ABC):
    """Outbound notification channel (email in production)."""

    @abstractmethod
    async def notify_status_change(
        self,
        recipient: str,
        content_id: int,
        new_status: str,
        reason: str | None = None,
    ) -> None:
        """Tell an author their content was approved/rejected."""
        pass

    @abstractmethod
    async def notify_ban_status(self, recipient: str, banned: bool) -> None:
        """Tell a user their account was banned or unbanned."""
        pass


class LoggingNotifier(Notifier):
    """
    Notifier that only logs.

    Keeps a log of what would have been sent (for testing/debugging).
    """

    def __init__(self):
        self._sent_log: list[dict[str, Any]] = []

    async def notify_status_change(
        self,
        recipient: str,
        content_id: int,
        new_status: str,
        reason: str | None = None,
    ) -> None:
        self._sent_log.append({
            "template": f"content_{new_status}",
            "recipient": recipient,
            "content_id": content_id,
            "reason": reason,
            "sent_at": utc_now().isoformat(),
        })
        logger.info(f"Notified {recipient}: content {content_id} is {new_status}")

    async def notify_ban_status(self, recipient: str, banned: bool) -> None:
        self._sent_log.append({
            "template": "user_banned" if banned else "user_unbanned",
            "recipient": recipient,
            "sent_at": utc_now().isoformat(),
        })
        logger.info(f"Notified {recipient}: banned={banned}")

    def get_sent_log(self) -> list[dict[str, Any]]:
        """Get log of sent notifications (for testing)."""
        return self._sent_log.copy()

    def clear_log(self) -> None:
        """Clear the sent log (for testing)."""
        self._sent_log.clear()


class NotificationService(Service):
    """Turns committed moderation events into notifications."""

    def __init__(self, notifier: Notifier):
        self.notifier = notifier

    @property
    def service_id(self) -> str:
        return "notification"

    @property
    def subscribes_to(self) -> list[str]:
        return [
            "message.approved",
            "message.rejected",
            "comment.approved",
            "comment.rejected",
            "user.banned",
            "user.unbanned",
        ]

    async def handle(self, event: Event) -> list[Event]:
        recipient = event.payload.get("recipient")
        if not recipient:
            logger.debug(f"No recipient for {event.event_type}, skipping notification")
            return []

        if event.event_type.startswith("user."):
            await self.notifier.notify_ban_status(recipient, bool(event.payload.get("banned")))
        else:
            await self.notifier.notify_status_change(
                recipient,
                event.payload["content_id"],
                event.payload["status"],
                event.payload.get("reason"),
            )

        return [Event(
            event_type="notification.sent",
            actor_id=event.actor_id,
            payload={"trigger": event.event_type, "recipient": recipient},
            correlation_id=event.correlation_id or event.id,
        )]
