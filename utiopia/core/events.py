"""
Event system for the moderation engine.

Committed state changes are announced on the event bus. Side effects that
must never roll back a transition (author notification) subscribe here.
"""

from __future__ import annotations

import fnmatch
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable

from utiopia.core.utils import utc_now

logger = logging.getLogger(__name__)

# Type for event handlers
EventHandler = Callable[["Event"], Awaitable[list["Event"]]]


@dataclass
class Event:
    """
    An event in the system.

    Events are immutable records of something that happened. They carry
    all the context needed for handlers to process them.
    """

    event_type: str  # e.g., "message.approved", "user.banned"
    actor_id: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    # Tracing
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    correlation_id: str | None = None  # Groups related events

    # Timing
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Serialize event to dictionary."""
        return {
            "id": self.id,
            "event_type": self.event_type,
            "actor_id": self.actor_id,
            "payload": self.payload,
            "correlation_id": self.correlation_id,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class Subscription:
    """A subscription to events matching a pattern."""

    pattern: str  # e.g., "message.*" or "user.banned"
    handler: EventHandler

    def matches(self, event: Event) -> bool:
        """Check if this subscription matches the given event."""
        return fnmatch.fnmatch(event.event_type, self.pattern)


class EventBus:
    """
    In-memory event bus implementation.

    Handlers run in subscription order. A failing handler is logged and
    does not stop the others, nor does it reach the publisher.
    """

    def __init__(self, max_history: int = 10000):
        self._subscriptions: list[Subscription] = []
        self._event_history: list[Event] = []
        self._max_history = max_history

    def subscribe(self, pattern: str, handler: EventHandler) -> Subscription:
        """
        Subscribe to events matching a pattern.

        Args:
            pattern: Event type pattern (supports wildcards like "message.*")
            handler: Async function to handle matching events

        Returns:
            The subscription object (can be used to unsubscribe)
        """
        subscription = Subscription(pattern=pattern, handler=handler)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove a subscription."""
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    async def publish(self, event: Event) -> list[Event]:
        """
        Publish an event and return any events produced by handlers.

        Handlers can return new events, which are then also published.
        """
        self._event_history.append(event)
        if len(self._event_history) > self._max_history:
            self._event_history = self._event_history[-self._max_history:]

        matching = [s for s in self._subscriptions if s.matches(event)]

        all_resulting_events: list[Event] = []

        for subscription in matching:
            try:
                resulting_events = await subscription.handler(event)
                all_resulting_events.extend(resulting_events)
            except Exception:
                logger.exception(f"Error in event handler for {event.event_type}")

        # Recursively publish resulting events
        for resulting_event in list(all_resulting_events):
            cascade_events = await self.publish(resulting_event)
            all_resulting_events.extend(cascade_events)

        return all_resulting_events

    def get_history(self, event_type: str | None = None, limit: int = 100) -> list[Event]:
        """Query event history with optional type pattern."""
        results = self._event_history

        if event_type:
            results = [e for e in results if fnmatch.fnmatch(e.event_type, event_type)]

        return results[-limit:]


# Convenience functions for common event types
def status_changed(
    kind: str,
    content_id: int,
    status: str,
    actor_id: int | None,
    recipient: str | None,
    reason: str | None = None,
) -> Event:
    """Create a "<kind>.<status>" event, e.g. "message.approved"."""
    return Event(
        event_type=f"{kind}.{status}",
        actor_id=actor_id,
        payload={
            "content_id": content_id,
            "status": status,
            "recipient": recipient,
            "reason": reason,
        },
    )


def ban_status_changed(user_id: int, banned: bool, actor_id: int | None, recipient: str | None) -> Event:
    """Create a user.banned / user.unbanned event."""
    return Event(
        event_type="user.banned" if banned else "user.unbanned",
        actor_id=actor_id,
        payload={
            "user_id": user_id,
            "banned": banned,
            "recipient": recipient,
        },
    )
