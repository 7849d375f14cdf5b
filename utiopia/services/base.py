"""
Base class for event-driven services.

Event-driven services react to committed state changes published on the
event bus. They never take part in the transaction that produced the event.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from utiopia.core.events import Event, EventBus


class Service(ABC):
    """
    Base class for event-driven services.

    Example:
        class NotificationService(Service):
            service_id = "notification"
            subscribes_to = ["message.approved"]

            async def handle(self, event: Event) -> list[Event]:
                ...
                return []
    """

    @property
    @abstractmethod
    def service_id(self) -> str:
        """Unique identifier for this service."""
        pass

    @property
    @abstractmethod
    def subscribes_to(self) -> list[str]:
        """
        List of event patterns this service handles.

        Supports wildcards like "message.*".
        """
        pass

    @abstractmethod
    async def handle(self, event: Event) -> list[Event]:
        """
        Handle an event and return any resulting events.

        Returns:
            List of events produced by handling this event
            (can be empty if no follow-up events needed)
        """
        pass

    def attach(self, bus: EventBus) -> None:
        """Subscribe this service to every pattern it handles."""
        for pattern in self.subscribes_to:
            bus.subscribe(pattern, self.handle)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.service_id})>"
