"""
Audit trail.

Every successful state-changing operation records exactly one entry.
Denied or failed operations record nothing. Recording is best effort: a
failing sink is logged and never aborts the operation it describes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

from utiopia.auth.gate import AuthorizationGate
from utiopia.auth.permissions import Permission
from utiopia.core.models import Actor, AuditEntry
from utiopia.core.utils import utc_now
from utiopia.storage.base import Collections, MetadataStorage

logger = logging.getLogger(__name__)


class AuditSink(ABC):
    """Where audit entries go."""

    @abstractmethod
    async def record(self, action: str, actor_id: int | None, metadata: dict[str, Any]) -> None:
        """Record one audit entry."""
        pass


class StorageAuditSink(AuditSink):
    """Persists audit entries in the ``audit_logs`` collection."""

    def __init__(self, storage: MetadataStorage, clock: Callable = utc_now):
        self.storage = storage
        self.clock = clock

    async def record(self, action: str, actor_id: int | None, metadata: dict[str, Any]) -> None:
        entry = AuditEntry(
            action=action,
            actor_id=actor_id,
            metadata=metadata,
            created_at=self.clock(),
        )
        await self.storage.insert(Collections.AUDIT_LOGS, entry.model_dump(exclude={"id"}))


async def record_safely(
    sink: AuditSink,
    action: str,
    actor_id: int | None,
    metadata: dict[str, Any],
) -> None:
    """Record an audit entry, logging (not raising) sink failures."""
    try:
        await sink.record(action, actor_id, metadata)
    except Exception:
        logger.exception(f"Audit sink failed to record {action}")


class AuditLog:
    """Read access to the persisted audit trail."""

    def __init__(self, storage: MetadataStorage, gate: AuthorizationGate, default_limit: int = 100):
        self.storage = storage
        self.gate = gate
        self.default_limit = default_limit

    async def list_entries(
        self,
        actor: Actor,
        action: str | None = None,
        actor_id: int | None = None,
        limit: int | None = None,
    ) -> list[AuditEntry]:
        """Newest entries first. Requires ``audit:read``."""
        self.gate.ensure(actor, Permission.AUDIT_READ)

        filters: dict[str, Any] = {}
        if action:
            filters["action"] = action
        if actor_id is not None:
            filters["actor_id"] = actor_id

        rows = await self.storage.query(
            Collections.AUDIT_LOGS,
            filters=filters,
            descending=True,
            limit=min(limit or self.default_limit, self.default_limit),
        )
        return [AuditEntry.model_validate(row) for row in rows]
