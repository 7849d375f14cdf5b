"""
Ban registry - identity bans by email or student id.

Bans escalate in place: re-banning an identity that already has an active
ban updates that row (stage, expiry, reason) instead of adding a second
active row. The read-check-write runs inside one storage transaction,
keyed on (type, value, active), so concurrent bans of the same identity
cannot produce two active rows.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Callable

from utiopia.auth.gate import AuthorizationGate
from utiopia.auth.permissions import Permission
from utiopia.config import Settings
from utiopia.core.errors import InvalidInput, NotFound
from utiopia.core.models import Actor, Ban, BanType
from utiopia.core.utils import utc_now
from utiopia.services.audit import AuditSink, record_safely
from utiopia.services.validation import IdentityValidator
from utiopia.storage.base import Collections, MetadataStorage, Row

logger = logging.getLogger(__name__)


class BanRegistry:
    """Tracks banned identities with escalating stage/expiry."""

    def __init__(
        self,
        storage: MetadataStorage,
        gate: AuthorizationGate,
        audit: AuditSink,
        settings: Settings,
        validator: IdentityValidator | None = None,
        clock: Callable = utc_now,
    ):
        self.storage = storage
        self.gate = gate
        self.audit = audit
        self.settings = settings
        self.validator = validator or IdentityValidator(settings)
        self.clock = clock

    # =========================================================================
    # Queries
    # =========================================================================

    async def is_banned(self, type: BanType | str, value: str) -> bool:
        """An active, unexpired ban exists for this identity value."""
        row = await self._active_row(_parse_type(type), value)
        return row is not None and Ban.model_validate(row).in_effect(self.clock())

    async def is_identity_banned(self, email: str, student_id: str) -> bool:
        """Either half of an anonymous identity is banned."""
        return (
            await self.is_banned(BanType.EMAIL, email)
            or await self.is_banned(BanType.STUDENT_ID, student_id)
        )

    async def list_bans(self, actor: Actor) -> list[Ban]:
        """All bans (active and historical), newest first. Requires ``ban:manage``."""
        self.gate.ensure(actor, Permission.BAN_MANAGE)
        rows = await self.storage.query(
            Collections.BANS,
            descending=True,
            limit=self.settings.ban_list_limit,
        )
        return [Ban.model_validate(row) for row in rows]

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_or_escalate(
        self,
        actor: Actor,
        type: BanType | str,
        value: str,
        stage: int = 1,
        reason: str = "",
    ) -> Ban:
        """
        Ban an identity, or escalate its active ban in place.

        ``expires_at = now + days_for(stage)`` using ``Settings.ban_stage_days``.
        """
        self.gate.ensure(actor, Permission.BAN_MANAGE)

        ban_type = _parse_type(type)
        value = self.validator.check(ban_type, (value or "").strip())
        if not 1 <= stage <= 5:
            raise InvalidInput("stage must be between 1 and 5")

        now = self.clock()
        expires_at = now + timedelta(days=self.settings.days_for_stage(stage))

        async with self.storage.transaction():
            existing = await self._active_row(ban_type, value)

            if existing:
                updates = {
                    "stage": stage,
                    "reason": reason,
                    "expires_at": expires_at,
                    "updated_at": now,
                }
                await self.storage.update(Collections.BANS, existing["id"], updates)
                ban = Ban.model_validate({**existing, **updates})
            else:
                ban = Ban(
                    type=ban_type,
                    value=value,
                    stage=stage,
                    reason=reason,
                    expires_at=expires_at,
                    created_by=actor.id,
                    created_at=now,
                    updated_at=now,
                )
                ban.id = await self.storage.insert(Collections.BANS, ban.model_dump(exclude={"id"}))

            await record_safely(self.audit, "ban.create", actor.id, {
                "type": ban_type.value,
                "value": value,
                "reason": reason,
                "stage": stage,
                "escalated": existing is not None,
            })

        logger.info(
            f"{'Escalated' if existing else 'Created'} {ban_type.value} ban "
            f"#{ban.id} at stage {stage}"
        )
        return ban

    async def remove(self, actor: Actor, type: BanType | str, value: str) -> Ban:
        """Deactivate the active ban for an identity. Requires ``ban:manage``."""
        self.gate.ensure(actor, Permission.BAN_MANAGE)
        ban_type = _parse_type(type)

        async with self.storage.transaction():
            existing = await self._active_row(ban_type, value)
            if existing is None:
                raise NotFound(f"no active {ban_type.value} ban for this value")

            updates = {"active": False, "updated_at": self.clock()}
            await self.storage.update(Collections.BANS, existing["id"], updates)
            await record_safely(self.audit, "ban.remove", actor.id, {
                "type": ban_type.value,
                "value": value,
            })

        return Ban.model_validate({**existing, **updates})

    # =========================================================================
    # Internal
    # =========================================================================

    async def _active_row(self, type: BanType, value: str) -> Row | None:
        rows = await self.storage.query(
            Collections.BANS,
            filters={"type": type, "value": value, "active": True},
            limit=1,
        )
        return rows[0] if rows else None


def _parse_type(type: BanType | str) -> BanType:
    try:
        return BanType(type)
    except ValueError:
        raise InvalidInput("ban type must be email or student_id") from None
