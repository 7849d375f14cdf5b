"""
Visibility filter - which rows, and which fields of a row, a viewer gets.

Every read path (listing, single item, comment thread, search) goes through
``VisibilityFilter.filter`` / ``project``, so the same viewer always gets the
same redaction no matter how the row was found. Soft-deleted rows are
never returned, whoever is asking.

Privileged viewers are those holding the approve permission for the content
kind (``message:approve`` / ``comment:approve``). Everyone else:
- only sees approved rows (asking for another status silently
  yields approved rows)
- never gets ``anon_email`` / ``anon_student_id`` or review fields (the keys
  are absent, not masked)
- does not get the author id of anonymously displayed content unless they
  are the author
"""

from __future__ import annotations

from typing import Any, Iterable

from utiopia.auth.permissions import Permission, is_granted
from utiopia.core.models import (
    Actor,
    Comment,
    ContentItem,
    ContentKind,
    ContentStatus,
    Message,
    Role,
)

ALL_STATUSES = "all"

APPROVE_PERMISSIONS: dict[ContentKind, Permission] = {
    ContentKind.MESSAGE: Permission.MESSAGE_APPROVE,
    ContentKind.COMMENT: Permission.COMMENT_APPROVE,
}


class VisibilityFilter:
    """Row- and field-level read filtering by viewer role."""

    def is_privileged(
        self,
        role: Role,
        kind: ContentKind = ContentKind.MESSAGE,
        public: bool = False,
    ) -> bool:
        """Can this role moderate this kind? ``public=True`` forces the public view."""
        return not public and is_granted(role, APPROVE_PERMISSIONS[kind])

    def effective_status(
        self,
        role: Role,
        requested: ContentStatus | str | None = None,
        kind: ContentKind = ContentKind.MESSAGE,
        public: bool = False,
    ) -> ContentStatus | None:
        """
        The status a listing actually uses.

        Returns None for "all statuses" (privileged viewers only).
        """
        if not self.is_privileged(role, kind, public):
            return ContentStatus.APPROVED
        if requested == ALL_STATUSES:
            return None
        if requested is None:
            return ContentStatus.APPROVED
        try:
            return ContentStatus(requested)
        except ValueError:
            return ContentStatus.APPROVED

    def visible(self, item: ContentItem, viewer: Actor, public: bool = False) -> bool:
        """Row-level check for a single item."""
        if item.is_deleted:
            return False
        if self.is_privileged(viewer.role, item.kind, public):
            return True
        return item.status == ContentStatus.APPROVED

    def project(self, item: ContentItem, viewer: Actor, public: bool = False) -> dict[str, Any]:
        """Turn an item into the dict returned to this viewer."""
        privileged = self.is_privileged(viewer.role, item.kind, public)
        owner_id = item.owner_user_id

        row: dict[str, Any] = {
            "id": item.id,
            "kind": item.kind.value,
            "body": item.body,
            "is_anonymous": item.anonymous or item.is_anonymous_author,
            "status": item.status.value,
            "created_at": item.created_at,
        }

        shows_author = owner_id is not None and (
            privileged or not item.anonymous or viewer.id == owner_id
        )
        if shows_author:
            row["owner_user_id"] = owner_id

        if isinstance(item, Message):
            row["image_url"] = item.image_url
        elif isinstance(item, Comment):
            row["message_id"] = item.message_id
            row["parent_id"] = item.parent_id
            row["root_id"] = item.root_id

        if privileged:
            row["reviewed_by"] = item.reviewed_by
            row["reviewed_at"] = item.reviewed_at
            if isinstance(item, Message):
                row["reject_reason"] = item.reject_reason
            if item.is_anonymous_author:
                row["anon_email"] = item.anon_email
                row["anon_student_id"] = item.anon_student_id

        return row

    def filter(
        self,
        items: Iterable[ContentItem],
        viewer: Actor,
        requested_status: ContentStatus | str | None = None,
        public: bool = False,
    ) -> list[dict[str, Any]]:
        """Drop rows the viewer may not see and redact the rest."""
        results = []
        for item in items:
            status = self.effective_status(viewer.role, requested_status, item.kind, public)
            if status is not None and item.status != status:
                continue
            if not self.visible(item, viewer, public):
                continue
            results.append(self.project(item, viewer, public))
        return results
