"""
Storage abstraction layer.

All persistence goes through this interface. This allows swapping
implementations (in-memory → PostgreSQL, MySQL, etc.) without changing
the engine.

Every state-changing operation runs inside ``transaction()``: the whole
read-decide-write unit either commits or leaves no trace.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from typing import Any, Callable

Row = dict[str, Any]
RowPredicate = Callable[[Row], bool]


# =============================================================================
# Storage Interface
# =============================================================================


class MetadataStorage(ABC):
    """
    Storage for structured rows (messages, comments, bans, users, audit logs).

    Rows are keyed by an integer ``id`` assigned on insert.
    """

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager[None]:
        """
        Open an atomic unit of work.

        Transactions are serialised. Any exception raised inside the block
        (including cancellation) discards every write made in it.
        """
        pass

    @abstractmethod
    async def insert(self, collection: str, data: Row) -> int:
        """Insert a row, assign and return its id."""
        pass

    @abstractmethod
    async def get(self, collection: str, id: int) -> Row | None:
        """Get a row by ID."""
        pass

    @abstractmethod
    async def update(self, collection: str, id: int, updates: Row) -> bool:
        """Partial update of a row."""
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Row | None = None,
        where: RowPredicate | None = None,
        order_by: str = "id",
        descending: bool = False,
        limit: int | None = 100,
        offset: int = 0,
    ) -> list[Row]:
        """
        Query rows.

        Args:
            filters: Equality filters on columns
            where: Extra predicate applied after the filters
            order_by: Column to sort by
            descending: Sort direction
            limit: Max rows (None for all)
            offset: Rows to skip
        """
        pass

    @abstractmethod
    async def count(
        self,
        collection: str,
        filters: Row | None = None,
        where: RowPredicate | None = None,
    ) -> int:
        """Count rows matching the filters."""
        pass


# =============================================================================
# Collection Names
# =============================================================================


class Collections:
    """Standard collection/table names."""

    MESSAGES = "messages"
    COMMENTS = "message_comments"
    LIKES = "message_likes"
    BANS = "bans"
    USERS = "users"
    AUDIT_LOGS = "audit_logs"
