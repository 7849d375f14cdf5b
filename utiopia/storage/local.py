"""
Local storage implementation for development and tests.

An in-memory row store that works without any external services.
"""

from __future__ import annotations

import asyncio
import copy
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from utiopia.storage.base import MetadataStorage, Row, RowPredicate


# =============================================================================
# In-Memory Metadata Storage
# =============================================================================


class InMemoryMetadataStorage(MetadataStorage):
    """
    In-memory row storage.

    Transactions hold a single lock and snapshot the data on entry; the
    snapshot is restored if the block raises.
    """

    def __init__(self):
        self._data: dict[str, dict[int, Row]] = {}
        self._sequences: dict[str, int] = {}
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        async with self._lock:
            snapshot = (copy.deepcopy(self._data), dict(self._sequences))
            try:
                yield
            except BaseException:
                self._data, self._sequences = snapshot
                raise

    async def insert(self, collection: str, data: Row) -> int:
        rows = self._data.setdefault(collection, {})
        next_id = self._sequences.get(collection, 0) + 1
        self._sequences[collection] = next_id
        rows[next_id] = {**copy.deepcopy(data), "id": next_id}
        return next_id

    async def get(self, collection: str, id: int) -> Row | None:
        row = self._data.get(collection, {}).get(id)
        return copy.deepcopy(row) if row is not None else None

    async def update(self, collection: str, id: int, updates: Row) -> bool:
        rows = self._data.get(collection, {})
        if id not in rows:
            return False
        rows[id].update(copy.deepcopy(updates))
        return True

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
        results = self._select(collection, filters, where)
        results.sort(key=lambda row: _sort_key(row.get(order_by)), reverse=descending)

        # Apply pagination
        end = None if limit is None else offset + limit
        return [copy.deepcopy(row) for row in results[offset:end]]

    async def count(
        self,
        collection: str,
        filters: Row | None = None,
        where: RowPredicate | None = None,
    ) -> int:
        return len(self._select(collection, filters, where))

    def _select(
        self,
        collection: str,
        filters: Row | None,
        where: RowPredicate | None,
    ) -> list[Row]:
        results = list(self._data.get(collection, {}).values())

        if filters:
            results = [
                row for row in results
                if all(row.get(key) == value for key, value in filters.items())
            ]
        if where:
            results = [row for row in results if where(row)]

        return results


def _sort_key(value: Any) -> tuple[bool, Any]:
    # None sorts first
    if value is None:
        return (False, 0)
    return (True, value)


# =============================================================================
# Factory
# =============================================================================


def create_local_storage() -> InMemoryMetadataStorage:
    """Create an in-memory storage backend."""
    return InMemoryMetadataStorage()
