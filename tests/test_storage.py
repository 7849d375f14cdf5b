"""
Tests for the in-memory storage backend.
"""

import asyncio

import pytest

from utiopia.core.models import BanType
from utiopia.storage import InMemoryMetadataStorage, MetadataStorage


@pytest.fixture
def storage():
    return InMemoryMetadataStorage()


class TestRows:
    @pytest.mark.asyncio
    async def test_insert_assigns_ids(self, storage):
        first = await storage.insert("things", {"name": "a"})
        second = await storage.insert("things", {"name": "b"})

        assert (first, second) == (1, 2)
        assert (await storage.get("things", 2))["name"] == "b"

    @pytest.mark.asyncio
    async def test_returned_rows_are_copies(self, storage):
        row_id = await storage.insert("things", {"tags": ["x"]})
        row = await storage.get("things", row_id)
        row["tags"].append("y")

        assert (await storage.get("things", row_id))["tags"] == ["x"]

    @pytest.mark.asyncio
    async def test_query_filters_and_order(self, storage):
        for value, active in [("a", True), ("b", False), ("c", True)]:
            await storage.insert("bans", {"type": BanType.EMAIL, "value": value, "active": active})

        rows = await storage.query("bans", filters={"type": "email", "active": True}, descending=True)
        assert [r["value"] for r in rows] == ["c", "a"]

        rows = await storage.query("bans", where=lambda r: r["value"] > "a", limit=1)
        assert [r["value"] for r in rows] == ["b"]
        assert await storage.count("bans", filters={"active": True}) == 2

    def test_no_hard_delete(self):
        # Removal is always a soft delete through update()
        assert not hasattr(MetadataStorage, "delete")
        assert not hasattr(InMemoryMetadataStorage, "delete")

    @pytest.mark.asyncio
    async def test_none_sorts_first(self, storage):
        await storage.insert("things", {"rank": 2})
        await storage.insert("things", {"rank": None})

        rows = await storage.query("things", order_by="rank")
        assert [r["rank"] for r in rows] == [None, 2]


class TestTransactions:
    @pytest.mark.asyncio
    async def test_rollback_on_error(self, storage):
        await storage.insert("things", {"name": "kept"})

        with pytest.raises(RuntimeError):
            async with storage.transaction():
                await storage.insert("things", {"name": "lost"})
                await storage.update("things", 1, {"name": "changed"})
                raise RuntimeError("boom")

        assert await storage.count("things") == 1
        assert (await storage.get("things", 1))["name"] == "kept"
        # Sequence rolled back too
        assert await storage.insert("things", {"name": "next"}) == 2

    @pytest.mark.asyncio
    async def test_rollback_on_cancel(self, storage):
        started = asyncio.Event()

        async def slow_write():
            async with storage.transaction():
                await storage.insert("things", {"name": "half"})
                started.set()
                await asyncio.sleep(10)

        task = asyncio.create_task(slow_write())
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert await storage.count("things") == 0

    @pytest.mark.asyncio
    async def test_transactions_serialised(self, storage):
        await storage.insert("counters", {"value": 0})

        async def increment():
            async with storage.transaction():
                row = await storage.get("counters", 1)
                await asyncio.sleep(0)
                await storage.update("counters", 1, {"value": row["value"] + 1})

        await asyncio.gather(*(increment() for _ in range(10)))
        assert (await storage.get("counters", 1))["value"] == 10


class TestConcurrentBans:
    @pytest.mark.asyncio
    async def test_parallel_bans_leave_one_active_row(self, engine, moderator):
        await asyncio.gather(*(
            engine.bans.create_or_escalate(moderator, BanType.STUDENT_ID, "GJ20231234", stage=stage)
            for stage in (1, 2, 3, 4)
        ))

        rows = await engine.storage.query(
            "bans", filters={"type": BanType.STUDENT_ID, "value": "GJ20231234", "active": True}
        )
        assert len(rows) == 1
