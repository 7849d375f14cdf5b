"""
Tests for likes.
"""

import pytest

from utiopia.core.errors import NotFound, PermissionDenied


class TestLikes:
    @pytest.mark.asyncio
    async def test_toggle(self, engine, alice, bob, alice_message):
        assert await engine.likes.toggle_like(bob, alice_message.id) is True
        assert await engine.likes.toggle_like(alice, alice_message.id) is True
        assert await engine.likes.count_likes(alice_message.id) == 2

        assert await engine.likes.toggle_like(bob, alice_message.id) is False
        assert await engine.likes.count_likes(alice_message.id) == 1

        assert await engine.likes.toggle_like(bob, alice_message.id) is True
        assert await engine.likes.count_likes(alice_message.id) == 2

    @pytest.mark.asyncio
    async def test_guest_cannot_like(self, engine, guest, alice_message):
        with pytest.raises(PermissionDenied):
            await engine.likes.toggle_like(guest, alice_message.id)

    @pytest.mark.asyncio
    async def test_deleted_message(self, engine, alice, alice_message):
        await engine.moderation.soft_delete("message", alice_message.id, alice)

        with pytest.raises(NotFound):
            await engine.likes.toggle_like(alice, alice_message.id)

    @pytest.mark.asyncio
    async def test_audit_actions(self, engine, bob, admin, alice_message):
        await engine.likes.toggle_like(bob, alice_message.id)
        await engine.likes.toggle_like(bob, alice_message.id)

        actions = [e.action for e in await engine.audit_log.list_entries(admin, actor_id=bob.id)]
        assert actions == ["like.remove", "like.add"]
