"""
Tests for comment threads.
"""

import pytest

from utiopia.core.errors import BannedIdentity, InvalidInput, NotFound, PermissionDenied
from utiopia.services.comments import thread_root


@pytest.fixture
def approve(engine, moderator):
    async def _approve(kind, content_id):
        return await engine.moderation.approve(kind, content_id, moderator)
    return _approve


# =============================================================================
# Threading
# =============================================================================


class TestThreading:
    @pytest.mark.asyncio
    async def test_reply_chain_flattens_to_root(self, engine, alice, bob, alice_message):
        a = await engine.comments.create_comment(alice, alice_message.id, "A")
        b = await engine.comments.create_comment(bob, alice_message.id, "B", parent_id=a.id)
        c = await engine.comments.create_comment(alice, alice_message.id, "C", parent_id=b.id)

        assert a.root_id is None
        assert b.root_id == a.id
        assert c.root_id == a.id
        assert c.parent_id == b.id
        assert thread_root(c) == a.id

    @pytest.mark.asyncio
    async def test_parent_on_other_message(self, engine, alice, alice_message):
        other = await engine.messages.create_message(alice, "another")
        parent = await engine.comments.create_comment(alice, other.id, "elsewhere")

        with pytest.raises(NotFound):
            await engine.comments.create_comment(alice, alice_message.id, "x", parent_id=parent.id)

    @pytest.mark.asyncio
    async def test_deleted_parent(self, engine, alice, alice_message):
        parent = await engine.comments.create_comment(alice, alice_message.id, "gone soon")
        await engine.moderation.soft_delete("comment", parent.id, alice)

        with pytest.raises(NotFound):
            await engine.comments.create_comment(alice, alice_message.id, "x", parent_id=parent.id)

    @pytest.mark.asyncio
    async def test_deleted_message(self, engine, alice, alice_message):
        await engine.moderation.soft_delete("message", alice_message.id, alice)

        with pytest.raises(NotFound):
            await engine.comments.create_comment(alice, alice_message.id, "x")


# =============================================================================
# Creation rules
# =============================================================================


class TestCreateComment:
    @pytest.mark.asyncio
    async def test_guest_cannot_comment(self, engine, guest, alice_message):
        with pytest.raises(PermissionDenied):
            await engine.comments.create_comment(guest, alice_message.id, "hi")

    @pytest.mark.asyncio
    async def test_moderator_cannot_comment(self, engine, moderator, alice_message):
        with pytest.raises(PermissionDenied):
            await engine.comments.create_comment(moderator, alice_message.id, "hi")

    @pytest.mark.asyncio
    async def test_banned_user_cannot_comment(self, engine, alice, bob, moderator, alice_message):
        await engine.users.ban_user(moderator, bob.id)

        with pytest.raises(BannedIdentity):
            await engine.comments.create_comment(bob, alice_message.id, "hi")

    @pytest.mark.asyncio
    async def test_body_length(self, engine, alice, alice_message):
        with pytest.raises(InvalidInput):
            await engine.comments.create_comment(alice, alice_message.id, "x" * 1001)
        with pytest.raises(InvalidInput):
            await engine.comments.create_comment(alice, alice_message.id, "")

    @pytest.mark.asyncio
    async def test_audited(self, engine, alice, admin, alice_message):
        comment = await engine.comments.create_comment(alice, alice_message.id, "hi")

        entries = await engine.audit_log.list_entries(admin, action="comment.create")
        assert entries[0].metadata["id"] == comment.id


# =============================================================================
# Listing
# =============================================================================


class TestListComments:
    @pytest.mark.asyncio
    async def test_thread_order(self, engine, alice, bob, alice_message, approve):
        await approve("message", alice_message.id)
        a = await engine.comments.create_comment(alice, alice_message.id, "A")
        b = await engine.comments.create_comment(bob, alice_message.id, "B")
        a1 = await engine.comments.create_comment(bob, alice_message.id, "A1", parent_id=a.id)

        page = await engine.comments.list_comments(bob, alice_message.id)
        assert [row["id"] for row in page["items"]] == [a.id, a1.id, b.id]
        assert page["total"] == 3

    @pytest.mark.asyncio
    async def test_rejected_and_deleted_hidden(self, engine, alice, bob, moderator, alice_message, approve):
        await approve("message", alice_message.id)
        kept = await engine.comments.create_comment(alice, alice_message.id, "kept")
        rejected = await engine.comments.create_comment(alice, alice_message.id, "rejected")
        deleted = await engine.comments.create_comment(alice, alice_message.id, "deleted")
        await engine.moderation.reject("comment", rejected.id, moderator)
        await engine.moderation.soft_delete("comment", deleted.id, alice)

        public = await engine.comments.list_comments(bob, alice_message.id)
        assert [row["id"] for row in public["items"]] == [kept.id]

        privileged = await engine.comments.list_comments(moderator, alice_message.id)
        assert [row["id"] for row in privileged["items"]] == [kept.id, rejected.id]

    @pytest.mark.asyncio
    async def test_pending_message_thread_hidden(self, engine, bob, alice_message):
        with pytest.raises(NotFound):
            await engine.comments.list_comments(bob, alice_message.id)
