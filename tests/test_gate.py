"""
Tests for identity resolution and the authorization gate.
"""

import pytest

from utiopia.auth.gate import AuthorizationGate
from utiopia.auth.hashing import Pbkdf2SecretHasher
from utiopia.auth.identity import IdentityResolver, Ownership
from utiopia.auth.permissions import Permission
from utiopia.core.errors import InvalidSecret, PermissionDenied
from utiopia.core.models import Actor, AnonymousAuthor, Message, RegisteredAuthor, Role


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def hasher():
    return Pbkdf2SecretHasher(iterations=1_000)


@pytest.fixture
def identity(hasher):
    return IdentityResolver(hasher)


@pytest.fixture
def gate(identity):
    return AuthorizationGate(identity)


@pytest.fixture
def registered_message():
    return Message(id=1, body="mine", authorship=RegisteredAuthor(user_id=10))


@pytest.fixture
def anonymous_message(hasher):
    return Message(id=2, body="anon", authorship=AnonymousAuthor(
        email="a.b2023@gdhfi.com",
        student_id="GJ20231234",
        secret_hash=hasher.hash("secret"),
    ))


OWNER = Actor(id=10, role=Role.USER)
STRANGER = Actor(id=11, role=Role.USER)
MODERATOR = Actor(id=20, role=Role.MODERATOR)
ADMIN = Actor(id=30, role=Role.SUPER_ADMIN)


# =============================================================================
# Hashing
# =============================================================================


class TestHasher:
    def test_verify(self, hasher):
        hashed = hasher.hash("secret")
        assert hasher.verify("secret", hashed)
        assert not hasher.verify("wrong", hashed)

    def test_salted(self, hasher):
        assert hasher.hash("secret") != hasher.hash("secret")

    def test_malformed_hash(self, hasher):
        assert not hasher.verify("secret", "no-separator")


# =============================================================================
# IdentityResolver
# =============================================================================


class TestIdentityResolver:
    @pytest.mark.asyncio
    async def test_registered_owner(self, identity, registered_message):
        assert await identity.ownership(registered_message, OWNER) is Ownership.REGISTERED
        assert not await identity.is_owner(registered_message, STRANGER)

    @pytest.mark.asyncio
    async def test_passphrase_does_not_prove_registered_ownership(self, identity, registered_message):
        assert not await identity.is_owner(registered_message, STRANGER, secret="secret")

    @pytest.mark.asyncio
    async def test_passphrase_owner(self, identity, anonymous_message):
        guest = Actor.guest()
        assert await identity.ownership(anonymous_message, guest, "secret") is Ownership.PASSPHRASE
        assert not await identity.is_owner(anonymous_message, guest, "wrong")
        assert not await identity.is_owner(anonymous_message, guest, "")
        assert not await identity.is_owner(anonymous_message, guest)

    @pytest.mark.asyncio
    async def test_account_id_does_not_own_anonymous_content(self, identity, anonymous_message):
        # Guest id 0 never matches, and no registered id does either
        assert not await identity.is_owner(anonymous_message, Actor.guest())
        assert not await identity.is_owner(anonymous_message, ADMIN)

    @pytest.mark.asyncio
    async def test_hash_secret(self, identity, hasher):
        hashed = await identity.hash_secret("pw")
        assert hasher.verify("pw", hashed)


# =============================================================================
# AuthorizationGate
# =============================================================================


class TestGateRoleOnly:
    def test_can(self, gate):
        assert gate.can(MODERATOR, Permission.MESSAGE_APPROVE)
        assert not gate.can(OWNER, Permission.MESSAGE_APPROVE)

    def test_ensure_raises_generic_message(self, gate):
        with pytest.raises(PermissionDenied) as exc_info:
            gate.ensure(OWNER, Permission.BAN_MANAGE)
        assert str(exc_info.value) == "insufficient permission"

    @pytest.mark.asyncio
    async def test_non_ownable_ignores_content(self, gate, registered_message):
        decision = await gate.authorize(MODERATOR, Permission.MESSAGE_APPROVE, registered_message)
        assert decision.allowed
        assert decision.via == "role"

    @pytest.mark.asyncio
    async def test_ownable_needs_content(self, gate):
        with pytest.raises(ValueError):
            await gate.authorize(OWNER, Permission.MESSAGE_UPDATE)


class TestGateRegisteredContent:
    @pytest.mark.asyncio
    async def test_owner_uses_own_scope(self, gate, registered_message):
        decision = await gate.authorize(OWNER, Permission.MESSAGE_UPDATE, registered_message)
        assert decision.allowed
        assert decision.by_owner
        assert not decision.by_passphrase

    @pytest.mark.asyncio
    async def test_stranger_denied(self, gate, registered_message):
        decision = await gate.authorize(STRANGER, Permission.MESSAGE_DELETE, registered_message)
        assert not decision.allowed
        with pytest.raises(PermissionDenied):
            await gate.require(STRANGER, Permission.MESSAGE_DELETE, registered_message)

    @pytest.mark.asyncio
    async def test_moderator_uses_unscoped_permission(self, gate, registered_message):
        decision = await gate.authorize(MODERATOR, Permission.MESSAGE_UPDATE, registered_message)
        assert decision.allowed
        assert decision.via == "role"
        assert not decision.by_owner

    @pytest.mark.asyncio
    async def test_owner_without_own_scope_denied(self, gate):
        # Moderators hold no ":own" tokens
        message = Message(id=3, body="x", authorship=RegisteredAuthor(user_id=MODERATOR.id))
        decision = await gate.authorize(MODERATOR, Permission.MESSAGE_UPDATE, message)
        assert not decision.allowed
        assert decision.reason == "owner lacks message:update:own"
        with pytest.raises(PermissionDenied):
            await gate.require(MODERATOR, Permission.MESSAGE_UPDATE, message)

    @pytest.mark.asyncio
    async def test_super_admin_owner_uses_owner_path(self, gate):
        message = Message(id=4, body="x", authorship=RegisteredAuthor(user_id=ADMIN.id))
        decision = await gate.authorize(ADMIN, Permission.MESSAGE_UPDATE, message)
        assert decision.allowed
        assert decision.by_owner


class TestGateAnonymousContent:
    @pytest.mark.asyncio
    async def test_correct_passphrase(self, gate, anonymous_message):
        decision = await gate.require(Actor.guest(), Permission.MESSAGE_UPDATE, anonymous_message, "secret")
        assert decision.by_passphrase
        assert decision.by_owner

    @pytest.mark.parametrize("actor", [Actor.guest(), STRANGER, MODERATOR, ADMIN])
    @pytest.mark.asyncio
    async def test_wrong_secret_denied_for_every_role(self, gate, anonymous_message, actor):
        with pytest.raises(InvalidSecret) as exc_info:
            await gate.require(actor, Permission.MESSAGE_DELETE, anonymous_message, "wrong")
        assert str(exc_info.value) == "insufficient permission"

    @pytest.mark.parametrize("actor", [Actor.guest(), MODERATOR, ADMIN])
    @pytest.mark.asyncio
    async def test_missing_secret_denied_for_every_role(self, gate, anonymous_message, actor):
        with pytest.raises(PermissionDenied):
            await gate.require(actor, Permission.MESSAGE_UPDATE, anonymous_message)
