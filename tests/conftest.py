"""Shared fixtures: an engine on in-memory storage with a controllable clock."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from utiopia.auth.hashing import Pbkdf2SecretHasher
from utiopia.config import Settings
from utiopia.core.models import Actor, Role
from utiopia.engine import create_engine


GUEST_IDENTITY = {
    "anon_email": "a.b2023@gdhfi.com",
    "anon_student_id": "GJ20231234",
    "passphrase": "secret",
}


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings():
    """Default settings with cheap passphrase hashing."""
    return Settings(_env_file=None, secret_hash_iterations=1_000)


@pytest.fixture
def engine(settings, clock):
    return create_engine(
        settings=settings,
        hasher=Pbkdf2SecretHasher(iterations=settings.secret_hash_iterations),
        clock=clock,
    )


@pytest_asyncio.fixture
async def accounts(engine):
    """Registered accounts; returns name -> Actor."""
    actors = {}
    for name, role in [
        ("alice", Role.USER),
        ("bob", Role.USER),
        ("mod", Role.MODERATOR),
        ("admin", Role.SUPER_ADMIN),
    ]:
        record = await engine.users.register(f"{name}@example.com", name, role=role)
        actors[name] = Actor(id=record.id, role=role)
    return actors


@pytest.fixture
def guest_identity():
    """Valid campus identity and passphrase for anonymous posting."""
    return dict(GUEST_IDENTITY)


@pytest.fixture
def guest():
    return Actor.guest()


@pytest.fixture
def alice(accounts):
    return accounts["alice"]


@pytest.fixture
def bob(accounts):
    return accounts["bob"]


@pytest.fixture
def moderator(accounts):
    return accounts["mod"]


@pytest.fixture
def admin(accounts):
    return accounts["admin"]


@pytest_asyncio.fixture
async def guest_message(engine, guest):
    """A pending message posted anonymously by a guest with passphrase "secret"."""
    return await engine.messages.create_message(guest, "hello from nowhere", **GUEST_IDENTITY)


@pytest_asyncio.fixture
async def alice_message(engine, alice):
    """A pending message posted by alice under her account."""
    return await engine.messages.create_message(alice, "alice says hi")
