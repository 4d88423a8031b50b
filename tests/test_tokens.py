"""TokenService tests — issuance, validation, expiry, scope, revocation.

Learn: A mutable FakeClock stands in for wall time, so expiry is tested
by moving the clock instead of sleeping.
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from liftlog.auth.tokens import TokenService, hash_token
from liftlog.db.models import Token
from liftlog.errors import (
    AuthenticationError,
    OrphanedTokenError,
    ScopeMismatchError,
    TokenError,
    TokenExpiredError,
    TokenNotFoundError,
)


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class NoUsers:
    """User lookup that never finds anyone — simulates a deleted user."""

    async def get_by_id(self, user_id):
        return None


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


async def _token_count(session) -> int:
    result = await session.execute(select(func.count()).select_from(Token))
    return result.scalar_one()


# ═══════════════════════════════════════════════════════════
# Issue + validate
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_issue_then_validate_returns_user(db_session, make_user, clock):
    """A freshly issued token resolves to the issuing user."""
    user = await make_user()
    svc = TokenService(db_session, clock=clock)

    plaintext, record = await svc.issue_token(user.id, timedelta(hours=24), "api")

    resolved = await svc.validate_token(plaintext, "api")
    assert resolved.id == user.id
    assert record.expiry == clock.now + timedelta(hours=24)
    assert record.user_id == user.id


@pytest.mark.asyncio
async def test_only_hash_is_stored(db_session, make_user, clock):
    """The stored row holds the SHA-256 of the secret, never the secret."""
    user = await make_user()
    svc = TokenService(db_session, clock=clock)
    plaintext, record = await svc.issue_token(user.id, timedelta(hours=1), "api")

    assert record.hash == hash_token(plaintext)
    assert record.hash != plaintext
    rows = (await db_session.execute(select(Token.hash))).scalars().all()
    assert plaintext not in rows


@pytest.mark.asyncio
async def test_tokens_are_unique(db_session, make_user, clock):
    """Many tokens per user; each one is different."""
    user = await make_user()
    svc = TokenService(db_session, clock=clock)
    tokens = {
        (await svc.issue_token(user.id, timedelta(hours=1), "api"))[0]
        for _ in range(5)
    }
    assert len(tokens) == 5
    assert await _token_count(db_session) == 5


@pytest.mark.asyncio
async def test_altered_token_is_not_found(db_session, make_user, clock):
    """Changing any single character breaks the hash match."""
    user = await make_user()
    svc = TokenService(db_session, clock=clock)
    plaintext, _ = await svc.issue_token(user.id, timedelta(hours=1), "api")

    for i in (0, len(plaintext) // 2, len(plaintext) - 1):
        replacement = "A" if plaintext[i] != "A" else "B"
        altered = plaintext[:i] + replacement + plaintext[i + 1:]
        with pytest.raises(TokenNotFoundError):
            await svc.validate_token(altered, "api")


@pytest.mark.asyncio
async def test_unknown_token_is_not_found(db_session, clock):
    svc = TokenService(db_session, clock=clock)
    with pytest.raises(TokenNotFoundError):
        await svc.validate_token("never-issued", "api")


# ═══════════════════════════════════════════════════════════
# Expiry and scope
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_scope_and_expiry_scenario(db_session, make_user, clock):
    """User 42, scope "api", ttl 1h: wrong scope, then valid, then expired."""
    user = await make_user(user_id=42)
    svc = TokenService(db_session, clock=clock)
    plaintext, _ = await svc.issue_token(42, timedelta(hours=1), "api")

    with pytest.raises(ScopeMismatchError):
        await svc.validate_token(plaintext, "admin")

    clock.advance(minutes=59)
    assert (await svc.validate_token(plaintext, "api")).id == user.id == 42

    clock.advance(minutes=2)
    with pytest.raises(TokenExpiredError):
        await svc.validate_token(plaintext, "api")


@pytest.mark.asyncio
async def test_exact_expiry_instant_is_still_valid(db_session, make_user, clock):
    """Expired means now > expiry, strictly."""
    user = await make_user()
    svc = TokenService(db_session, clock=clock)
    plaintext, _ = await svc.issue_token(user.id, timedelta(hours=1), "api")

    clock.advance(hours=1)
    assert (await svc.validate_token(plaintext, "api")).id == user.id

    clock.advance(microseconds=1)
    with pytest.raises(TokenExpiredError):
        await svc.validate_token(plaintext, "api")


@pytest.mark.asyncio
async def test_expiry_survives_database_roundtrip(session_factory, make_user, clock):
    """Expiry read back from the DB (naive on SQLite) compares as UTC."""
    user = await make_user()
    async with session_factory() as session:
        plaintext, _ = await TokenService(session, clock=clock).issue_token(
            user.id, timedelta(hours=1), "api"
        )

    clock.advance(hours=2)
    async with session_factory() as session:
        with pytest.raises(TokenExpiredError):
            await TokenService(session, clock=clock).validate_token(plaintext, "api")


@pytest.mark.asyncio
async def test_orphaned_token(db_session, make_user, clock):
    """A token whose user vanished fails cleanly instead of crashing."""
    user = await make_user()
    plaintext, _ = await TokenService(db_session, clock=clock).issue_token(
        user.id, timedelta(hours=1), "api"
    )

    svc = TokenService(db_session, users=NoUsers(), clock=clock)
    with pytest.raises(OrphanedTokenError):
        await svc.validate_token(plaintext, "api")


def test_token_errors_share_one_public_message():
    """Callers can't tell why a token was rejected."""
    messages = {
        cls().public_message
        for cls in (
            TokenNotFoundError,
            TokenExpiredError,
            ScopeMismatchError,
            OrphanedTokenError,
        )
    }
    assert len(messages) == 1
    assert issubclass(TokenError, AuthenticationError)
    assert TokenExpiredError().status_code == 401


# ═══════════════════════════════════════════════════════════
# Revocation
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_revoke_expired_removes_only_expired(db_session, make_user, clock):
    user = await make_user()
    svc = TokenService(db_session, clock=clock)
    short, _ = await svc.issue_token(user.id, timedelta(minutes=5), "api")
    long, _ = await svc.issue_token(user.id, timedelta(hours=5), "api")

    clock.advance(hours=1)
    assert await svc.revoke_expired() == 1
    assert await _token_count(db_session) == 1

    with pytest.raises(TokenNotFoundError):
        await svc.validate_token(short, "api")
    assert (await svc.validate_token(long, "api")).id == user.id


@pytest.mark.asyncio
async def test_revoke_token(db_session, make_user, clock):
    user = await make_user()
    svc = TokenService(db_session, clock=clock)
    plaintext, _ = await svc.issue_token(user.id, timedelta(hours=1), "api")

    assert await svc.revoke_token(plaintext) is True
    assert await svc.revoke_token(plaintext) is False
    with pytest.raises(TokenNotFoundError):
        await svc.validate_token(plaintext, "api")


@pytest.mark.asyncio
async def test_revoke_all_for_user_by_scope(db_session, make_user, clock):
    alice = await make_user()
    bob = await make_user()
    svc = TokenService(db_session, clock=clock)
    await svc.issue_token(alice.id, timedelta(hours=1), "api")
    await svc.issue_token(alice.id, timedelta(hours=1), "admin")
    bob_token, _ = await svc.issue_token(bob.id, timedelta(hours=1), "api")

    assert await svc.revoke_all_for_user(alice.id, scope="api") == 1
    assert await svc.revoke_all_for_user(alice.id) == 1
    assert (await svc.validate_token(bob_token, "api")).id == bob.id
