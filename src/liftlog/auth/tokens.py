"""Opaque bearer tokens — issue, validate, revoke.

Learn: Unlike a JWT, the token is a random string with no meaning of its
own. The server keeps a row per token holding:

  hash    → SHA-256 of the secret (primary key; the secret is NEVER stored)
  user_id → who the token authenticates
  expiry  → absolute UTC instant after which it stops working
  scope   → what it may be used for, checked by exact match

The plaintext goes back to the client once, at issuance. A presented token
is hashed the same way and looked up by hash, so a database leak does not
leak usable tokens. SHA-256 (not bcrypt) is fine here: the secret has 256
bits of entropy, so there is nothing to brute-force.

No locks anywhere: the sweep and validation can race freely. A token that
expires mid-request simply fails validation.
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from liftlog.config import settings
from liftlog.db.errors import as_storage_error
from liftlog.db.models import Token, User, utcnow
from liftlog.errors import (
    OrphanedTokenError,
    ScopeMismatchError,
    TokenExpiredError,
    TokenNotFoundError,
)
from liftlog.stores.user_store import UserStore

logger = structlog.get_logger()

Clock = Callable[[], datetime]


def hash_token(plaintext: str) -> str:
    """Deterministic one-way hash used for storage and lookup."""
    return hashlib.sha256(plaintext.encode("utf-8")).hexdigest()


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class TokenService:
    """Issue and validate hashed bearer tokens."""

    def __init__(
        self,
        db: AsyncSession,
        users: Optional[UserStore] = None,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.users = users or UserStore(db)
        self.clock = clock

    # ─── Issue ───────────────────────────────────────────

    async def issue_token(
        self,
        user_id: int,
        ttl: timedelta,
        scope: str,
    ) -> tuple[str, Token]:
        """Create a token for user_id. Returns (plaintext, stored record).

        The plaintext is returned exactly once and is never persisted or
        logged.
        """
        plaintext = secrets.token_urlsafe(settings.token_bytes)
        record = Token(
            hash=hash_token(plaintext),
            user_id=user_id,
            expiry=self.clock() + ttl,
            scope=scope,
        )
        try:
            self.db.add(record)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise as_storage_error(e, "issue token") from e

        logger.info(
            "liftlog.token_issued",
            user_id=user_id,
            scope=scope,
            hash_prefix=record.hash[:8],
            expiry=record.expiry.isoformat(),
        )
        return plaintext, record

    # ─── Validate ────────────────────────────────────────

    async def validate_token(self, plaintext: str, required_scope: str) -> User:
        """Resolve a presented token to its user.

        Raises (all TokenError, all with the same public message):
        - TokenNotFoundError: no stored hash matches
        - TokenExpiredError: now > expiry
        - ScopeMismatchError: scope differs from required_scope
        - OrphanedTokenError: the user was deleted but the token was not
        """
        token_hash = hash_token(plaintext)
        try:
            result = await self.db.execute(
                select(Token).where(Token.hash == token_hash)
            )
        except SQLAlchemyError as e:
            raise as_storage_error(e, "validate token") from e
        record = result.scalars().first()

        if record is None:
            raise TokenNotFoundError("no token matches presented value")
        if self.clock() > _as_utc(record.expiry):
            raise TokenExpiredError(f"token {token_hash[:8]} expired")
        if record.scope != required_scope:
            raise ScopeMismatchError(
                f"token {token_hash[:8]} has scope {record.scope!r}, "
                f"need {required_scope!r}"
            )

        user = await self.users.get_by_id(record.user_id)
        if user is None:
            raise OrphanedTokenError(
                f"token {token_hash[:8]} references missing user {record.user_id}"
            )
        return user

    # ─── Revoke ──────────────────────────────────────────

    async def revoke_expired(self) -> int:
        """Delete every token whose expiry has passed. Returns the count."""
        return await self._delete_where(Token.expiry < self.clock(), "revoke expired")

    async def revoke_token(self, plaintext: str) -> bool:
        """Delete one token. Returns True if it existed."""
        count = await self._delete_where(
            Token.hash == hash_token(plaintext), "revoke token"
        )
        return count > 0

    async def revoke_all_for_user(
        self, user_id: int, scope: Optional[str] = None
    ) -> int:
        """Delete all of a user's tokens, optionally only one scope."""
        condition = Token.user_id == user_id
        if scope is not None:
            condition = condition & (Token.scope == scope)
        return await self._delete_where(condition, "revoke user tokens")

    async def _delete_where(self, condition, operation: str) -> int:
        try:
            result = await self.db.execute(delete(Token).where(condition))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise as_storage_error(e, operation) from e

        count = result.rowcount or 0
        logger.info("liftlog.tokens_revoked", operation=operation, count=count)
        return count
