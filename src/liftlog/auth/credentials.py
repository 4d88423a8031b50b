"""Username/password verification.

Learn: Two rules keep login from leaking which usernames exist:
1. Unknown user and wrong password raise the same AuthenticationError.
2. An unknown user still costs one bcrypt check (against a throwaway
   hash), so both failures take roughly the same time.

bcrypt is CPU-bound, so every check runs in a worker thread via
asyncio.to_thread and the event loop keeps serving other requests.
"""

import asyncio
from functools import lru_cache

import structlog

from liftlog.auth.password import hash_password, verify_password
from liftlog.db.models import User
from liftlog.errors import AuthenticationError
from liftlog.stores.user_store import UserStore

logger = structlog.get_logger()


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("liftlog-timing-equalizer")


def _invalid_credentials() -> AuthenticationError:
    return AuthenticationError(
        "invalid credentials",
        public_message="Invalid username or password",
    )


class CredentialVerifier:
    """Check a username/password pair against the stored bcrypt hash."""

    def __init__(self, users: UserStore):
        self.users = users

    async def verify_credentials(self, username: str, password: str) -> User:
        user = await self.users.get_by_username(username)

        if user is None:
            await asyncio.to_thread(lambda: verify_password(password, _dummy_hash()))
            logger.info("liftlog.login_failed", reason="unknown_user")
            raise _invalid_credentials()

        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            logger.info("liftlog.login_failed", reason="bad_password", user_id=user.id)
            raise _invalid_credentials()

        return user
