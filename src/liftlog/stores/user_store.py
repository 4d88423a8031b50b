"""User lookup and registration.

Learn: This is the backing lookup for both the credential check (by
username) and token validation (by id). Reads return None when the user is
absent; callers decide what "absent" means for them.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from liftlog.db.errors import as_storage_error
from liftlog.db.models import User
from liftlog.errors import ConflictError

logger = structlog.get_logger()


class UserStore:
    """Read and create users."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: int) -> Optional[User]:
        try:
            result = await self.db.execute(select(User).where(User.id == user_id))
        except SQLAlchemyError as e:
            raise as_storage_error(e, "get user by id") from e
        return result.scalars().first()

    async def get_by_username(self, username: str) -> Optional[User]:
        try:
            result = await self.db.execute(
                select(User).where(User.username == username)
            )
        except SQLAlchemyError as e:
            raise as_storage_error(e, "get user by username") from e
        return result.scalars().first()

    async def create(
        self,
        username: str,
        email: str,
        password_hash: str,
        bio: str = "",
    ) -> User:
        """Insert a user. Duplicate username or email raises ConflictError."""
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            bio=bio,
        )
        try:
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)  # load server-side timestamps
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(
                f"duplicate user: {e.orig}",
                public_message="Username or email already registered",
            ) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise as_storage_error(e, "create user") from e

        logger.info("liftlog.user_registered", user_id=user.id)
        return user
