"""Workout aggregate persistence.

Learn: A workout and its entries are one unit. Every mutation here runs in
a single transaction, so a reader sees either the old parent + entries or
the new ones, never a mix:

  create  → INSERT workout, INSERT entries (referencing the new id), COMMIT
  update  → UPDATE workout, DELETE old entries, INSERT new entries, COMMIT
  delete  → DELETE entries, DELETE workout, COMMIT

Any failure rolls the whole transaction back and surfaces as StorageError.

WorkoutStore is the capability boundary; handlers depend on it, not on
SQLAlchemy, so tests can swap in an in-memory double.

Ownership is NOT checked here. Callers probe get_owner() and compare it
to the caller's identity before calling update() or delete().
"""

from abc import ABC, abstractmethod
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from liftlog.db.errors import as_storage_error
from liftlog.db.models import Workout, WorkoutEntry
from liftlog.errors import NotFoundError

logger = structlog.get_logger()


def workout_not_found(workout_id: int) -> NotFoundError:
    return NotFoundError(
        f"workout {workout_id} not found",
        public_message="Workout not found",
    )


def _number_entries(entries: list[WorkoutEntry]) -> None:
    for position, entry in enumerate(entries):
        entry.position = position


class WorkoutStore(ABC):
    """Persistence operations for the workout aggregate."""

    @abstractmethod
    async def create(self, owner_id: int, workout: Workout) -> Workout:
        """Persist a new workout and all its entries, owned by owner_id."""

    @abstractmethod
    async def get_by_id(self, workout_id: int) -> Optional[Workout]:
        """Return the workout with entries in order, or None if absent."""

    @abstractmethod
    async def get_owner(self, workout_id: int) -> int:
        """Return the owning user id. Raises NotFoundError if absent."""

    @abstractmethod
    async def update(self, workout: Workout) -> Workout:
        """Persist scalar fields and replace the whole entry collection."""

    @abstractmethod
    async def delete(self, workout_id: int) -> None:
        """Remove the workout and its entries. Raises NotFoundError if absent."""


class SqlWorkoutStore(WorkoutStore):
    """WorkoutStore backed by an async SQLAlchemy session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Create ──────────────────────────────────────────

    async def create(self, owner_id: int, workout: Workout) -> Workout:
        workout.user_id = owner_id
        _number_entries(workout.entries)
        try:
            self.db.add(workout)
            # Parent INSERT runs first so entries pick up the generated id
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise as_storage_error(e, "create workout") from e

        logger.info(
            "liftlog.workout_created",
            workout_id=workout.id,
            user_id=owner_id,
            entries=len(workout.entries),
        )
        return workout

    # ─── Read ────────────────────────────────────────────

    async def get_by_id(self, workout_id: int) -> Optional[Workout]:
        query = (
            select(Workout)
            .options(selectinload(Workout.entries))
            .where(Workout.id == workout_id)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            raise as_storage_error(e, "get workout") from e
        return result.scalars().first()

    async def get_owner(self, workout_id: int) -> int:
        try:
            result = await self.db.execute(
                select(Workout.user_id).where(Workout.id == workout_id)
            )
        except SQLAlchemyError as e:
            raise as_storage_error(e, "get workout owner") from e
        owner_id = result.scalar_one_or_none()
        if owner_id is None:
            raise workout_not_found(workout_id)
        return owner_id

    # ─── Update ──────────────────────────────────────────

    async def update(self, workout: Workout) -> Workout:
        """Flush the merged workout in one transaction.

        Learn: entries is a delete-orphan collection. When the caller
        assigns a new list, the flush deletes every old entry row and
        inserts the new ones; the commit makes both visible at once.
        """
        _number_entries(workout.entries)
        try:
            self.db.add(workout)
            await self.db.flush()
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise as_storage_error(e, "update workout") from e

        logger.info(
            "liftlog.workout_updated",
            workout_id=workout.id,
            entries=len(workout.entries),
        )
        return workout

    # ─── Delete ──────────────────────────────────────────

    async def delete(self, workout_id: int) -> None:
        try:
            await self.db.execute(
                delete(WorkoutEntry).where(WorkoutEntry.workout_id == workout_id)
            )
            result = await self.db.execute(
                delete(Workout).where(Workout.id == workout_id)
            )
            if result.rowcount == 0:
                await self.db.rollback()
                raise workout_not_found(workout_id)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise as_storage_error(e, "delete workout") from e

        logger.info("liftlog.workout_deleted", workout_id=workout_id)
