"""Workout service — ownership-checked workout operations.

Learn: Routes call this layer, this layer calls the WorkoutStore. Every
mutation follows the same order:

1. Require an authenticated caller (401 otherwise)
2. Probe the owner with get_owner() (404 if the workout is gone)
3. Compare owner to caller (403 on mismatch; nothing has been touched)
4. Only then fetch, merge, and write

Transient storage failures (lock contention, deadlocks) retry the whole
sequence from step 2 with a short linear backoff. Ownership and not-found
failures are terminal and never retried.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from liftlog.auth.identity import Authenticated, Identity, require_authenticated
from liftlog.config import settings
from liftlog.db.models import Workout, WorkoutEntry
from liftlog.errors import AuthorizationError, StorageError
from liftlog.schemas.workout import WorkoutCreate, WorkoutEntryIn, WorkoutUpdate
from liftlog.stores.workout_store import WorkoutStore, workout_not_found

logger = structlog.get_logger()

T = TypeVar("T")


def _build_entries(entries: list[WorkoutEntryIn]) -> list[WorkoutEntry]:
    return [WorkoutEntry(**entry.model_dump()) for entry in entries]


def _build_workout(draft: WorkoutCreate) -> Workout:
    return Workout(
        title=draft.title,
        description=draft.description,
        duration_minutes=draft.duration_minutes,
        calories_burned=draft.calories_burned,
        entries=_build_entries(draft.entries),
    )


def apply_patch(workout: Workout, patch: WorkoutUpdate) -> Workout:
    """Apply only the fields present in the patch.

    entries, when present, replaces the whole collection. It is never
    merged with what was there.
    """
    for name, value in patch.changes().items():
        setattr(workout, name, value)
    if patch.replaces_entries:
        workout.entries = _build_entries(patch.entries or [])
    return workout


class WorkoutService:
    """Business logic for workout CRUD with single-owner authorization."""

    def __init__(
        self,
        store: WorkoutStore,
        retry_attempts: Optional[int] = None,
        retry_backoff: Optional[float] = None,
    ):
        self.store = store
        self.retry_attempts = retry_attempts or settings.storage_retry_attempts
        self.retry_backoff = (
            settings.storage_retry_backoff_seconds
            if retry_backoff is None
            else retry_backoff
        )

    # ─── Create ──────────────────────────────────────────

    async def create_workout(self, identity: Identity, draft: WorkoutCreate) -> Workout:
        """Create a workout owned by the caller."""
        caller = require_authenticated(identity)
        # Rebuild the ORM objects per attempt; a rolled-back attempt leaves
        # the previous ones unusable
        return await self._with_retry(
            "create",
            lambda: self.store.create(caller.user_id, _build_workout(draft)),
        )

    # ─── Read ────────────────────────────────────────────

    async def get_workout(self, workout_id: int) -> Workout:
        workout = await self._with_retry(
            "get", lambda: self.store.get_by_id(workout_id)
        )
        if workout is None:
            raise workout_not_found(workout_id)
        return workout

    # ─── Update ──────────────────────────────────────────

    async def update_workout(
        self,
        identity: Identity,
        workout_id: int,
        patch: WorkoutUpdate,
    ) -> Workout:
        """Apply a partial update. Only the owner may update."""
        caller = require_authenticated(identity)

        async def attempt() -> Workout:
            await self._check_owner(caller, workout_id, "update")
            workout = await self.store.get_by_id(workout_id)
            if workout is None:
                # Deleted between the owner probe and the fetch
                raise workout_not_found(workout_id)
            return await self.store.update(apply_patch(workout, patch))

        return await self._with_retry("update", attempt)

    # ─── Delete ──────────────────────────────────────────

    async def delete_workout(self, identity: Identity, workout_id: int) -> None:
        """Delete a workout and its entries. Only the owner may delete."""
        caller = require_authenticated(identity)

        async def attempt() -> None:
            await self._check_owner(caller, workout_id, "delete")
            await self.store.delete(workout_id)

        await self._with_retry("delete", attempt)

    # ─── Helpers ─────────────────────────────────────────

    async def _check_owner(
        self, caller: Authenticated, workout_id: int, action: str
    ) -> None:
        owner_id = await self.store.get_owner(workout_id)
        if owner_id != caller.user_id:
            logger.warning(
                "liftlog.ownership_denied",
                action=action,
                workout_id=workout_id,
                user_id=caller.user_id,
            )
            raise AuthorizationError(
                f"user {caller.user_id} does not own workout {workout_id}",
                public_message=f"You are not authorized to {action} this workout",
            )

    async def _with_retry(
        self, operation: str, fn: Callable[[], Awaitable[T]]
    ) -> T:
        """Run fn, retrying transient StorageErrors. Everything else propagates."""
        for attempt in range(1, self.retry_attempts + 1):
            try:
                return await fn()
            except StorageError as e:
                if not e.transient or attempt == self.retry_attempts:
                    raise
                logger.warning(
                    "liftlog.storage_retry",
                    operation=operation,
                    attempt=attempt,
                    error=str(e),
                )
                await asyncio.sleep(self.retry_backoff * attempt)
        raise AssertionError("unreachable")
