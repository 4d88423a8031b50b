"""Workout API routes.

Learn: These routes are the HTTP interface to WorkoutService. The service
handles ownership and retries; routes translate HTTP to service calls.
Errors are raised as liftlog.errors types and rendered by the handlers in
api/errors.py.

- GET is open; POST/PATCH/DELETE require a bearer token
- PATCH applies only the fields present in the body
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Response
from sqlalchemy.ext.asyncio import AsyncSession

from liftlog.auth.dependencies import get_current_user
from liftlog.auth.identity import Authenticated
from liftlog.db.engine import get_db
from liftlog.schemas.workout import WorkoutCreate, WorkoutEnvelope, WorkoutUpdate
from liftlog.services.workout_service import WorkoutService
from liftlog.stores.workout_store import SqlWorkoutStore

router = APIRouter(prefix="/workouts")

# Ids are 32-bit INTEGER columns; out-of-range ids fail validation (400)
MAX_WORKOUT_ID = 2**31 - 1
WorkoutId = Annotated[int, Path(ge=1, le=MAX_WORKOUT_ID)]


def _workout_svc(db: AsyncSession = Depends(get_db)) -> WorkoutService:
    return WorkoutService(SqlWorkoutStore(db))


@router.get("/{workout_id}", response_model=WorkoutEnvelope)
async def get_workout(
    workout_id: WorkoutId,
    svc: WorkoutService = Depends(_workout_svc),
):
    """Get a single workout with its entries."""
    return {"workout": await svc.get_workout(workout_id)}


@router.post("", response_model=WorkoutEnvelope, status_code=201)
async def create_workout(
    body: WorkoutCreate,
    caller: Authenticated = Depends(get_current_user),
    svc: WorkoutService = Depends(_workout_svc),
):
    """Create a workout owned by the caller."""
    return {"workout": await svc.create_workout(caller, body)}


@router.patch("/{workout_id}", response_model=WorkoutEnvelope)
async def update_workout(
    workout_id: WorkoutId,
    body: WorkoutUpdate,
    caller: Authenticated = Depends(get_current_user),
    svc: WorkoutService = Depends(_workout_svc),
):
    """Partially update a workout. `entries`, if sent, replaces all entries."""
    return {"workout": await svc.update_workout(caller, workout_id, body)}


@router.delete("/{workout_id}", status_code=204)
async def delete_workout(
    workout_id: WorkoutId,
    caller: Authenticated = Depends(get_current_user),
    svc: WorkoutService = Depends(_workout_svc),
):
    """Delete a workout and all its entries."""
    await svc.delete_workout(caller, workout_id)
    return Response(status_code=204)
