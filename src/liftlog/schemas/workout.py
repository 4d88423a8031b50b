"""Pydantic schemas for workouts and their entries.

Learn: Separate schemas for create/update/read keeps the API clean.
- WorkoutCreate: what you POST to create a workout
- WorkoutUpdate: what you PATCH — only fields present in the body apply
- WorkoutRead: what the API returns, entries in order
"""

from typing import Optional

from pydantic import BaseModel, Field, model_validator


# ─── Entries ─────────────────────────────────────────────

class WorkoutEntryIn(BaseModel):
    exercise_name: str = Field(..., min_length=1, max_length=255)
    sets: int = Field(..., ge=1)
    reps: int = Field(..., ge=0)
    weight: Optional[float] = Field(None, ge=0)
    notes: str = Field(default="")


class WorkoutEntryRead(BaseModel):
    id: int
    exercise_name: str
    sets: int
    reps: int
    weight: Optional[float]
    notes: str
    position: int

    model_config = {"from_attributes": True}


# ─── Workouts ────────────────────────────────────────────

class WorkoutCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="")
    duration_minutes: int = Field(default=0, ge=0)
    calories_burned: int = Field(default=0, ge=0)
    entries: list[WorkoutEntryIn] = Field(default_factory=list)


class WorkoutUpdate(BaseModel):
    """Partial update — unset means unchanged.

    Learn: Pydantic records which fields the client actually sent in
    model_fields_set. {"title": "X"} touches only the title;
    {"entries": []} replaces the entries with nothing. Sending an explicit
    null for a field is rejected instead of being read as "unchanged".
    """
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, ge=0)
    calories_burned: Optional[int] = Field(None, ge=0)
    entries: Optional[list[WorkoutEntryIn]] = None

    @model_validator(mode="after")
    def reject_explicit_nulls(self):
        nulls = sorted(
            name for name in self.model_fields_set if getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"fields may not be null: {', '.join(nulls)}")
        return self

    def changes(self) -> dict:
        """Scalar fields the client sent, as {name: value}. Excludes entries."""
        return {
            name: getattr(self, name)
            for name in self.model_fields_set
            if name != "entries"
        }

    @property
    def replaces_entries(self) -> bool:
        return "entries" in self.model_fields_set


class WorkoutRead(BaseModel):
    id: int
    user_id: int
    title: str
    description: str
    duration_minutes: int
    calories_burned: int
    entries: list[WorkoutEntryRead]

    model_config = {"from_attributes": True}


class WorkoutEnvelope(BaseModel):
    workout: WorkoutRead
