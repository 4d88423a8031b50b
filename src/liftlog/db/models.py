"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Relationships, constraints, and indexes defined here.
Alembic migrations are written against these models.

Key concepts:
- Portable column types (runs on PostgreSQL in production, SQLite in tests)
- ON DELETE CASCADE for rows that only exist as part of a parent
- server_default for DB-level defaults (work even for raw SQL inserts)
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ══════════════════════════════════════════════════════════════
# Users and tokens
# ══════════════════════════════════════════════════════════════


class User(Base):
    """A registered user.

    Learn: password_hash is a bcrypt digest (salt embedded). The plaintext
    password never touches the database.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    bio: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=utcnow
    )


class Token(Base):
    """An issued bearer token, stored by hash only.

    Learn: The primary key IS the SHA-256 hex digest of the secret. The
    secret is shown to the client once at issuance; a lookup hashes the
    presented value and probes this key. Many tokens per user are allowed.
    """

    __tablename__ = "tokens"
    __table_args__ = (
        Index("idx_tokens_user", "user_id"),
        Index("idx_tokens_expiry", "expiry"),
    )

    hash: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    expiry: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    scope: Mapped[str] = mapped_column(String(50), nullable=False)


# ══════════════════════════════════════════════════════════════
# Workouts (aggregate root) and entries
# ══════════════════════════════════════════════════════════════


class Workout(Base):
    """A workout and its ordered entries.

    Learn: Aggregate root. Entries have no identity outside their workout;
    they are inserted, replaced, and deleted only together with it.
    user_id is set at creation and never reassigned.
    """

    __tablename__ = "workouts"
    __table_args__ = (
        Index("idx_workouts_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    calories_burned: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Relationships
    entries: Mapped[list["WorkoutEntry"]] = relationship(
        back_populates="workout",
        order_by="WorkoutEntry.position",
        cascade="all, delete-orphan",
    )


class WorkoutEntry(Base):
    """One exercise line within a workout."""

    __tablename__ = "workout_entries"
    __table_args__ = (
        Index("idx_workout_entries_workout", "workout_id", "position"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    workout_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("workouts.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    exercise_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sets: Mapped[int] = mapped_column(Integer, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, nullable=False)
    weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")

    workout: Mapped["Workout"] = relationship(back_populates="entries")
