"""Initial schema: users, tokens, workouts, workout_entries

Learn: tokens.user_id and workout_entries.workout_id cascade on delete,
so a removed user takes their tokens with them and a removed workout
never leaves entries behind.

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("bio", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()
        ),
    )

    op.create_table(
        "tokens",
        sa.Column("hash", sa.String(64), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("expiry", sa.DateTime(timezone=True), nullable=False),
        sa.Column("scope", sa.String(50), nullable=False),
    )
    op.create_index("idx_tokens_user", "tokens", ["user_id"])
    op.create_index("idx_tokens_expiry", "tokens", ["expiry"])

    op.create_table(
        "workouts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("calories_burned", sa.Integer(), nullable=False),
    )
    op.create_index("idx_workouts_user", "workouts", ["user_id"])

    op.create_table(
        "workout_entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "workout_id",
            sa.Integer(),
            sa.ForeignKey("workouts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("exercise_name", sa.String(255), nullable=False),
        sa.Column("sets", sa.Integer(), nullable=False),
        sa.Column("reps", sa.Integer(), nullable=False),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=False),
    )
    op.create_index(
        "idx_workout_entries_workout", "workout_entries", ["workout_id", "position"]
    )


def downgrade() -> None:
    op.drop_index("idx_workout_entries_workout", table_name="workout_entries")
    op.drop_table("workout_entries")
    op.drop_index("idx_workouts_user", table_name="workouts")
    op.drop_table("workouts")
    op.drop_index("idx_tokens_expiry", table_name="tokens")
    op.drop_index("idx_tokens_user", table_name="tokens")
    op.drop_table("tokens")
    op.drop_table("users")
