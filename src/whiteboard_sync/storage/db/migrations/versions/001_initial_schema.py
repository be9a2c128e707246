"""Initial schema for whiteboard sessions and drawing actions.

Revision ID: 001_initial
Revises:
Create Date: 2025-09-23 00:00:00.000000

"""

from __future__ import annotations

from typing import TYPE_CHECKING

import sqlalchemy as sa
from advanced_alchemy.types import GUID, DateTimeUTC
from alembic import op

if TYPE_CHECKING:
    from collections.abc import Sequence

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create whiteboard_sessions and drawing_actions tables."""
    op.create_table(
        "whiteboard_sessions",
        sa.Column("id", GUID(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("last_modified", DateTimeUTC(timezone=True), nullable=False),
        sa.Column("sa_orm_sentinel", sa.Integer(), nullable=True),
        sa.Column("created_at", DateTimeUTC(timezone=True), nullable=False),
        sa.Column("updated_at", DateTimeUTC(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_whiteboard_sessions_last_modified", "whiteboard_sessions", ["last_modified"])

    op.create_table(
        "drawing_actions",
        sa.Column("id", GUID(), nullable=False),
        sa.Column("session_id", GUID(), nullable=False),
        sa.Column("user_id", sa.String(50), nullable=False),
        sa.Column("action_type", sa.String(20), nullable=False),
        sa.Column("start_x", sa.Float(), nullable=False, server_default="0.0"),
        sa.Column("start_y", sa.Float(), nullable=False, server_default="0.0"),
        sa.Column("end_x", sa.Float(), nullable=False, server_default="0.0"),
        sa.Column("end_y", sa.Float(), nullable=False, server_default="0.0"),
        sa.Column("color", sa.String(7), nullable=False, server_default="#000000"),
        sa.Column("line_width", sa.Float(), nullable=False, server_default="2.0"),
        sa.Column("timestamp", DateTimeUTC(timezone=True), nullable=False),
        sa.Column("sa_orm_sentinel", sa.Integer(), nullable=True),
        sa.Column("created_at", DateTimeUTC(timezone=True), nullable=False),
        sa.Column("updated_at", DateTimeUTC(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["session_id"], ["whiteboard_sessions.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_drawing_actions_session_id", "drawing_actions", ["session_id"])
    op.create_index("ix_drawing_actions_timestamp", "drawing_actions", ["timestamp"])


def downgrade() -> None:
    """Drop drawing_actions and whiteboard_sessions tables."""
    op.drop_index("ix_drawing_actions_timestamp", "drawing_actions")
    op.drop_index("ix_drawing_actions_session_id", "drawing_actions")
    op.drop_table("drawing_actions")
    op.drop_index("ix_whiteboard_sessions_last_modified", "whiteboard_sessions")
    op.drop_table("whiteboard_sessions")
