"""SQLAlchemy models for whiteboard-sync database storage."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from advanced_alchemy.base import UUIDAuditBase
from advanced_alchemy.types import DateTimeUTC
from sqlalchemy import Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

if TYPE_CHECKING:
    from whiteboard_sync.core.models import DrawingAction, Session


class WhiteboardSessionModel(UUIDAuditBase):
    """SQLAlchemy model for whiteboard sessions.

    Attributes:
        id: UUID primary key (from UUIDAuditBase).
        name: Display name for the session.
        last_modified: Time of the last accepted drawing action.
        actions: Related drawing action records.
        created_at: Creation timestamp (from UUIDAuditBase).
        updated_at: Row update timestamp (from UUIDAuditBase).
    """

    __tablename__ = "whiteboard_sessions"

    name: Mapped[str] = mapped_column(String(100))
    last_modified: Mapped[datetime] = mapped_column(
        DateTimeUTC(timezone=True),
        default=lambda: datetime.now(UTC),
        index=True,
    )

    actions: Mapped[list[DrawingActionModel]] = relationship(
        "DrawingActionModel",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="noload",
    )


class DrawingActionModel(UUIDAuditBase):
    """SQLAlchemy model for drawing actions.

    Rows are written once and never updated.
    """

    __tablename__ = "drawing_actions"

    session_id: Mapped[UUID] = mapped_column(ForeignKey("whiteboard_sessions.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[str] = mapped_column(String(50))
    action_type: Mapped[str] = mapped_column(String(20))

    start_x: Mapped[float] = mapped_column(Float, default=0.0)
    start_y: Mapped[float] = mapped_column(Float, default=0.0)
    end_x: Mapped[float] = mapped_column(Float, default=0.0)
    end_y: Mapped[float] = mapped_column(Float, default=0.0)

    color: Mapped[str] = mapped_column(String(7), default="#000000")
    line_width: Mapped[float] = mapped_column(Float, default=2.0)
    timestamp: Mapped[datetime] = mapped_column(DateTimeUTC(timezone=True), index=True)

    session: Mapped[WhiteboardSessionModel] = relationship("WhiteboardSessionModel", back_populates="actions")


def session_to_model(session: Session) -> WhiteboardSessionModel:
    """Convert a domain Session to a WhiteboardSessionModel."""
    return WhiteboardSessionModel(
        id=session.id,
        name=session.name,
        last_modified=session.last_modified,
        created_at=session.created_at,
        updated_at=session.last_modified,
    )


def session_from_model(model: WhiteboardSessionModel) -> Session:
    """Convert a WhiteboardSessionModel to a domain Session (without history)."""
    from whiteboard_sync.core.models import Session

    return Session(
        id=model.id,
        name=model.name,
        created_at=model.created_at,
        last_modified=model.last_modified,
    )


def action_to_model(action: DrawingAction) -> DrawingActionModel:
    """Convert a domain DrawingAction to a DrawingActionModel."""
    return DrawingActionModel(
        id=action.id,
        session_id=action.session_id,
        user_id=action.user_id,
        action_type=action.action_type.value,
        start_x=action.start_x,
        start_y=action.start_y,
        end_x=action.end_x,
        end_y=action.end_y,
        color=action.color,
        line_width=action.line_width,
        timestamp=action.timestamp,
    )


def action_from_model(model: DrawingActionModel) -> DrawingAction:
    """Convert a DrawingActionModel to a domain DrawingAction."""
    from whiteboard_sync.core.models import DrawingAction
    from whiteboard_sync.core.types import ActionType

    return DrawingAction(
        id=model.id,
        session_id=model.session_id,
        user_id=model.user_id,
        action_type=ActionType(model.action_type),
        start_x=model.start_x,
        start_y=model.start_y,
        end_x=model.end_x,
        end_y=model.end_y,
        color=model.color,
        line_width=model.line_width,
        timestamp=model.timestamp,
    )
