"""Data Transfer Objects (DTOs) for the whiteboard-sync API."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from whiteboard_sync.core.models import DEFAULT_COLOR, DEFAULT_LINE_WIDTH

if TYPE_CHECKING:
    from whiteboard_sync.core.models import DrawingAction, Session


# Session DTOs


@dataclass
class CreateSessionDTO:
    """DTO for creating a new session.

    Attributes:
        name: Display name for the session.
    """

    name: str


@dataclass
class SessionResponseDTO:
    """DTO for session list/summary responses."""

    id: UUID
    name: str
    created_at: datetime
    last_modified: datetime


@dataclass
class SessionDetailDTO:
    """DTO for a session together with its drawing history.

    Attributes:
        id: Unique identifier for the session.
        name: Display name for the session.
        created_at: Timestamp when the session was created.
        last_modified: Timestamp of the last accepted action.
        drawing_actions: History ordered by timestamp, oldest first.
    """

    id: UUID
    name: str
    created_at: datetime
    last_modified: datetime
    drawing_actions: list[DrawingActionResponseDTO] = field(default_factory=list)


# Drawing action DTOs


@dataclass
class CreateDrawingActionDTO:
    """DTO for saving a drawing action over HTTP.

    Attributes:
        user_id: The submitting user.
        action_type: One of ``draw``, ``erase`` or ``clear``.
        start_x: Segment start X.
        start_y: Segment start Y.
        end_x: Segment end X.
        end_y: Segment end Y.
        color: Stroke color in ``#RRGGBB`` form.
        line_width: Stroke width.
    """

    user_id: str
    action_type: str
    start_x: float = 0.0
    start_y: float = 0.0
    end_x: float = 0.0
    end_y: float = 0.0
    color: str = DEFAULT_COLOR
    line_width: float = DEFAULT_LINE_WIDTH


@dataclass
class DrawingActionResponseDTO:
    """DTO for a persisted drawing action."""

    id: UUID
    session_id: UUID
    user_id: str
    action_type: str
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    color: str
    line_width: float
    timestamp: datetime


# Conversion helpers


def session_to_response(session: Session) -> SessionResponseDTO:
    """Convert a Session domain model to a SessionResponseDTO."""
    return SessionResponseDTO(
        id=session.id,
        name=session.name,
        created_at=session.created_at,
        last_modified=session.last_modified,
    )


def session_to_detail(session: Session) -> SessionDetailDTO:
    """Convert a loaded Session domain model to a SessionDetailDTO.

    Args:
        session: The session to convert, with its actions populated.

    Returns:
        The corresponding SessionDetailDTO.
    """
    return SessionDetailDTO(
        id=session.id,
        name=session.name,
        created_at=session.created_at,
        last_modified=session.last_modified,
        drawing_actions=[action_to_response(action) for action in session.actions],
    )


def action_to_response(action: DrawingAction) -> DrawingActionResponseDTO:
    """Convert a DrawingAction domain model to a DrawingActionResponseDTO."""
    return DrawingActionResponseDTO(
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
