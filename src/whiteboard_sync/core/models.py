"""Core domain models for the whiteboard-sync session system."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from whiteboard_sync.core.types import ActionType
from whiteboard_sync.exceptions import InvalidActionError

DEFAULT_COLOR = "#000000"
DEFAULT_LINE_WIDTH = 2.0
MAX_SESSION_NAME_LENGTH = 100
MAX_USER_ID_LENGTH = 50

_COLOR_PATTERN = re.compile(r"#[0-9a-fA-F]{6}")
_NUMERIC_FIELDS = ("start_x", "start_y", "end_x", "end_y", "line_width")


def is_valid_color(color: str) -> bool:
    """Check whether a color string is in ``#RRGGBB`` form."""
    return bool(_COLOR_PATTERN.fullmatch(color))


@dataclass(frozen=True)
class DrawingAction:
    """A single immutable stroke segment or control action on a session.

    Attributes:
        session_id: ID of the owning session.
        user_id: ID of the user who submitted the action.
        action_type: Kind of action (draw, erase, clear).
        start_x: X-coordinate where the segment starts.
        start_y: Y-coordinate where the segment starts.
        end_x: X-coordinate where the segment ends.
        end_y: Y-coordinate where the segment ends.
        color: Stroke color in ``#RRGGBB`` form.
        line_width: Stroke width. Must be positive except for clear actions.
        timestamp: Server-assigned acceptance time.
        id: Unique identifier for the action.
    """

    session_id: UUID
    user_id: str
    action_type: ActionType
    start_x: float = 0.0
    start_y: float = 0.0
    end_x: float = 0.0
    end_y: float = 0.0
    color: str = DEFAULT_COLOR
    line_width: float = DEFAULT_LINE_WIDTH
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        """Reject actions with out-of-range field values."""
        if not self.user_id or len(self.user_id) > MAX_USER_ID_LENGTH:
            msg = f"user_id must be between 1 and {MAX_USER_ID_LENGTH} characters"
            raise InvalidActionError(msg)
        if not is_valid_color(self.color):
            msg = f"Invalid color: {self.color!r}"
            raise InvalidActionError(msg)
        for name in _NUMERIC_FIELDS:
            if not math.isfinite(getattr(self, name)):
                msg = f"{name} must be a finite number"
                raise InvalidActionError(msg)
        if self.action_type == ActionType.CLEAR:
            if self.line_width < 0:
                msg = "line_width must not be negative"
                raise InvalidActionError(msg)
        elif self.line_width <= 0:
            msg = "line_width must be positive"
            raise InvalidActionError(msg)

    @classmethod
    def clear(cls, session_id: UUID, user_id: str, timestamp: datetime | None = None) -> DrawingAction:
        """Build a clear action with zeroed geometry."""
        return cls(
            session_id=session_id,
            user_id=user_id,
            action_type=ActionType.CLEAR,
            color=DEFAULT_COLOR,
            line_width=0.0,
            timestamp=timestamp or datetime.now(UTC),
        )


@dataclass
class Session:
    """A named collaboration space with an ordered drawing history.

    Attributes:
        id: Unique identifier for the session.
        name: Display name for the session.
        created_at: Timestamp when the session was created.
        last_modified: Timestamp of the last accepted action.
        actions: Drawing actions ordered by timestamp (only populated when loaded).
    """

    name: str
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_modified: datetime = field(default_factory=lambda: datetime.now(UTC))
    actions: list[DrawingAction] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Keep last_modified from preceding created_at."""
        self.last_modified = max(self.last_modified, self.created_at)
