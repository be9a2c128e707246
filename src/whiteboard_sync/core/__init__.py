"""Core domain models for whiteboard-sync."""

from whiteboard_sync.core.clock import ActionClock
from whiteboard_sync.core.models import (
    DEFAULT_COLOR,
    DEFAULT_LINE_WIDTH,
    DrawingAction,
    Session,
    is_valid_color,
)
from whiteboard_sync.core.types import ActionType

__all__ = [
    "DEFAULT_COLOR",
    "DEFAULT_LINE_WIDTH",
    "ActionClock",
    "ActionType",
    "DrawingAction",
    "Session",
    "is_valid_color",
]
