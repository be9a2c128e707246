"""Core type definitions for whiteboard-sync."""

from __future__ import annotations

from enum import StrEnum


class ActionType(StrEnum):
    """Enumeration of drawing action kinds."""

    DRAW = "draw"
    ERASE = "erase"
    CLEAR = "clear"
