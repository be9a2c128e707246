"""Database storage backend for whiteboard-sync.

This module provides SQLAlchemy-based persistent storage for sessions and
their drawing history.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from whiteboard_sync.storage.db.models import DrawingActionModel, WhiteboardSessionModel
    from whiteboard_sync.storage.db.setup import DatabaseManager
    from whiteboard_sync.storage.db.storage import DatabaseStorage

__all__ = [
    "DatabaseManager",
    "DatabaseStorage",
    "DrawingActionModel",
    "WhiteboardSessionModel",
]


def __getattr__(name: str) -> object:
    """Lazy import database components so the package imports without touching SQLAlchemy."""
    if name == "DatabaseStorage":
        from whiteboard_sync.storage.db.storage import DatabaseStorage

        return DatabaseStorage
    if name == "DatabaseManager":
        from whiteboard_sync.storage.db.setup import DatabaseManager

        return DatabaseManager
    if name in ("DrawingActionModel", "WhiteboardSessionModel"):
        from whiteboard_sync.storage.db import models

        return getattr(models, name)
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
