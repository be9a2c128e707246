"""Session store backends for whiteboard-sync."""

from __future__ import annotations

from typing import TYPE_CHECKING

from whiteboard_sync.storage.base import SessionStoreProtocol
from whiteboard_sync.storage.memory import InMemoryStorage

if TYPE_CHECKING:
    from whiteboard_sync.storage.db import DatabaseStorage

__all__ = ["DatabaseStorage", "InMemoryStorage", "SessionStoreProtocol"]


def __getattr__(name: str) -> object:
    """Lazy import DatabaseStorage."""
    if name == "DatabaseStorage":
        from whiteboard_sync.storage.db import DatabaseStorage

        return DatabaseStorage
    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
