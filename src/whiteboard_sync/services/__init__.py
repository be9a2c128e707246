"""Business logic services for whiteboard-sync."""

from whiteboard_sync.services.session import SessionService

__all__ = ["SessionService"]
