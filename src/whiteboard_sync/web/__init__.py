"""Web layer for the whiteboard-sync API."""

from whiteboard_sync.web.controllers import SessionController
from whiteboard_sync.web.health import HealthController
from whiteboard_sync.web.router import create_router

__all__ = ["HealthController", "SessionController", "create_router"]
