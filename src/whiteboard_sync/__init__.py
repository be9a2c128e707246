"""Whiteboard-sync: real-time collaborative whiteboard sessions for Litestar.

This package keeps every participant of a whiteboard session in sync. Drawing
actions arrive over a WebSocket, are persisted to a session store and only
then relayed to the other members of the session, so a late joiner can
rebuild the board by replaying the stored history.

Key Components:
    - Core Models: Session, DrawingAction, ActionType
    - Storage: InMemoryStorage, SessionStoreProtocol, DatabaseStorage
    - Services: SessionService (session lifecycle and history)
    - Realtime: ConnectionManager, ActionRelay, WebSocket handler
    - Plugin: WhiteboardPlugin for Litestar integration

Quick Start:
    >>> from litestar import Litestar
    >>> from whiteboard_sync import WhiteboardPlugin, WhiteboardConfig
    >>>
    >>> app = Litestar(plugins=[WhiteboardPlugin(WhiteboardConfig())])
"""

from __future__ import annotations

from whiteboard_sync.core import ActionClock, ActionType, DrawingAction, Session
from whiteboard_sync.exceptions import (
    InvalidActionError,
    SessionNotFoundError,
    StorageError,
    WhiteboardError,
)
from whiteboard_sync.plugin import WhiteboardConfig, WhiteboardPlugin
from whiteboard_sync.realtime import ActionRelay, ConnectionManager, MessageType, create_websocket_handler
from whiteboard_sync.services import SessionService
from whiteboard_sync.storage import InMemoryStorage, SessionStoreProtocol
from whiteboard_sync.web import SessionController, create_router

__all__ = [
    "ActionClock",
    "ActionRelay",
    "ActionType",
    "ConnectionManager",
    "DrawingAction",
    "InMemoryStorage",
    "InvalidActionError",
    "MessageType",
    "Session",
    "SessionController",
    "SessionNotFoundError",
    "SessionService",
    "SessionStoreProtocol",
    "StorageError",
    "WhiteboardConfig",
    "WhiteboardError",
    "WhiteboardPlugin",
    "create_router",
    "create_websocket_handler",
]

__version__ = "0.1.0"
