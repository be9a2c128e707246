"""Real-time WebSocket module for whiteboard-sync.

This module provides connection tracking, session group membership and the
persist-then-relay pipeline that keeps every participant's board in sync.
"""

from __future__ import annotations

from whiteboard_sync.realtime.handler import WhiteboardWebSocketHandler, create_websocket_handler
from whiteboard_sync.realtime.manager import ConnectionManager
from whiteboard_sync.realtime.messages import (
    ClearBoardMessage,
    ErrorMessage,
    MessageType,
    ReceiveDrawingActionMessage,
    UserJoinedMessage,
    UserLeftMessage,
)
from whiteboard_sync.realtime.registry import ConnectionEntry, ConnectionRegistry, SessionGroupTable
from whiteboard_sync.realtime.relay import ActionRelay

__all__ = [
    "ActionRelay",
    "ClearBoardMessage",
    "ConnectionEntry",
    "ConnectionManager",
    "ConnectionRegistry",
    "ErrorMessage",
    "MessageType",
    "ReceiveDrawingActionMessage",
    "SessionGroupTable",
    "UserJoinedMessage",
    "UserLeftMessage",
    "WhiteboardWebSocketHandler",
    "create_websocket_handler",
]
