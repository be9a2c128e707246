"""WebSocket message types and schemas for whiteboard synchronization.

Message ``type`` values and payload field names follow the browser client's
protocol (camelCase fields), so they are a compatibility surface.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from whiteboard_sync.core.models import DrawingAction


class MessageType(str, Enum):
    """Types of WebSocket messages."""

    # Client -> Server
    JOIN_SESSION = "JoinSession"
    LEAVE_SESSION = "LeaveSession"
    SEND_DRAWING_ACTION = "SendDrawingAction"

    # Both directions: a client request to clear, and the server's authoritative clear
    CLEAR_BOARD = "ClearBoard"

    # Server -> Client
    USER_JOINED = "UserJoined"
    USER_LEFT = "UserLeft"
    RECEIVE_DRAWING_ACTION = "ReceiveDrawingAction"
    ERROR = "Error"


@dataclass
class UserJoinedMessage:
    """Sent to every group member when a connection joins a session."""

    user_id: str
    connection_id: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.USER_JOINED.value,
            "userId": self.user_id,
            "connectionId": self.connection_id,
        }


@dataclass
class UserLeftMessage:
    """Sent to the remaining group members when a connection leaves or drops."""

    user_id: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.USER_LEFT.value,
            "userId": self.user_id,
        }


@dataclass
class ReceiveDrawingActionMessage:
    """Relayed stroke segment delivered to every member except its sender."""

    session_id: str
    user_id: str
    action_type: str
    start_x: float
    start_y: float
    end_x: float
    end_y: float
    color: str
    line_width: float

    @classmethod
    def from_action(cls, action: DrawingAction) -> ReceiveDrawingActionMessage:
        """Build the outbound message for a persisted action."""
        return cls(
            session_id=str(action.session_id),
            user_id=action.user_id,
            action_type=action.action_type.value,
            start_x=action.start_x,
            start_y=action.start_y,
            end_x=action.end_x,
            end_y=action.end_y,
            color=action.color,
            line_width=action.line_width,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.RECEIVE_DRAWING_ACTION.value,
            "sessionId": self.session_id,
            "userId": self.user_id,
            "actionType": self.action_type,
            "startX": self.start_x,
            "startY": self.start_y,
            "endX": self.end_x,
            "endY": self.end_y,
            "color": self.color,
            "lineWidth": self.line_width,
        }


@dataclass
class ClearBoardMessage:
    """Authoritative clear delivered to every member, sender included."""

    user_id: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "type": MessageType.CLEAR_BOARD.value,
            "userId": self.user_id,
        }


@dataclass
class ErrorMessage:
    """Message for frames the server could not decode."""

    code: str
    message: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "type": MessageType.ERROR.value,
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result
