"""WebSocket handler for real-time whiteboard synchronization."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

import structlog
from litestar import Router, WebSocket, websocket
from litestar.exceptions import WebSocketDisconnect

from whiteboard_sync.core.models import DEFAULT_COLOR, DEFAULT_LINE_WIDTH, MAX_USER_ID_LENGTH
from whiteboard_sync.exceptions import InvalidActionError
from whiteboard_sync.realtime.messages import ErrorMessage, MessageType

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from whiteboard_sync.realtime.manager import ConnectionManager
    from whiteboard_sync.realtime.relay import ActionRelay

logger = structlog.get_logger(__name__)

_COORDINATE_FIELDS = ("startX", "startY", "endX", "endY")


def _require_str(message: dict[str, Any], key: str) -> str:
    value = message.get(key)
    if not isinstance(value, str) or not value:
        msg = f"'{key}' must be a non-empty string"
        raise InvalidActionError(msg)
    return value


def _require_number(message: dict[str, Any], key: str, default: float | None = None) -> float:
    value = message.get(key, default)
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int | float):
        msg = f"'{key}' must be a number"
        raise InvalidActionError(msg)
    return float(value)


def _parse_session_id(message: dict[str, Any]) -> UUID | None:
    """Read ``sessionId``; None means the id cannot name any session."""
    raw = _require_str(message, "sessionId")
    try:
        return UUID(raw)
    except ValueError:
        return None


class WhiteboardWebSocketHandler:
    """Handler for whiteboard WebSocket connections.

    Each connection runs one receive loop. Frames from a connection are
    processed one at a time in arrival order, so a sender's actions are
    persisted and relayed in the order it sent them.
    """

    def __init__(self, connection_manager: ConnectionManager, relay: ActionRelay) -> None:
        """Initialize the WebSocket handler.

        Args:
            connection_manager: The connection manager instance.
            relay: The relay that persists and fans out drawing actions.
        """
        self._manager = connection_manager
        self._relay = relay
        self._handlers: dict[str, Callable[[WebSocket, str, dict[str, Any]], Awaitable[None]]] = {
            MessageType.JOIN_SESSION.value: self._handle_join,
            MessageType.LEAVE_SESSION.value: self._handle_leave,
            MessageType.SEND_DRAWING_ACTION.value: self._handle_drawing_action,
            MessageType.CLEAR_BOARD.value: self._handle_clear,
        }

    async def handle_connection(self, socket: WebSocket) -> None:
        """Handle a WebSocket connection from accept to teardown.

        Args:
            socket: The WebSocket connection.
        """
        await socket.accept()
        connection_id = uuid4().hex
        await self._manager.on_connect(connection_id, socket)

        cause: BaseException | None = None
        with structlog.contextvars.bound_contextvars(connection_id=connection_id):
            try:
                await self._receive_loop(socket, connection_id)
            except WebSocketDisconnect:
                pass
            except Exception as exc:
                cause = exc
                logger.exception("WebSocket error")
            finally:
                await self._manager.on_disconnect(connection_id, cause)

    async def _receive_loop(self, socket: WebSocket, connection_id: str) -> None:
        async for raw in socket.iter_data():
            try:
                data = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError):
                await self._send_error(socket, "invalid_json", "Invalid JSON message")
                continue

            if not isinstance(data, dict):
                await self._send_error(socket, "invalid_message", "Message must be a JSON object")
                continue

            msg_type = data.get("type")
            if not msg_type:
                await self._send_error(socket, "missing_type", "Message type is required")
                continue

            handler = self._handlers.get(msg_type)
            if handler is None:
                await self._send_error(socket, "unknown_type", f"Unknown message type: {msg_type}")
                continue

            try:
                await handler(socket, connection_id, data)
            except InvalidActionError as exc:
                await self._send_error(socket, "invalid_payload", str(exc), {"messageType": msg_type})
            except Exception:
                logger.exception("Error handling message", message_type=msg_type)
                await self._send_error(socket, "internal_error", "Internal server error")

    async def _handle_join(self, socket: WebSocket, connection_id: str, message: dict[str, Any]) -> None:
        session_id = _parse_session_id(message)
        user_id = _require_str(message, "userId")
        if len(user_id) > MAX_USER_ID_LENGTH:
            msg = f"'userId' must be at most {MAX_USER_ID_LENGTH} characters"
            raise InvalidActionError(msg)
        if session_id is None:
            await self._send_error(socket, "invalid_session_id", "sessionId is not a valid session identifier")
            return
        await self._manager.join_session(connection_id, session_id, user_id)

    async def _handle_leave(self, socket: WebSocket, connection_id: str, message: dict[str, Any]) -> None:
        session_id = _parse_session_id(message)
        user_id = _require_str(message, "userId")
        if session_id is None:
            return
        await self._manager.leave_session(connection_id, session_id, user_id)

    async def _handle_drawing_action(self, socket: WebSocket, connection_id: str, message: dict[str, Any]) -> None:
        session_id = _parse_session_id(message)
        user_id = _require_str(message, "userId")
        action_type = _require_str(message, "actionType")
        start_x, start_y, end_x, end_y = (_require_number(message, key) for key in _COORDINATE_FIELDS)
        color = message.get("color", DEFAULT_COLOR)
        if not isinstance(color, str):
            msg = "'color' must be a string"
            raise InvalidActionError(msg)
        line_width = _require_number(message, "lineWidth", DEFAULT_LINE_WIDTH)

        if session_id is None:
            logger.warning("Dropping action for malformed session id", session_id=message.get("sessionId"))
            return

        await self._relay.submit_drawing_action(
            connection_id,
            session_id,
            user_id,
            action_type,
            start_x,
            start_y,
            end_x,
            end_y,
            color=color,
            line_width=line_width,
        )

    async def _handle_clear(self, socket: WebSocket, connection_id: str, message: dict[str, Any]) -> None:
        session_id = _parse_session_id(message)
        user_id = _require_str(message, "userId")
        if session_id is None:
            logger.warning("Dropping clear for malformed session id", session_id=message.get("sessionId"))
            return
        await self._relay.clear_board(connection_id, session_id, user_id)

    async def _send_error(
        self,
        socket: WebSocket,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Send an error frame back to the offending connection."""
        try:
            await socket.send_json(ErrorMessage(code=code, message=message, details=details).to_dict())
        except Exception:
            logger.exception("Failed to send error message", code=code)


def create_websocket_handler(
    path: str,
    connection_manager: ConnectionManager,
    relay: ActionRelay,
) -> Router:
    """Create a WebSocket router for whiteboard synchronization.

    Args:
        path: Base path for WebSocket routes.
        connection_manager: The connection manager instance.
        relay: The action relay instance.

    Returns:
        A Litestar Router with the whiteboard WebSocket route.
    """
    handler = WhiteboardWebSocketHandler(connection_manager, relay)

    @websocket(path="/whiteboard")
    async def whiteboard_websocket(socket: WebSocket) -> None:
        """WebSocket endpoint for whiteboard sessions.

        Args:
            socket: The WebSocket connection.
        """
        await handler.handle_connection(socket)

    return Router(path=path, route_handlers=[whiteboard_websocket], tags=["WebSocket"])
