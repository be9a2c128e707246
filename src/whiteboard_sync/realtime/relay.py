"""Persist-then-relay pipeline for drawing actions."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from whiteboard_sync.core.clock import ActionClock
from whiteboard_sync.core.models import DEFAULT_COLOR, DEFAULT_LINE_WIDTH, DrawingAction
from whiteboard_sync.core.types import ActionType
from whiteboard_sync.exceptions import InvalidActionError, SessionNotFoundError
from whiteboard_sync.realtime.messages import ClearBoardMessage, ReceiveDrawingActionMessage

if TYPE_CHECKING:
    from uuid import UUID

    from whiteboard_sync.realtime.manager import ConnectionManager
    from whiteboard_sync.storage.base import SessionStoreProtocol

logger = structlog.get_logger(__name__)

DEFAULT_PERSIST_TIMEOUT = 5.0


class ActionRelay:
    """Accepts drawing actions from connections, persists them and fans them out.

    An action is only broadcast once the store has acknowledged it, so a
    replay of the session history always contains everything any peer saw
    live. Actions for unknown sessions, and actions the store fails to
    write, are logged and dropped without telling the sender.
    """

    def __init__(
        self,
        connection_manager: ConnectionManager,
        store: SessionStoreProtocol,
        clock: ActionClock | None = None,
        persist_timeout: float = DEFAULT_PERSIST_TIMEOUT,
    ) -> None:
        """Initialize the relay.

        Args:
            connection_manager: Manager used to fan out accepted actions.
            store: Durable store the actions are written to.
            clock: Source of action timestamps.
            persist_timeout: Seconds allowed for a single store write.
        """
        self._manager = connection_manager
        self._store = store
        self._clock = clock or ActionClock()
        self._persist_timeout = persist_timeout

    @property
    def clock(self) -> ActionClock:
        """The clock stamping accepted actions."""
        return self._clock

    async def submit_drawing_action(
        self,
        connection_id: str,
        session_id: UUID,
        user_id: str,
        action_type: ActionType | str,
        start_x: float,
        start_y: float,
        end_x: float,
        end_y: float,
        color: str = DEFAULT_COLOR,
        line_width: float = DEFAULT_LINE_WIDTH,
    ) -> DrawingAction | None:
        """Persist a stroke segment and relay it to the sender's peers.

        The sender is excluded from the fan-out because it has already drawn
        the segment locally. A ``clear`` action type is handled as
        :meth:`clear_board`.

        Args:
            connection_id: The submitting connection.
            session_id: The session the action belongs to.
            user_id: The submitting user.
            action_type: Kind of action.
            start_x: Segment start X.
            start_y: Segment start Y.
            end_x: Segment end X.
            end_y: Segment end Y.
            color: Stroke color in ``#RRGGBB`` form.
            line_width: Stroke width.

        Returns:
            The persisted action, or None if it was dropped.

        Raises:
            InvalidActionError: If the action fields fail validation.
        """
        try:
            action_type = ActionType(action_type)
        except ValueError:
            msg = f"Unknown action type: {action_type!r}"
            raise InvalidActionError(msg) from None
        if action_type == ActionType.CLEAR:
            return await self.clear_board(connection_id, session_id, user_id)

        action = DrawingAction(
            session_id=session_id,
            user_id=user_id,
            action_type=action_type,
            start_x=start_x,
            start_y=start_y,
            end_x=end_x,
            end_y=end_y,
            color=color,
            line_width=line_width,
            timestamp=self._clock.now(),
        )
        persisted = await self._persist(connection_id, action)
        if persisted is None:
            return None

        delivered = await self._manager.broadcast(
            session_id,
            ReceiveDrawingActionMessage.from_action(persisted).to_dict(),
            exclude_connection=connection_id,
        )
        logger.debug(
            "Drawing action relayed",
            connection_id=connection_id,
            session_id=str(session_id),
            action_id=str(persisted.id),
            action_type=persisted.action_type.value,
            recipients=delivered,
        )
        return persisted

    async def clear_board(self, connection_id: str, session_id: UUID, user_id: str) -> DrawingAction | None:
        """Persist a clear marker and tell every member, the sender included.

        Earlier history is kept; replaying clients reset the board when they
        reach the marker.

        Returns:
            The persisted clear action, or None if it was dropped.
        """
        action = DrawingAction.clear(session_id, user_id, timestamp=self._clock.now())
        persisted = await self._persist(connection_id, action)
        if persisted is None:
            return None

        delivered = await self._manager.broadcast(session_id, ClearBoardMessage(user_id=user_id).to_dict())
        logger.info(
            "Board cleared",
            connection_id=connection_id,
            session_id=str(session_id),
            user_id=user_id,
            recipients=delivered,
        )
        return persisted

    async def _persist(self, connection_id: str, action: DrawingAction) -> DrawingAction | None:
        try:
            return await asyncio.wait_for(
                self._store.append_action(action.session_id, action),
                timeout=self._persist_timeout,
            )
        except SessionNotFoundError:
            logger.warning(
                "Dropping action for unknown session",
                connection_id=connection_id,
                session_id=str(action.session_id),
                action_type=action.action_type.value,
            )
        except TimeoutError:
            logger.error(
                "Timed out persisting action",
                connection_id=connection_id,
                session_id=str(action.session_id),
                timeout=self._persist_timeout,
            )
        except Exception:
            logger.exception(
                "Failed to persist action",
                connection_id=connection_id,
                session_id=str(action.session_id),
            )
        return None
