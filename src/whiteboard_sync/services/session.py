"""Session service providing business logic for session lifecycle and history."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

import structlog

from whiteboard_sync.core.clock import ActionClock
from whiteboard_sync.core.models import (
    DEFAULT_COLOR,
    DEFAULT_LINE_WIDTH,
    MAX_SESSION_NAME_LENGTH,
    DrawingAction,
    Session,
)
from whiteboard_sync.core.types import ActionType
from whiteboard_sync.exceptions import InvalidActionError, SessionNotFoundError

if TYPE_CHECKING:
    from uuid import UUID

    from whiteboard_sync.storage.base import SessionStoreProtocol

logger = structlog.get_logger(__name__)


class SessionService:
    """Service for managing whiteboard sessions and their drawing history.

    This service wraps the session store with validation and the server clock
    used to stamp actions submitted over HTTP.
    """

    def __init__(self, storage: SessionStoreProtocol, clock: ActionClock | None = None) -> None:
        """Initialize the session service.

        Args:
            storage: Session store implementing SessionStoreProtocol.
            clock: Clock used to stamp actions. Share it with the realtime
                relay so both paths produce one strictly ordered history.
        """
        self._storage = storage
        self._clock = clock or ActionClock()

    @property
    def storage(self) -> SessionStoreProtocol:
        """The underlying session store."""
        return self._storage

    async def create_session(self, name: str) -> Session:
        """Create a new, empty session.

        Args:
            name: Display name for the session.

        Returns:
            The newly created session.

        Raises:
            InvalidActionError: If the name is blank or too long.
            StorageError: If the session cannot be created.
        """
        if not name or not name.strip():
            msg = "Session name is required"
            raise InvalidActionError(msg)
        if len(name) > MAX_SESSION_NAME_LENGTH:
            msg = f"Session name must be at most {MAX_SESSION_NAME_LENGTH} characters"
            raise InvalidActionError(msg)

        now = self._clock.now()
        session = await self._storage.create_session(Session(name=name, created_at=now, last_modified=now))
        logger.info("Session created", session_id=str(session.id), name=session.name)
        return session

    async def get_session(self, session_id: UUID) -> Session:
        """Get a session without its history.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        session = await self._storage.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def load_session(self, session_id: UUID) -> Session:
        """Get a session with its full drawing history, oldest action first.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        session = await self.get_session(session_id)
        actions = await self._storage.get_actions(session_id)
        return replace(session, actions=actions)

    async def list_sessions(self) -> list[Session]:
        """List all sessions, most recently modified first."""
        return await self._storage.list_sessions()

    async def delete_session(self, session_id: UUID) -> None:
        """Delete a session and its history.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        if not await self._storage.delete_session(session_id):
            raise SessionNotFoundError(session_id)
        logger.info("Session deleted", session_id=str(session_id))

    async def get_actions(self, session_id: UUID) -> list[DrawingAction]:
        """Get a session's drawing history, oldest action first.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        return await self._storage.get_actions(session_id)

    async def save_action(
        self,
        session_id: UUID,
        user_id: str,
        action_type: ActionType | str,
        start_x: float = 0.0,
        start_y: float = 0.0,
        end_x: float = 0.0,
        end_y: float = 0.0,
        color: str = DEFAULT_COLOR,
        line_width: float = DEFAULT_LINE_WIDTH,
    ) -> DrawingAction:
        """Persist a single action without relaying it to live connections.

        Args:
            session_id: The owning session.
            user_id: The submitting user.
            action_type: Kind of action.
            start_x: Segment start X.
            start_y: Segment start Y.
            end_x: Segment end X.
            end_y: Segment end Y.
            color: Stroke color in ``#RRGGBB`` form.
            line_width: Stroke width.

        Returns:
            The persisted action.

        Raises:
            InvalidActionError: If the action fields fail validation.
            SessionNotFoundError: If the session does not exist.
        """
        try:
            action_type = ActionType(action_type)
        except ValueError:
            msg = f"Unknown action type: {action_type!r}"
            raise InvalidActionError(msg) from None

        if action_type == ActionType.CLEAR:
            action = DrawingAction.clear(session_id, user_id, timestamp=self._clock.now())
        else:
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
        persisted = await self._storage.append_action(session_id, action)
        logger.debug(
            "Action saved",
            session_id=str(session_id),
            action_id=str(persisted.id),
            action_type=persisted.action_type.value,
        )
        return persisted
