"""Litestar controllers for whiteboard-sync API endpoints."""

from __future__ import annotations

from typing import ClassVar
from uuid import UUID

from litestar import Controller, delete, get, post
from litestar.status_codes import HTTP_201_CREATED, HTTP_204_NO_CONTENT

from whiteboard_sync.services.session import SessionService
from whiteboard_sync.web.dto import (
    CreateDrawingActionDTO,
    CreateSessionDTO,
    DrawingActionResponseDTO,
    SessionDetailDTO,
    SessionResponseDTO,
    action_to_response,
    session_to_detail,
    session_to_response,
)


class SessionController(Controller):
    """Controller for session lifecycle and history endpoints.

    Actions saved here are persisted only. Live participants receive actions
    through the WebSocket relay.
    """

    path = "/sessions"
    tags: ClassVar[list[str]] = ["Sessions"]

    @post("/", status_code=HTTP_201_CREATED)
    async def create_session(self, data: CreateSessionDTO, service: SessionService) -> SessionResponseDTO:
        """Create a new session.

        Args:
            data: The session creation data.
            service: The session service instance (injected).

        Returns:
            The created session.

        Raises:
            InvalidActionError: If the name is blank or too long.
        """
        session = await service.create_session(data.name)
        return session_to_response(session)

    @get("/")
    async def list_sessions(self, service: SessionService) -> list[SessionResponseDTO]:
        """List all sessions, most recently modified first."""
        sessions = await service.list_sessions()
        return [session_to_response(s) for s in sessions]

    @get("/{session_id:uuid}")
    async def get_session(self, session_id: UUID, service: SessionService) -> SessionDetailDTO:
        """Load a session with its drawing history in replay order.

        Args:
            session_id: The unique identifier of the session.
            service: The session service instance (injected).

        Returns:
            The session and its actions, oldest first.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        session = await service.load_session(session_id)
        return session_to_detail(session)

    @delete("/{session_id:uuid}", status_code=HTTP_204_NO_CONTENT)
    async def delete_session(self, session_id: UUID, service: SessionService) -> None:
        """Delete a session and its history.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        await service.delete_session(session_id)

    @get("/{session_id:uuid}/actions")
    async def list_actions(self, session_id: UUID, service: SessionService) -> list[DrawingActionResponseDTO]:
        """List a session's drawing history, oldest first."""
        actions = await service.get_actions(session_id)
        return [action_to_response(a) for a in actions]

    @post("/{session_id:uuid}/actions", status_code=HTTP_201_CREATED)
    async def save_action(
        self,
        session_id: UUID,
        data: CreateDrawingActionDTO,
        service: SessionService,
    ) -> DrawingActionResponseDTO:
        """Persist a drawing action without relaying it.

        Args:
            session_id: The owning session.
            data: The action fields.
            service: The session service instance (injected).

        Returns:
            The persisted action.

        Raises:
            SessionNotFoundError: If the session does not exist.
            InvalidActionError: If the action fields fail validation.
        """
        action = await service.save_action(
            session_id,
            user_id=data.user_id,
            action_type=data.action_type,
            start_x=data.start_x,
            start_y=data.start_y,
            end_x=data.end_x,
            end_y=data.end_y,
            color=data.color,
            line_width=data.line_width,
        )
        return action_to_response(action)
