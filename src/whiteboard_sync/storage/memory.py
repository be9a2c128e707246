"""In-memory session store implementation for whiteboard-sync."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import TYPE_CHECKING

from whiteboard_sync.exceptions import SessionNotFoundError

if TYPE_CHECKING:
    from uuid import UUID

    from whiteboard_sync.core.models import DrawingAction, Session


class InMemoryStorage:
    """Asyncio-safe in-memory session store.

    Sessions and their action histories live in dictionaries guarded by one
    asyncio lock. No operation awaits while holding it, so the lock is only
    contended for the duration of a dict update. Sessions are returned as
    copies; actions are frozen and shared by value.

    Note:
        All data is lost when the application stops. This store is suitable for
        development, testing, or ephemeral deployments.
    """

    def __init__(self) -> None:
        """Initialize the store with empty session and history tables."""
        self._sessions: dict[UUID, Session] = {}
        self._actions: dict[UUID, list[DrawingAction]] = {}
        self._lock = asyncio.Lock()

    async def create_session(self, session: Session) -> Session:
        """Create a new session.

        Args:
            session: The session to create.

        Returns:
            A copy of the created session.
        """
        async with self._lock:
            self._sessions[session.id] = replace(session, actions=[])
            self._actions[session.id] = []
            return replace(session, actions=[])

    async def get_session(self, session_id: UUID) -> Session | None:
        """Retrieve a session by its ID.

        Args:
            session_id: The unique identifier of the session.

        Returns:
            A copy of the session if found, None otherwise.
        """
        async with self._lock:
            session = self._sessions.get(session_id)
            return replace(session) if session else None

    async def list_sessions(self) -> list[Session]:
        """List all sessions, most recently modified first."""
        async with self._lock:
            sessions = [replace(session) for session in self._sessions.values()]
        return sorted(sessions, key=lambda s: s.last_modified, reverse=True)

    async def delete_session(self, session_id: UUID) -> bool:
        """Delete a session and its drawing history.

        Args:
            session_id: The unique identifier of the session to delete.

        Returns:
            True if the session was deleted, False if it did not exist.
        """
        async with self._lock:
            if session_id not in self._sessions:
                return False
            del self._sessions[session_id]
            self._actions.pop(session_id, None)
            return True

    async def append_action(self, session_id: UUID, action: DrawingAction) -> DrawingAction:
        """Append an action to a session's history.

        Args:
            session_id: The unique identifier of the owning session.
            action: The action to persist.

        Returns:
            The persisted action.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            self._actions[session_id].append(action)
            self._sessions[session_id] = replace(
                session,
                last_modified=max(session.last_modified, action.timestamp),
            )
            return action

    async def get_actions(self, session_id: UUID) -> list[DrawingAction]:
        """List a session's history ordered by timestamp.

        Args:
            session_id: The unique identifier of the session.

        Returns:
            Actions ordered by timestamp; the sort is stable so insertion order breaks ties.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        async with self._lock:
            if session_id not in self._sessions:
                raise SessionNotFoundError(session_id)
            actions = list(self._actions[session_id])
        return sorted(actions, key=lambda a: a.timestamp)
