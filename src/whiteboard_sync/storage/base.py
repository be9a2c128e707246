"""Session store protocol definition for whiteboard-sync."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID

    from whiteboard_sync.core.models import DrawingAction, Session


@runtime_checkable
class SessionStoreProtocol(Protocol):
    """Protocol defining the durable store for sessions and their drawing history.

    Implementations must be safe to call from many connection tasks at once.
    """

    async def create_session(self, session: Session) -> Session:
        """Create a new session.

        Args:
            session: The session to create.

        Returns:
            The created session.

        Raises:
            StorageError: If the session cannot be created.
        """
        ...

    async def get_session(self, session_id: UUID) -> Session | None:
        """Retrieve a session by its ID, without its action history.

        Args:
            session_id: The unique identifier of the session.

        Returns:
            The session if found, None otherwise.
        """
        ...

    async def list_sessions(self) -> list[Session]:
        """List all sessions.

        Returns:
            Sessions ordered by last modification (most recent first).
        """
        ...

    async def delete_session(self, session_id: UUID) -> bool:
        """Delete a session together with its drawing history.

        Args:
            session_id: The unique identifier of the session to delete.

        Returns:
            True if the session was deleted, False if it did not exist.
        """
        ...

    async def append_action(self, session_id: UUID, action: DrawingAction) -> DrawingAction:
        """Persist an action and bump the session's last-modified timestamp.

        Both writes happen in one logical operation.

        Args:
            session_id: The unique identifier of the owning session.
            action: The action to persist.

        Returns:
            The persisted action.

        Raises:
            SessionNotFoundError: If the session does not exist.
            StorageError: If the write fails.
        """
        ...

    async def get_actions(self, session_id: UUID) -> list[DrawingAction]:
        """List a session's drawing history.

        Args:
            session_id: The unique identifier of the session.

        Returns:
            Actions ordered by timestamp ascending, insertion order breaking ties.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        ...
