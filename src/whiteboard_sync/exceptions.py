"""Custom exceptions for whiteboard-sync."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID


class WhiteboardError(Exception):
    """Base exception class for all whiteboard-sync errors."""


class SessionNotFoundError(WhiteboardError):
    """Raised when a whiteboard session with the specified ID cannot be found.

    Attributes:
        session_id: The ID of the session that was not found.
    """

    def __init__(self, session_id: UUID | str) -> None:
        """Initialize the exception with the session ID.

        Args:
            session_id: The ID of the session that was not found.
        """
        self.session_id = session_id
        super().__init__(f"Session with ID {session_id} not found")


class InvalidActionError(WhiteboardError):
    """Raised when a drawing action payload is invalid or malformed."""

    def __init__(self, message: str) -> None:
        """Initialize the exception with a custom message.

        Args:
            message: Description of why the action is invalid.
        """
        super().__init__(message)


class StorageError(WhiteboardError):
    """Raised when a storage operation fails."""
