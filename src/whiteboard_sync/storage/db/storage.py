"""Database session store implementation for whiteboard-sync."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from whiteboard_sync.exceptions import SessionNotFoundError, StorageError
from whiteboard_sync.storage.db.models import (
    DrawingActionModel,
    WhiteboardSessionModel,
    action_from_model,
    action_to_model,
    session_from_model,
    session_to_model,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from whiteboard_sync.core.models import DrawingAction, Session


class DatabaseStorage:
    """Async database session store using SQLAlchemy.

    Every operation runs in its own short-lived database session drawn from
    the factory, so many connection tasks can persist concurrently through
    the engine's connection pool. It implements SessionStoreProtocol.

    Attributes:
        _session_factory: Factory producing SQLAlchemy async sessions.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize the store with a session factory.

        Args:
            session_factory: SQLAlchemy async session factory.
        """
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session, commit on success and translate driver errors.

        Yields:
            AsyncSession scoped to one unit of work.

        Raises:
            StorageError: If the database rejects the unit of work.
        """
        async with self._session_factory() as db_session:
            try:
                yield db_session
                await db_session.commit()
            except SQLAlchemyError as e:
                await db_session.rollback()
                msg = f"Database operation failed: {e}"
                raise StorageError(msg) from e
            except Exception:
                await db_session.rollback()
                raise

    async def create_session(self, session: Session) -> Session:
        """Create a new session row.

        Args:
            session: The session to create.

        Returns:
            The created session.
        """
        async with self._transaction() as db_session:
            model = session_to_model(session)
            db_session.add(model)
            await db_session.flush()
            await db_session.refresh(model)
            return session_from_model(model)

    async def get_session(self, session_id: UUID) -> Session | None:
        """Retrieve a session by its ID.

        Args:
            session_id: The unique identifier of the session.

        Returns:
            The session if found, None otherwise.
        """
        async with self._transaction() as db_session:
            stmt = select(WhiteboardSessionModel).where(WhiteboardSessionModel.id == session_id)
            result = await db_session.execute(stmt)
            model = result.scalar_one_or_none()
            return session_from_model(model) if model else None

    async def list_sessions(self) -> list[Session]:
        """List all sessions, most recently modified first."""
        async with self._transaction() as db_session:
            stmt = select(WhiteboardSessionModel).order_by(WhiteboardSessionModel.last_modified.desc())
            result = await db_session.execute(stmt)
            return [session_from_model(m) for m in result.scalars().all()]

    async def delete_session(self, session_id: UUID) -> bool:
        """Delete a session and its drawing history.

        Args:
            session_id: The unique identifier of the session to delete.

        Returns:
            True if the session was deleted, False if it did not exist.
        """
        async with self._transaction() as db_session:
            stmt = select(WhiteboardSessionModel).where(WhiteboardSessionModel.id == session_id)
            result = await db_session.execute(stmt)
            model = result.scalar_one_or_none()
            if model is None:
                return False

            await db_session.execute(delete(DrawingActionModel).where(DrawingActionModel.session_id == session_id))
            await db_session.delete(model)
            return True

    async def append_action(self, session_id: UUID, action: DrawingAction) -> DrawingAction:
        """Insert an action and bump the session's last_modified in one transaction.

        Args:
            session_id: The unique identifier of the owning session.
            action: The action to persist.

        Returns:
            The persisted action.

        Raises:
            SessionNotFoundError: If the session does not exist.
            StorageError: If the write fails.
        """
        async with self._transaction() as db_session:
            stmt = select(WhiteboardSessionModel).where(WhiteboardSessionModel.id == session_id).with_for_update()
            result = await db_session.execute(stmt)
            session_model = result.scalar_one_or_none()
            if session_model is None:
                raise SessionNotFoundError(session_id)

            db_session.add(action_to_model(action))
            session_model.last_modified = max(session_model.last_modified, action.timestamp)
            return action

    async def get_actions(self, session_id: UUID) -> list[DrawingAction]:
        """List a session's history ordered by timestamp.

        Args:
            session_id: The unique identifier of the session.

        Returns:
            Actions ordered by timestamp ascending, row creation time breaking ties.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        async with self._transaction() as db_session:
            exists = await db_session.execute(
                select(WhiteboardSessionModel.id).where(WhiteboardSessionModel.id == session_id)
            )
            if exists.scalar_one_or_none() is None:
                raise SessionNotFoundError(session_id)

            stmt = (
                select(DrawingActionModel)
                .where(DrawingActionModel.session_id == session_id)
                .order_by(DrawingActionModel.timestamp, DrawingActionModel.created_at)
            )
            result = await db_session.execute(stmt)
            return [action_from_model(m) for m in result.scalars().all()]
