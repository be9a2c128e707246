"""Connection manager for whiteboard WebSocket sessions."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

import structlog

from whiteboard_sync.realtime.messages import UserJoinedMessage, UserLeftMessage
from whiteboard_sync.realtime.registry import ConnectionEntry, ConnectionRegistry, SessionGroupTable

if TYPE_CHECKING:
    from uuid import UUID

    from whiteboard_sync.realtime.registry import SupportsSend

logger = structlog.get_logger(__name__)

DEFAULT_SEND_TIMEOUT = 5.0


class ConnectionManager:
    """Tracks live connections and their session groups, and fans out messages.

    A connection belongs to at most one session at a time. Joining a new
    session first leaves the previous one, so the old group sees ``UserLeft``
    before the new group sees ``UserJoined``.

    Fan-out works on a snapshot of the group taken at send time. Each
    recipient is written to concurrently with its own timeout, so one slow or
    dead socket never delays delivery to the others.
    """

    def __init__(self, send_timeout: float = DEFAULT_SEND_TIMEOUT) -> None:
        """Initialize the connection manager.

        Args:
            send_timeout: Seconds allowed for a single outbound frame write.
        """
        self._registry = ConnectionRegistry()
        self._groups = SessionGroupTable()
        self._send_timeout = send_timeout

    @property
    def send_timeout(self) -> float:
        """Per-recipient write timeout in seconds."""
        return self._send_timeout

    async def on_connect(self, connection_id: str, websocket: SupportsSend) -> ConnectionEntry:
        """Register a newly accepted connection with no session membership.

        Args:
            connection_id: Identifier assigned to the connection.
            websocket: Transport used to deliver outbound frames.

        Returns:
            The registry entry for the connection.
        """
        entry = ConnectionEntry(connection_id=connection_id, websocket=websocket)
        await self._registry.add(entry)
        logger.info("Connection opened", connection_id=connection_id, total_connections=len(self._registry))
        return entry

    async def on_disconnect(self, connection_id: str, cause: BaseException | None = None) -> None:
        """Tear down a connection, notifying its session if it had one.

        Safe to call more than once for the same connection.

        Args:
            connection_id: The connection that went away.
            cause: The error that ended the connection, if any.
        """
        entry = await self._registry.remove(connection_id)
        if entry is None:
            return

        if entry.session_id is not None:
            removed = await self._groups.remove(entry.session_id, connection_id)
            if removed:
                await self.broadcast(entry.session_id, UserLeftMessage(user_id=entry.user_id or "").to_dict())

        logger.info(
            "Connection closed",
            connection_id=connection_id,
            session_id=str(entry.session_id) if entry.session_id else None,
            user_id=entry.user_id,
            cause=repr(cause) if cause else None,
            total_connections=len(self._registry),
        )

    async def join_session(self, connection_id: str, session_id: UUID, user_id: str) -> bool:
        """Add a connection to a session group and announce it to the whole group.

        Rejoining the session the connection is already in is a no-op apart
        from updating the announced user id.

        Args:
            connection_id: The joining connection.
            session_id: The session to join.
            user_id: The user id the client announces.

        Returns:
            True if the connection joined, False if it is not registered.
        """
        try:
            previous = await self._registry.swap_membership(connection_id, session_id, user_id)
        except KeyError:
            logger.warning("Join from unregistered connection", connection_id=connection_id)
            return False

        if previous is not None and previous.session_id != session_id:
            await self._leave_group(connection_id, previous.session_id, previous.user_id)

        added = await self._groups.add(session_id, connection_id)
        if not added:
            return True

        await self.broadcast(
            session_id,
            UserJoinedMessage(user_id=user_id, connection_id=connection_id).to_dict(),
        )
        logger.info(
            "User joined session",
            connection_id=connection_id,
            session_id=str(session_id),
            user_id=user_id,
        )
        return True

    async def leave_session(self, connection_id: str, session_id: UUID, user_id: str) -> bool:
        """Remove a connection from a session group and announce it to the rest.

        Leaving a session the connection is not in does nothing.

        Returns:
            True if the connection was a member and has now left.
        """
        await self._registry.clear_membership(connection_id, session_id)
        return await self._leave_group(connection_id, session_id, user_id)

    async def _leave_group(self, connection_id: str, session_id: UUID, user_id: str) -> bool:
        removed = await self._groups.remove(session_id, connection_id)
        if not removed:
            return False

        await self.broadcast(session_id, UserLeftMessage(user_id=user_id).to_dict())
        logger.info(
            "User left session",
            connection_id=connection_id,
            session_id=str(session_id),
            user_id=user_id,
        )
        return True

    async def broadcast(
        self,
        session_id: UUID,
        message: dict[str, Any],
        exclude_connection: str | None = None,
    ) -> int:
        """Send a message to every member of a session.

        Args:
            session_id: The session to broadcast to.
            message: The message to send.
            exclude_connection: Optional connection id to skip.

        Returns:
            Number of recipients the message was delivered to.
        """
        members = await self._groups.snapshot(session_id)
        if exclude_connection is not None:
            members = members - {exclude_connection}
        if not members:
            return 0

        recipients = await self._registry.get_many(members)
        json_message = json.dumps(message, allow_nan=False)

        results = await asyncio.gather(
            *(self._send(entry, json_message) for entry in recipients),
            return_exceptions=True,
        )
        return sum(1 for result in results if result is True)

    async def send_to_connection(self, connection_id: str, message: dict[str, Any]) -> bool:
        """Send a message to a single connection.

        Returns:
            True if sent successfully, False otherwise.
        """
        entry = await self._registry.get(connection_id)
        if entry is None:
            return False
        return await self._send(entry, json.dumps(message, allow_nan=False))

    async def _send(self, entry: ConnectionEntry, message: str) -> bool:
        try:
            await asyncio.wait_for(entry.websocket.send_text(message), timeout=self._send_timeout)
        except TimeoutError:
            logger.warning(
                "Send timed out",
                connection_id=entry.connection_id,
                session_id=str(entry.session_id) if entry.session_id else None,
                timeout=self._send_timeout,
            )
            return False
        except Exception:
            logger.exception(
                "Failed to send message",
                connection_id=entry.connection_id,
                session_id=str(entry.session_id) if entry.session_id else None,
            )
            return False
        return True

    async def get_connection(self, connection_id: str) -> ConnectionEntry | None:
        """Get a registered connection."""
        return await self._registry.get(connection_id)

    async def get_members(self, session_id: UUID) -> frozenset[str]:
        """Get the connection ids currently in a session."""
        return await self._groups.snapshot(session_id)

    @property
    def active_sessions(self) -> int:
        """Get the number of sessions with at least one member."""
        return self._groups.active_sessions

    @property
    def total_connections(self) -> int:
        """Get the total number of live connections."""
        return len(self._registry)

    def stats(self) -> dict[str, int]:
        """Snapshot of counters for health reporting."""
        return {
            "connections": self.total_connections,
            "active_sessions": self.active_sessions,
            "memberships": self._groups.total_memberships,
        }
