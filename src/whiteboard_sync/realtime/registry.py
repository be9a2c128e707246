"""In-memory connection registry and session group table.

Both structures are shared by every connection task. The registry is guarded
by a single lock because its critical sections are dictionary updates only;
the group table takes a lock per session so joins, leaves and fan-out
snapshots for unrelated sessions never contend.
"""

from __future__ import annotations

import asyncio
import weakref
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from uuid import UUID


class SupportsSend(Protocol):
    """Outbound half of a transport connection."""

    async def send_text(self, data: str) -> None: ...


@dataclass
class ConnectionEntry:
    """A live connection and its current session membership.

    Attributes:
        connection_id: Opaque identifier assigned at accept time.
        websocket: The transport used to deliver outbound frames.
        session_id: Session the connection is joined to, if any.
        user_id: User id announced on the last join, if any.
        connected_at: When the connection was accepted.
    """

    connection_id: str
    websocket: SupportsSend
    session_id: UUID | None = None
    user_id: str | None = None
    connected_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "connection_id": self.connection_id,
            "session_id": str(self.session_id) if self.session_id else None,
            "user_id": self.user_id,
            "connected_at": self.connected_at.isoformat(),
        }


@dataclass(frozen=True)
class Membership:
    """A connection's membership in one session."""

    session_id: UUID
    user_id: str


class ConnectionRegistry:
    """Maps live connection ids to their entry and zero-or-one session membership."""

    def __init__(self) -> None:
        self._entries: dict[str, ConnectionEntry] = {}
        self._lock = asyncio.Lock()

    async def add(self, entry: ConnectionEntry) -> None:
        """Register a connection, replacing any stale entry with the same id."""
        async with self._lock:
            self._entries[entry.connection_id] = entry

    async def remove(self, connection_id: str) -> ConnectionEntry | None:
        """Remove a connection and return its final entry, or None if absent."""
        async with self._lock:
            return self._entries.pop(connection_id, None)

    async def get(self, connection_id: str) -> ConnectionEntry | None:
        """Look up a single connection."""
        async with self._lock:
            return self._entries.get(connection_id)

    async def get_many(self, connection_ids: frozenset[str]) -> list[ConnectionEntry]:
        """Look up the still-registered subset of the given connections."""
        async with self._lock:
            return [self._entries[cid] for cid in connection_ids if cid in self._entries]

    async def swap_membership(self, connection_id: str, session_id: UUID, user_id: str) -> Membership | None:
        """Set a connection's membership, returning the one it replaced.

        Returns:
            The previous membership, or None if there was none.

        Raises:
            KeyError: If the connection is not registered.
        """
        async with self._lock:
            entry = self._entries[connection_id]
            previous = Membership(entry.session_id, entry.user_id or "") if entry.session_id else None
            entry.session_id = session_id
            entry.user_id = user_id
            return previous

    async def clear_membership(self, connection_id: str, session_id: UUID) -> bool:
        """Clear a connection's membership if it currently points at ``session_id``."""
        async with self._lock:
            entry = self._entries.get(connection_id)
            if entry is None or entry.session_id != session_id:
                return False
            entry.session_id = None
            return True

    def __len__(self) -> int:
        return len(self._entries)


class SessionGroupTable:
    """Maps session ids to the set of member connection ids.

    Each session has its own lock. Locks are held weakly so a session's lock
    disappears once its group is empty and no task is waiting on it.
    """

    def __init__(self) -> None:
        self._groups: dict[UUID, set[str]] = {}
        self._locks: weakref.WeakValueDictionary[UUID, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, session_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    async def add(self, session_id: UUID, connection_id: str) -> bool:
        """Add a member. Returns False if it was already a member."""
        async with self._lock_for(session_id):
            members = self._groups.setdefault(session_id, set())
            if connection_id in members:
                return False
            members.add(connection_id)
            return True

    async def remove(self, session_id: UUID, connection_id: str) -> bool:
        """Remove a member. Returns False if it was not a member."""
        async with self._lock_for(session_id):
            members = self._groups.get(session_id)
            if not members or connection_id not in members:
                return False
            members.discard(connection_id)
            if not members:
                del self._groups[session_id]
            return True

    async def snapshot(self, session_id: UUID) -> frozenset[str]:
        """Return an immutable copy of the session's current members."""
        async with self._lock_for(session_id):
            return frozenset(self._groups.get(session_id, ()))

    @property
    def active_sessions(self) -> int:
        """Number of sessions with at least one member."""
        return len(self._groups)

    @property
    def total_memberships(self) -> int:
        """Number of (session, connection) pairs."""
        return sum(len(members) for members in self._groups.values())
