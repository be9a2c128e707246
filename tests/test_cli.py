"""Tests for the database query CLI commands."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from pathlib import Path
from uuid import uuid4

import pytest
from click.testing import CliRunner
from rich.console import Console

pytest.importorskip("aiosqlite")

from whiteboard_sync.cli.database import query_group  # noqa: E402
from whiteboard_sync.core.models import DrawingAction, Session  # noqa: E402
from whiteboard_sync.core.types import ActionType  # noqa: E402
from whiteboard_sync.storage.db.setup import create_database_engine, create_session_factory, create_tables  # noqa: E402
from whiteboard_sync.storage.db.storage import DatabaseStorage  # noqa: E402

pytestmark = pytest.mark.db

BASE = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture
def seeded_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Session:
    """Create a file-backed SQLite database with one session and two actions."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setattr("whiteboard_sync.cli.database.console", Console(width=200))
    session = Session(name="CLI Board", created_at=BASE, last_modified=BASE)

    async def seed() -> None:
        engine = create_database_engine(url)
        try:
            await create_tables(engine)
            storage = DatabaseStorage(create_session_factory(engine))
            await storage.create_session(session)
            await storage.append_action(
                session.id,
                DrawingAction(
                    session_id=session.id,
                    user_id="alice",
                    action_type=ActionType.DRAW,
                    end_x=10,
                    end_y=10,
                    color="#ff0000",
                    timestamp=BASE + timedelta(seconds=1),
                ),
            )
            await storage.append_action(
                session.id, DrawingAction.clear(session.id, "bob", timestamp=BASE + timedelta(seconds=2))
            )
        finally:
            await engine.dispose()

    asyncio.run(seed())
    return session


class TestQueryCommands:
    """Tests for the `query` command group."""

    def test_sessions(self, seeded_db: Session) -> None:
        """Test listing sessions with action counts."""
        result = CliRunner().invoke(query_group, ["sessions"])

        assert result.exit_code == 0, result.output
        assert "CLI Board" in result.output
        assert "2" in result.output

    def test_sessions_search_no_match(self, seeded_db: Session) -> None:
        """Test filtering sessions by name."""
        result = CliRunner().invoke(query_group, ["sessions", "--search", "nothing-like-this"])

        assert result.exit_code == 0, result.output
        assert "CLI Board" not in result.output

    def test_actions(self, seeded_db: Session) -> None:
        """Test showing a session's history in replay order."""
        result = CliRunner().invoke(query_group, ["actions", str(seeded_db.id)])

        assert result.exit_code == 0, result.output
        assert "alice" in result.output
        assert result.output.index("alice") < result.output.index("bob")
        assert "clear" in result.output

    def test_actions_unknown_session(self, seeded_db: Session) -> None:
        """Test asking for a session that does not exist."""
        result = CliRunner().invoke(query_group, ["actions", str(uuid4())])

        assert result.exit_code == 0
        assert "not found" in result.output

    def test_actions_invalid_id(self, seeded_db: Session) -> None:
        """Test passing something that is not a UUID."""
        result = CliRunner().invoke(query_group, ["actions", "not-a-uuid"])

        assert result.exit_code == 0
        assert "not a valid session id" in result.output

    def test_tables(self, seeded_db: Session) -> None:
        """Test listing tables with row counts."""
        result = CliRunner().invoke(query_group, ["tables"])

        assert result.exit_code == 0, result.output
        assert "whiteboard_sessions" in result.output
        assert "drawing_actions" in result.output
