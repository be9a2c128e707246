"""Tests for core domain models."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from whiteboard_sync.core.clock import ActionClock
from whiteboard_sync.core.models import DEFAULT_COLOR, DEFAULT_LINE_WIDTH, DrawingAction, Session, is_valid_color
from whiteboard_sync.core.types import ActionType
from whiteboard_sync.exceptions import InvalidActionError, SessionNotFoundError


class TestActionType:
    """Tests for the ActionType enum."""

    def test_values(self) -> None:
        """Test that action types use their wire names."""
        assert ActionType.DRAW.value == "draw"
        assert ActionType.ERASE.value == "erase"
        assert ActionType.CLEAR.value == "clear"

    def test_lookup_by_value(self) -> None:
        """Test constructing from a wire string."""
        assert ActionType("erase") is ActionType.ERASE
        with pytest.raises(ValueError):
            ActionType("smudge")


class TestDrawingAction:
    """Tests for the DrawingAction model."""

    def test_defaults(self) -> None:
        """Test default styling and generated identity."""
        action = DrawingAction(session_id=uuid4(), user_id="alice", action_type=ActionType.DRAW)

        assert action.color == DEFAULT_COLOR
        assert action.line_width == DEFAULT_LINE_WIDTH
        assert action.start_x == 0.0
        assert action.timestamp.tzinfo is not None
        assert action.id is not None

    def test_is_immutable(self) -> None:
        """Test that accepted actions cannot be modified."""
        action = DrawingAction(session_id=uuid4(), user_id="alice", action_type=ActionType.DRAW)
        with pytest.raises(AttributeError):
            action.color = "#ffffff"  # type: ignore[misc]

    @pytest.mark.parametrize("color", ["red", "#fff", "#12345g", "000000", "#0000000"])
    def test_rejects_bad_color(self, color: str) -> None:
        """Test that colors must be #RRGGBB."""
        with pytest.raises(InvalidActionError, match="Invalid color"):
            DrawingAction(session_id=uuid4(), user_id="alice", action_type=ActionType.DRAW, color=color)

    def test_accepts_mixed_case_color(self) -> None:
        """Test that hex digits are case-insensitive."""
        action = DrawingAction(session_id=uuid4(), user_id="alice", action_type=ActionType.DRAW, color="#FfA0b1")
        assert action.color == "#FfA0b1"

    @pytest.mark.parametrize("width", [0.0, -1.0])
    def test_rejects_non_positive_width_for_strokes(self, width: float) -> None:
        """Test that draw and erase need a positive width."""
        with pytest.raises(InvalidActionError, match="positive"):
            DrawingAction(session_id=uuid4(), user_id="alice", action_type=ActionType.ERASE, line_width=width)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    @pytest.mark.parametrize("name", ["start_x", "start_y", "end_x", "end_y", "line_width"])
    def test_rejects_non_finite_numbers(self, name: str, value: float) -> None:
        """Test that geometry and width must be finite."""
        with pytest.raises(InvalidActionError, match="finite"):
            DrawingAction(session_id=uuid4(), user_id="alice", action_type=ActionType.DRAW, **{name: value})

    def test_clear_rejects_nan_width(self) -> None:
        """Test that a NaN width is not mistaken for a valid clear width."""
        with pytest.raises(InvalidActionError):
            DrawingAction(session_id=uuid4(), user_id="alice", action_type=ActionType.CLEAR, line_width=float("nan"))

    def test_rejects_blank_user(self) -> None:
        """Test that an action needs an author."""
        with pytest.raises(InvalidActionError):
            DrawingAction(session_id=uuid4(), user_id="", action_type=ActionType.DRAW)

    def test_rejects_long_user(self) -> None:
        """Test the user id length limit."""
        with pytest.raises(InvalidActionError):
            DrawingAction(session_id=uuid4(), user_id="u" * 51, action_type=ActionType.DRAW)

    def test_clear_factory(self) -> None:
        """Test that clear actions carry zeroed geometry."""
        session_id = uuid4()
        action = DrawingAction.clear(session_id, "alice")

        assert action.action_type == ActionType.CLEAR
        assert action.session_id == session_id
        assert (action.start_x, action.start_y, action.end_x, action.end_y) == (0.0, 0.0, 0.0, 0.0)
        assert action.color == "#000000"
        assert action.line_width == 0.0

    def test_clear_rejects_negative_width(self) -> None:
        """Test that a clear may have zero width but not negative."""
        with pytest.raises(InvalidActionError):
            DrawingAction(session_id=uuid4(), user_id="alice", action_type=ActionType.CLEAR, line_width=-1.0)


class TestSession:
    """Tests for the Session model."""

    def test_defaults(self) -> None:
        """Test a new session is empty."""
        session = Session(name="Board")
        assert session.actions == []
        assert session.last_modified >= session.created_at

    def test_last_modified_never_precedes_created(self) -> None:
        """Test that last_modified is clamped to created_at."""
        created = datetime.now(UTC)
        session = Session(name="Board", created_at=created, last_modified=created - timedelta(hours=1))
        assert session.last_modified == created


class TestActionClock:
    """Tests for the strictly increasing action clock."""

    def test_strictly_increasing(self) -> None:
        """Test that consecutive timestamps never tie."""
        clock = ActionClock()
        stamps = [clock.now() for _ in range(1000)]
        assert all(a < b for a, b in zip(stamps, stamps[1:], strict=False))

    def test_timestamps_are_utc(self) -> None:
        """Test that timestamps are timezone-aware UTC."""
        assert ActionClock().now().tzinfo == UTC


class TestHelpers:
    """Tests for module-level helpers and exceptions."""

    def test_is_valid_color(self) -> None:
        """Test color validation."""
        assert is_valid_color("#000000")
        assert not is_valid_color("#00000")

    def test_session_not_found_carries_id(self) -> None:
        """Test that the missing session id is kept on the error."""
        session_id = uuid4()
        exc = SessionNotFoundError(session_id)
        assert exc.session_id == session_id
        assert str(session_id) in str(exc)
