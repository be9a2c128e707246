"""Tests for the persist-then-relay pipeline."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from whiteboard_sync.core.models import Session
from whiteboard_sync.core.types import ActionType
from whiteboard_sync.exceptions import InvalidActionError, StorageError
from whiteboard_sync.realtime.manager import ConnectionManager
from whiteboard_sync.realtime.relay import ActionRelay
from whiteboard_sync.services.session import SessionService
from whiteboard_sync.storage.memory import InMemoryStorage

Frames = Callable[[MagicMock], list[dict[str, Any]]]


def of_type(frames: list[dict[str, Any]], message_type: str) -> list[dict[str, Any]]:
    """Filter decoded frames by type."""
    return [f for f in frames if f["type"] == message_type]


@pytest.fixture
async def members(
    manager: ConnectionManager, session: Session, make_socket: Callable[[], MagicMock]
) -> dict[str, MagicMock]:
    """Three connections joined to the test session, plus one outsider."""
    sockets = {name: make_socket() for name in ("alice", "bob", "carol", "outsider")}
    for name, ws in sockets.items():
        await manager.on_connect(name, ws)
    for name in ("alice", "bob", "carol"):
        await manager.join_session(name, session.id, name)
    await manager.join_session("outsider", uuid4(), "outsider")
    for ws in sockets.values():
        ws.send_text.reset_mock()
    return sockets


class TestSubmitDrawingAction:
    """Tests for ActionRelay.submit_drawing_action."""

    async def test_fans_out_to_others_exactly_once(
        self, relay: ActionRelay, session: Session, members: dict[str, MagicMock], sent_frames: Frames
    ) -> None:
        """Test that every other member gets one frame and the sender none."""
        action = await relay.submit_drawing_action("alice", session.id, "alice", "draw", 0, 0, 10, 10, "#ff0000", 3)

        assert action is not None
        assert sent_frames(members["alice"]) == []
        assert sent_frames(members["outsider"]) == []
        for name in ("bob", "carol"):
            frames = sent_frames(members[name])
            assert len(frames) == 1
            assert frames[0] == {
                "type": "ReceiveDrawingAction",
                "sessionId": str(session.id),
                "userId": "alice",
                "actionType": "draw",
                "startX": 0.0,
                "startY": 0.0,
                "endX": 10.0,
                "endY": 10.0,
                "color": "#ff0000",
                "lineWidth": 3.0,
            }

    async def test_persists_before_relay(
        self, relay: ActionRelay, storage: InMemoryStorage, session: Session, members: dict[str, MagicMock]
    ) -> None:
        """Test that a relayed action is already in the history."""
        seen: list[int] = []

        async def record(_: str) -> None:
            seen.append(len(await storage.get_actions(session.id)))

        members["bob"].send_text = AsyncMock(side_effect=record)

        await relay.submit_drawing_action("alice", session.id, "alice", ActionType.ERASE, 1, 2, 3, 4)

        assert seen == [1]

    async def test_updates_last_modified(
        self, relay: ActionRelay, storage: InMemoryStorage, session: Session
    ) -> None:
        """Test that accepting an action bumps the session's last_modified."""
        action = await relay.submit_drawing_action("alice", session.id, "alice", "draw", 0, 0, 1, 1)

        stored = await storage.get_session(session.id)
        assert action is not None
        assert stored is not None
        assert stored.last_modified == action.timestamp

    async def test_non_member_sender_still_relayed(
        self, relay: ActionRelay, session: Session, members: dict[str, MagicMock], sent_frames: Frames
    ) -> None:
        """Test that membership is not required to submit."""
        action = await relay.submit_drawing_action("outsider", session.id, "outsider", "draw", 0, 0, 1, 1)

        assert action is not None
        assert len(sent_frames(members["alice"])) == 1
        assert sent_frames(members["outsider"]) == []

    async def test_unknown_session_is_dropped(
        self, relay: ActionRelay, storage: InMemoryStorage, members: dict[str, MagicMock], sent_frames: Frames
    ) -> None:
        """Test that an unknown session yields no record and no broadcast."""
        ghost = uuid4()

        result = await relay.submit_drawing_action("alice", ghost, "alice", "draw", 0, 0, 1, 1)

        assert result is None
        assert all(sent_frames(ws) == [] for ws in members.values())
        assert await storage.get_session(ghost) is None

    async def test_storage_failure_is_not_broadcast(
        self, manager: ConnectionManager, session: Session, members: dict[str, MagicMock], sent_frames: Frames
    ) -> None:
        """Test that a failed write is never relayed."""
        store = AsyncMock()
        store.append_action.side_effect = StorageError("disk full")
        relay = ActionRelay(manager, store)

        result = await relay.submit_drawing_action("alice", session.id, "alice", "draw", 0, 0, 1, 1)

        assert result is None
        assert all(sent_frames(ws) == [] for ws in members.values())

    async def test_storage_timeout_is_not_broadcast(
        self, manager: ConnectionManager, session: Session, members: dict[str, MagicMock], sent_frames: Frames
    ) -> None:
        """Test that a stalled write is abandoned after the persist timeout."""

        async def stall(*_: Any) -> None:
            await asyncio.sleep(10)

        store = AsyncMock()
        store.append_action.side_effect = stall
        relay = ActionRelay(manager, store, persist_timeout=0.05)

        result = await asyncio.wait_for(
            relay.submit_drawing_action("alice", session.id, "alice", "draw", 0, 0, 1, 1),
            timeout=2,
        )

        assert result is None
        assert all(sent_frames(ws) == [] for ws in members.values())

    async def test_invalid_fields_raise(self, relay: ActionRelay, session: Session) -> None:
        """Test that validation errors surface to the caller."""
        with pytest.raises(InvalidActionError):
            await relay.submit_drawing_action("alice", session.id, "alice", "smudge", 0, 0, 1, 1)
        with pytest.raises(InvalidActionError):
            await relay.submit_drawing_action("alice", session.id, "alice", "draw", 0, 0, 1, 1, color="red")

    async def test_non_finite_numbers_are_not_stored_or_relayed(
        self,
        relay: ActionRelay,
        storage: InMemoryStorage,
        session: Session,
        members: dict[str, MagicMock],
        sent_frames: Frames,
    ) -> None:
        """Test that NaN and infinite values never reach history or peers."""
        nan, inf = float("nan"), float("inf")

        with pytest.raises(InvalidActionError):
            await relay.submit_drawing_action("alice", session.id, "alice", "draw", nan, 0, inf, 0, "#000000", nan)

        assert await storage.get_actions(session.id) == []
        assert all(sent_frames(ws) == [] for ws in members.values())

    async def test_clear_action_type_routes_to_clear_board(
        self, relay: ActionRelay, session: Session, members: dict[str, MagicMock], sent_frames: Frames
    ) -> None:
        """Test that actionType clear behaves like ClearBoard."""
        action = await relay.submit_drawing_action("alice", session.id, "alice", "clear", 5, 5, 9, 9, "#ffffff", 4)

        assert action is not None
        assert action.line_width == 0.0
        assert action.start_x == 0.0
        assert sent_frames(members["alice"]) == [{"type": "ClearBoard", "userId": "alice"}]


class TestClearBoard:
    """Tests for ActionRelay.clear_board."""

    async def test_reaches_all_members_including_sender(
        self, relay: ActionRelay, session: Session, members: dict[str, MagicMock], sent_frames: Frames
    ) -> None:
        """Test that clear is delivered to every member."""
        await relay.clear_board("bob", session.id, "bob")

        for name in ("alice", "bob", "carol"):
            assert sent_frames(members[name]) == [{"type": "ClearBoard", "userId": "bob"}]
        assert sent_frames(members["outsider"]) == []

    async def test_persists_marker_and_keeps_history(
        self, relay: ActionRelay, storage: InMemoryStorage, session: Session
    ) -> None:
        """Test that clear is appended to, not a truncation of, history."""
        await relay.submit_drawing_action("alice", session.id, "alice", "draw", 0, 0, 1, 1)
        await relay.clear_board("bob", session.id, "bob")

        history = await storage.get_actions(session.id)

        assert [a.action_type for a in history] == [ActionType.DRAW, ActionType.CLEAR]
        assert history[1].color == "#000000"
        assert history[1].line_width == 0.0

    async def test_unknown_session_is_dropped(
        self, relay: ActionRelay, storage: InMemoryStorage, members: dict[str, MagicMock], sent_frames: Frames
    ) -> None:
        """Test that clearing a missing session records and broadcasts nothing."""
        ghost = uuid4()

        result = await relay.clear_board("alice", ghost, "alice")

        assert result is None
        assert all(sent_frames(ws) == [] for ws in members.values())
        assert await storage.get_session(ghost) is None


class TestOrdering:
    """Tests for history ordering and per-sender FIFO."""

    async def test_history_is_non_decreasing(
        self, relay: ActionRelay, storage: InMemoryStorage, session: Session
    ) -> None:
        """Test that concurrent submissions produce an ordered history."""
        await asyncio.gather(
            *(
                relay.submit_drawing_action(f"c{i % 4}", session.id, f"u{i % 4}", "draw", i, i, i, i)
                for i in range(40)
            )
        )

        history = await storage.get_actions(session.id)

        assert len(history) == 40
        stamps = [a.timestamp for a in history]
        assert stamps == sorted(stamps)

    async def test_sender_order_is_preserved_for_peers(
        self, relay: ActionRelay, session: Session, members: dict[str, MagicMock], sent_frames: Frames
    ) -> None:
        """Test that sequential submissions arrive at peers in submission order."""
        for i in range(10):
            await relay.submit_drawing_action("alice", session.id, "alice", "draw", i, 0, i + 1, 0)

        received = [f["startX"] for f in sent_frames(members["bob"])]
        assert received == [float(i) for i in range(10)]

    async def test_shared_clock_orders_rest_and_realtime(
        self, manager: ConnectionManager, storage: InMemoryStorage, session: Session, clock: Any
    ) -> None:
        """Test that actions saved over HTTP and over the relay share one ordering."""
        relay = ActionRelay(manager, storage, clock=clock)
        service = SessionService(storage, clock=clock)

        first = await relay.submit_drawing_action("c1", session.id, "alice", "draw", 0, 0, 1, 1)
        second = await service.save_action(session.id, "bob", "draw", 1, 1, 2, 2)

        assert first is not None
        assert first.timestamp < second.timestamp


class TestScenario:
    """End-to-end walk-through of a two-person session."""

    async def test_demo_session(
        self,
        manager: ConnectionManager,
        relay: ActionRelay,
        storage: InMemoryStorage,
        make_socket: Callable[[], MagicMock],
        sent_frames: Frames,
    ) -> None:
        """Test create, join, draw, clear and disconnect."""
        service = SessionService(storage, clock=relay.clock)
        demo = await service.create_session("demo")
        ws_a, ws_b = make_socket(), make_socket()
        await manager.on_connect("A", ws_a)
        await manager.on_connect("B", ws_b)
        await manager.join_session("A", demo.id, "userA")
        await manager.join_session("B", demo.id, "userB")
        ws_a.send_text.reset_mock()
        ws_b.send_text.reset_mock()

        await relay.submit_drawing_action("A", demo.id, "userA", "draw", 0, 0, 10, 10, "#ff0000", 3)

        draws = of_type(sent_frames(ws_b), "ReceiveDrawingAction")
        assert len(draws) == 1
        assert draws[0]["actionType"] == "draw"
        assert (draws[0]["startX"], draws[0]["startY"], draws[0]["endX"], draws[0]["endY"]) == (0, 0, 10, 10)
        assert draws[0]["color"] == "#ff0000"
        assert draws[0]["lineWidth"] == 3
        assert of_type(sent_frames(ws_a), "ReceiveDrawingAction") == []

        await relay.clear_board("B", demo.id, "userB")

        assert of_type(sent_frames(ws_a), "ClearBoard") == [{"type": "ClearBoard", "userId": "userB"}]
        assert of_type(sent_frames(ws_b), "ClearBoard") == [{"type": "ClearBoard", "userId": "userB"}]

        await manager.on_disconnect("A")

        assert of_type(sent_frames(ws_b), "UserLeft") == [{"type": "UserLeft", "userId": "userA"}]
        ws_a.send_text.reset_mock()
        await relay.submit_drawing_action("B", demo.id, "userB", "draw", 1, 1, 2, 2)
        ws_a.send_text.assert_not_called()

        loaded = await service.load_session(demo.id)
        assert [a.action_type for a in loaded.actions] == [ActionType.DRAW, ActionType.CLEAR, ActionType.DRAW]
