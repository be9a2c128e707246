"""Pytest configuration and fixtures for whiteboard-sync tests."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from litestar import Litestar
from litestar.testing import TestClient

from whiteboard_sync.app import create_app
from whiteboard_sync.core.clock import ActionClock
from whiteboard_sync.core.models import Session
from whiteboard_sync.realtime.manager import ConnectionManager
from whiteboard_sync.realtime.relay import ActionRelay
from whiteboard_sync.storage.memory import InMemoryStorage


@pytest.fixture
def anyio_backend() -> str:
    """Use asyncio as the async backend."""
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests on in-memory storage with rate limiting off."""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")


# Storage fixtures


@pytest.fixture
def storage() -> InMemoryStorage:
    """Create a fresh InMemoryStorage instance for each test."""
    return InMemoryStorage()


@pytest.fixture
async def session(storage: InMemoryStorage) -> Session:
    """Create a stored session for testing."""
    return await storage.create_session(Session(name="Test Board"))


# Realtime fixtures


@pytest.fixture
def make_socket() -> Callable[[], MagicMock]:
    """Factory for fake WebSocket connections that record outbound frames."""

    def factory() -> MagicMock:
        ws = MagicMock()
        ws.send_text = AsyncMock()
        ws.send_json = AsyncMock()
        return ws

    return factory


@pytest.fixture
def sent_frames() -> Callable[[MagicMock], list[dict[str, Any]]]:
    """Decode every frame written to a fake socket via send_text."""

    def decode(ws: MagicMock) -> list[dict[str, Any]]:
        return [json.loads(call.args[0]) for call in ws.send_text.call_args_list]

    return decode


@pytest.fixture
def manager() -> ConnectionManager:
    """Create a connection manager with a short send timeout."""
    return ConnectionManager(send_timeout=0.5)


@pytest.fixture
def clock() -> ActionClock:
    """Create a fresh action clock."""
    return ActionClock()


@pytest.fixture
def relay(manager: ConnectionManager, storage: InMemoryStorage, clock: ActionClock) -> ActionRelay:
    """Create an action relay over the in-memory store."""
    return ActionRelay(manager, storage, clock=clock, persist_timeout=0.5)


# App and client fixtures


@pytest.fixture
def app(storage: InMemoryStorage) -> Litestar:
    """Create the application over the test storage."""
    return create_app(storage=storage)


@pytest.fixture
def client(app: Litestar) -> Iterator[TestClient[Litestar]]:
    """Create a test client for the app."""
    with TestClient(app=app) as client:
        yield client
