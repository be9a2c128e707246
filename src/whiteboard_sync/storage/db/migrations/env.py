"""Alembic environment for whiteboard-sync migrations (async engine)."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from advanced_alchemy.base import UUIDAuditBase
from alembic import context

from whiteboard_sync.storage.db import models  # noqa: F401
from whiteboard_sync.storage.db.setup import create_database_engine, get_database_url

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

target_metadata = UUIDAuditBase.metadata


def run_migrations_offline() -> None:
    """Emit migration SQL without a live database connection."""
    context.configure(
        url=get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    """Run migrations on a synchronous connection handle."""
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations against the configured database."""
    engine = create_database_engine()
    async with engine.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
