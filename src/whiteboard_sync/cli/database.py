"""Custom database CLI commands for whiteboard-sync.

Adds query helpers for inspecting sessions and their drawing history.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any
from uuid import UUID

import rich_click as click
from litestar.plugins import CLIPluginProtocol
from rich.console import Console
from rich.table import Table
from sqlalchemy import func, inspect, select, text

from whiteboard_sync.storage.db.models import DrawingActionModel, WhiteboardSessionModel
from whiteboard_sync.storage.db.setup import create_database_engine, create_session_factory

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

console = Console()


def run_with_session(fn: Callable[[AsyncSession], Awaitable[Any]]) -> Any:
    """Run an async query against the configured database and dispose the engine."""

    async def _run() -> Any:
        engine = create_database_engine()
        try:
            async with create_session_factory(engine)() as session:
                return await fn(session)
        finally:
            await engine.dispose()

    return asyncio.run(_run())


@click.group(name="query", help="Query whiteboard tables for debugging and inspection.")
def query_group() -> None:
    """Query whiteboard tables for debugging and inspection."""


@query_group.command(name="sessions", help="List whiteboard sessions, most recently modified first.")
@click.option("--limit", "-l", default=20, help="Number of sessions to show")
@click.option("--search", "-s", default=None, help="Filter by session name")
def query_sessions(limit: int, search: str | None) -> None:
    """List whiteboard sessions with their action counts."""

    async def fetch(session: AsyncSession) -> list[Any]:
        action_count = (
            select(func.count(DrawingActionModel.id))
            .where(DrawingActionModel.session_id == WhiteboardSessionModel.id)
            .correlate(WhiteboardSessionModel)
            .scalar_subquery()
        )
        stmt = (
            select(WhiteboardSessionModel, action_count.label("actions"))
            .order_by(WhiteboardSessionModel.last_modified.desc())
            .limit(limit)
        )
        if search:
            stmt = stmt.where(WhiteboardSessionModel.name.ilike(f"%{search}%"))
        result = await session.execute(stmt)
        return list(result.all())

    rows = run_with_session(fetch)

    table = Table(title=f"Sessions (showing {len(rows)})")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Actions", style="green", justify="right")
    table.add_column("Created", style="yellow")
    table.add_column("Last Modified", style="magenta")

    for model, actions in rows:
        table.add_row(
            str(model.id),
            model.name,
            str(actions),
            model.created_at.strftime("%Y-%m-%d %H:%M") if model.created_at else "-",
            model.last_modified.strftime("%Y-%m-%d %H:%M:%S") if model.last_modified else "-",
        )

    console.print(table)


@query_group.command(name="actions", help="Show a session's drawing history in replay order.")
@click.argument("session_id")
@click.option("--limit", "-l", default=50, help="Number of actions to show")
def query_actions(session_id: str, limit: int) -> None:
    """Show a session's drawing history in replay order."""
    try:
        sid = UUID(session_id)
    except ValueError:
        console.print(f"[red]Error: {session_id!r} is not a valid session id[/red]")
        return

    async def fetch(session: AsyncSession) -> tuple[Any, list[Any]]:
        model = await session.get(WhiteboardSessionModel, sid)
        stmt = (
            select(DrawingActionModel)
            .where(DrawingActionModel.session_id == sid)
            .order_by(DrawingActionModel.timestamp, DrawingActionModel.created_at)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return model, list(result.scalars().all())

    model, actions = run_with_session(fetch)
    if model is None:
        console.print(f"[red]Error: session {session_id} not found[/red]")
        return

    table = Table(title=f"{model.name} ({len(actions)} actions)")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Timestamp", style="magenta")
    table.add_column("User", style="cyan")
    table.add_column("Type", style="yellow")
    table.add_column("From", justify="right")
    table.add_column("To", justify="right")
    table.add_column("Color", style="green")
    table.add_column("Width", justify="right")

    for i, action in enumerate(actions, 1):
        action_type = action.action_type
        if action_type == "clear":
            action_type = f"[bold red]{action_type}[/bold red]"
        table.add_row(
            str(i),
            action.timestamp.strftime("%H:%M:%S.%f"),
            action.user_id,
            action_type,
            f"({action.start_x:g}, {action.start_y:g})",
            f"({action.end_x:g}, {action.end_y:g})",
            action.color,
            f"{action.line_width:g}",
        )

    console.print(table)


@query_group.command(name="tables", help="List all database tables and row counts.")
def query_tables() -> None:
    """List all database tables and row counts."""

    async def fetch(session: AsyncSession) -> list[tuple[str, str]]:
        conn = await session.connection()
        names = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        counts = []
        for name in sorted(names):
            try:
                result = await session.execute(text(f'SELECT COUNT(*) FROM "{name}"'))  # noqa: S608
                counts.append((name, str(result.scalar())))
            except Exception:  # noqa: BLE001
                counts.append((name, "?"))
        return counts

    table = Table(title="Database Tables")
    table.add_column("Table", style="cyan")
    table.add_column("Rows", style="green", justify="right")

    for name, count in run_with_session(fetch):
        table.add_row(name, count)

    console.print(table)


class WhiteboardCLIPlugin(CLIPluginProtocol):
    """CLI plugin that adds database query commands.

    Adds the `query` command group with subcommands:
    - sessions: List whiteboard sessions
    - actions: Show one session's drawing history
    - tables: List all database tables and row counts
    """

    def on_cli_init(self, cli: click.Group) -> None:
        """Register the query command group."""
        cli.add_command(query_group)
