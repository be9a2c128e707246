"""Main Litestar application for whiteboard-sync.

This module provides the application factory and the configured app instance
for running whiteboard-sync as a standalone service.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from advanced_alchemy.extensions.litestar import AlembicAsyncConfig, SQLAlchemyPlugin
from advanced_alchemy.extensions.litestar.plugins.init.config.asyncio import SQLAlchemyAsyncConfig
from litestar import Litestar

from whiteboard_sync import __version__
from whiteboard_sync.cli import WhiteboardCLIPlugin
from whiteboard_sync.core.error_handling import get_exception_handlers
from whiteboard_sync.core.logging import configure_logging, get_middleware
from whiteboard_sync.core.openapi import get_openapi_config
from whiteboard_sync.core.rate_limit import get_rate_limit_config
from whiteboard_sync.plugin import WhiteboardConfig, WhiteboardPlugin
from whiteboard_sync.web.health import HealthController

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from litestar.types import Middleware

    from whiteboard_sync.storage.base import SessionStoreProtocol
    from whiteboard_sync.storage.db.setup import DatabaseManager

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "storage" / "db" / "migrations"


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("true", "1", "yes")


def _database_lifespan(
    db_manager: DatabaseManager,
) -> Callable[[Litestar], AsyncGenerator[None, None]]:
    """Build a lifespan that creates the schema on startup and closes the pool on shutdown."""

    @asynccontextmanager
    async def lifespan(app: Litestar) -> AsyncGenerator[None, None]:
        await db_manager.init()
        app.state.db_manager = db_manager
        logger.info("Database initialized", url=db_manager.engine.url.render_as_string(hide_password=True))
        try:
            yield
        finally:
            await db_manager.close()
            logger.info("Database connections closed")

    return lifespan


def create_app(
    *,
    storage: SessionStoreProtocol | None = None,
    database_url: str | None = None,
    enable_api: bool = True,
    enable_websocket: bool = True,
    debug: bool = False,
    json_logs: bool = False,
    send_timeout: float | None = None,
    persist_timeout: float | None = None,
) -> Litestar:
    """Create and configure the Litestar application.

    The session store is chosen in this order: an explicit ``storage``, a
    database at ``database_url`` (or the ``DATABASE_URL`` environment
    variable), and finally an in-memory store.

    Args:
        storage: Session store to use instead of building one.
        database_url: Database URL for a SQLAlchemy-backed store.
        enable_api: Whether to enable the REST API routes.
        enable_websocket: Whether to enable the WebSocket route.
        debug: Whether to enable debug mode.
        json_logs: Whether to output logs as JSON (for production).
        send_timeout: Override for the per-recipient WebSocket send timeout.
        persist_timeout: Override for the relay's store write timeout.

    Returns:
        Configured Litestar application instance.
    """
    configure_logging(debug=debug, json_logs=json_logs)

    plugins: list = [WhiteboardCLIPlugin()]
    lifespan: list = []

    if storage is None and (database_url or os.environ.get("DATABASE_URL")):
        from whiteboard_sync.storage.db.setup import DatabaseManager, get_database_url, to_async_url
        from whiteboard_sync.storage.db.storage import DatabaseStorage

        url = to_async_url(database_url) if database_url else get_database_url()
        db_manager = DatabaseManager(url)
        db_manager.open()
        storage = DatabaseStorage(db_manager.session_factory)
        lifespan.append(_database_lifespan(db_manager))

        # Enables `litestar database ...` migration commands
        plugins.append(
            SQLAlchemyPlugin(
                config=SQLAlchemyAsyncConfig(
                    connection_string=url,
                    alembic_config=AlembicAsyncConfig(
                        script_location=str(MIGRATIONS_DIR),
                        version_table_name="alembic_version",
                    ),
                )
            )
        )
        logger.debug("Using database storage")
    elif storage is None:
        logger.debug("Using in-memory storage")

    whiteboard_config = WhiteboardConfig(
        storage=storage,
        enable_api=enable_api,
        enable_websocket=enable_websocket,
        api_path="/api",
        ws_path="/ws",
        dependency_key="service",
    )
    if send_timeout is not None:
        whiteboard_config.send_timeout = send_timeout
    if persist_timeout is not None:
        whiteboard_config.persist_timeout = persist_timeout
    plugins.append(WhiteboardPlugin(whiteboard_config))

    middleware: list[Middleware] = list(get_middleware())
    rate_limit_config = get_rate_limit_config()
    if rate_limit_config:
        middleware.append(rate_limit_config.middleware)

    return Litestar(
        route_handlers=[HealthController],
        plugins=plugins,
        debug=debug,
        lifespan=lifespan,
        middleware=middleware,
        exception_handlers=get_exception_handlers(),
        openapi_config=get_openapi_config(__version__),
    )


# Default application instance for uvicorn
# Use WHITEBOARD_DEBUG=true for dev mode, WHITEBOARD_JSON_LOGS=true for JSON output
app = create_app(debug=_env_flag("WHITEBOARD_DEBUG"), json_logs=_env_flag("WHITEBOARD_JSON_LOGS"))
