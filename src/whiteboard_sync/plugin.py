"""Litestar plugin for whiteboard-sync integration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from litestar.di import Provide
from litestar.plugins import InitPluginProtocol

from whiteboard_sync.core.clock import ActionClock
from whiteboard_sync.realtime.manager import DEFAULT_SEND_TIMEOUT, ConnectionManager
from whiteboard_sync.realtime.relay import DEFAULT_PERSIST_TIMEOUT, ActionRelay
from whiteboard_sync.services.session import SessionService
from whiteboard_sync.storage.memory import InMemoryStorage
from whiteboard_sync.web.router import create_router

if TYPE_CHECKING:
    from litestar.config.app import AppConfig

    from whiteboard_sync.storage.base import SessionStoreProtocol


@dataclass
class WhiteboardConfig:
    """Configuration for the Whiteboard plugin.

    Attributes:
        storage: Session store to persist to. If None, InMemoryStorage is used.
        enable_api: Whether to mount the REST API routes. Defaults to True.
        enable_websocket: Whether to mount the WebSocket route. Defaults to True.
        api_path: Base path for mounting API routes. Defaults to "/api".
        ws_path: Base path for WebSocket routes. Defaults to "/ws".
        dependency_key: Dependency injection key for SessionService.
            Defaults to "service".
        connection_manager: Optional pre-configured ConnectionManager. If None,
            a new one is created with ``send_timeout``.
        send_timeout: Seconds allowed for one outbound WebSocket frame.
        persist_timeout: Seconds allowed for one store write from the relay.

    Example:
        >>> config = WhiteboardConfig(storage=InMemoryStorage(), api_path="/api/v1")
    """

    storage: SessionStoreProtocol | None = None
    enable_api: bool = True
    enable_websocket: bool = True
    api_path: str = "/api"
    ws_path: str = "/ws"
    dependency_key: str = "service"
    connection_manager: ConnectionManager | None = field(default=None)
    send_timeout: float = DEFAULT_SEND_TIMEOUT
    persist_timeout: float = DEFAULT_PERSIST_TIMEOUT


class WhiteboardPlugin(InitPluginProtocol):
    """Litestar plugin for whiteboard-sync integration.

    Builds the session store, the shared action clock, the SessionService,
    the ConnectionManager and the ActionRelay, registers them for dependency
    injection, and mounts the REST and WebSocket routes.

    Example:
        >>> from litestar import Litestar
        >>> from whiteboard_sync import WhiteboardPlugin, WhiteboardConfig
        >>>
        >>> app = Litestar(plugins=[WhiteboardPlugin(WhiteboardConfig())])

        Accessing the service in route handlers:

        >>> @get("/count")
        ... async def count(service: SessionService) -> dict:
        ...     return {"count": len(await service.list_sessions())}
    """

    def __init__(self, config: WhiteboardConfig | None = None) -> None:
        """Initialize the plugin with optional configuration.

        Args:
            config: Plugin configuration. If None, defaults are used.
        """
        self._config = config or WhiteboardConfig()
        self._storage: SessionStoreProtocol | None = None
        self._service: SessionService | None = None
        self._connection_manager: ConnectionManager | None = None
        self._relay: ActionRelay | None = None

    def on_app_init(self, app_config: AppConfig) -> AppConfig:
        """Wire services, dependencies and routes into the application.

        Args:
            app_config: The Litestar application configuration object.

        Returns:
            The modified application configuration.
        """
        self._storage = self._config.storage or InMemoryStorage()
        clock = ActionClock()
        self._service = SessionService(self._storage, clock=clock)
        self._connection_manager = self._config.connection_manager or ConnectionManager(
            send_timeout=self._config.send_timeout
        )
        self._relay = ActionRelay(
            self._connection_manager,
            self._storage,
            clock=clock,
            persist_timeout=self._config.persist_timeout,
        )

        def provide_service() -> SessionService:
            """Dependency provider for SessionService."""
            return self.service

        def provide_connection_manager() -> ConnectionManager:
            """Dependency provider for ConnectionManager."""
            return self.connection_manager

        def provide_relay() -> ActionRelay:
            """Dependency provider for ActionRelay."""
            return self.relay

        app_config.dependencies[self._config.dependency_key] = Provide(provide_service, sync_to_thread=False)
        app_config.dependencies["connection_manager"] = Provide(provide_connection_manager, sync_to_thread=False)
        app_config.dependencies["relay"] = Provide(provide_relay, sync_to_thread=False)

        if self._config.enable_api:
            app_config.route_handlers.append(create_router(path=self._config.api_path))

        if self._config.enable_websocket:
            from whiteboard_sync.realtime.handler import create_websocket_handler

            app_config.route_handlers.append(
                create_websocket_handler(
                    path=self._config.ws_path,
                    connection_manager=self._connection_manager,
                    relay=self._relay,
                )
            )

        return app_config

    @property
    def storage(self) -> SessionStoreProtocol:
        """Get the initialized session store.

        Raises:
            RuntimeError: If on_app_init has not been called yet.
        """
        if self._storage is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._storage

    @property
    def service(self) -> SessionService:
        """Get the initialized session service.

        Raises:
            RuntimeError: If on_app_init has not been called yet.
        """
        if self._service is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._service

    @property
    def connection_manager(self) -> ConnectionManager:
        """Get the initialized connection manager.

        Raises:
            RuntimeError: If on_app_init has not been called yet.
        """
        if self._connection_manager is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._connection_manager

    @property
    def relay(self) -> ActionRelay:
        """Get the initialized action relay.

        Raises:
            RuntimeError: If on_app_init has not been called yet.
        """
        if self._relay is None:
            msg = "Plugin not initialized. Call on_app_init first."
            raise RuntimeError(msg)
        return self._relay
