"""Structured logging for whiteboard-sync.

structlog setup plus ASGI middleware that tags HTTP requests and WebSocket
connections with a correlation ID and logs how each one finished.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from litestar.types import ASGIApp, Message, Receive, Scope, Send

DEFAULT_EXCLUDE_PATHS = frozenset({"/health", "/ready", "/favicon.ico"})
CORRELATION_HEADERS = (b"x-correlation-id", b"x-request-id")


def configure_logging(*, debug: bool = False, json_logs: bool = False) -> None:
    """Configure structured logging for the application.

    Args:
        debug: Enable debug level logging.
        json_logs: Output logs as JSON (for production).
    """
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_logs:
        processors.extend(
            [
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ]
        )
    else:
        processors.extend(
            [
                structlog.processors.ExceptionPrettyPrinter(),
                structlog.dev.ConsoleRenderer(colors=True),
            ]
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _correlation_id_from(scope: Scope) -> str:
    headers = dict(scope.get("headers", []))
    for name in CORRELATION_HEADERS:
        value = headers.get(name, b"").decode()
        if value:
            return value
    return str(uuid.uuid4())


def _level_for_status(status_code: int) -> str:
    if status_code >= 500:
        return "error"
    if status_code >= 400:
        return "warning"
    return "info"


def _level_for_close(close_code: int) -> str:
    # 1000 normal, 1001 going away
    return "info" if close_code in (1000, 1001) else "warning"


class CorrelationIdMiddleware:
    """Tag every HTTP request and WebSocket connection with a correlation ID.

    The ID comes from the X-Correlation-ID or X-Request-ID header when the
    client sends one. It is kept in ``scope["state"]``, bound to the structlog
    context for the lifetime of the scope, and returned to the client on the
    HTTP response start or the WebSocket accept.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        transport = scope["type"]
        if transport not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        correlation_id = _correlation_id_from(scope)
        scope.setdefault("state", {})["correlation_id"] = correlation_id
        header = (b"x-correlation-id", correlation_id.encode())

        context = {"correlation_id": correlation_id, "path": scope.get("path", ""), "transport": transport}
        if transport == "http":
            context["method"] = scope.get("method", "")

        async def tagged_send(message: Message) -> None:
            if message["type"] in ("http.response.start", "websocket.accept"):
                message["headers"] = [*message.get("headers", []), header]
            await send(message)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)
        try:
            await self.app(scope, receive, tagged_send)
        finally:
            structlog.contextvars.clear_contextvars()


class RequestLoggingMiddleware:
    """Log one line per finished HTTP request or WebSocket connection.

    HTTP lines carry the response status. WebSocket lines carry the close
    code and how long the client stayed connected, which is the only place a
    connection's total lifetime is measured.
    """

    def __init__(self, app: ASGIApp, *, exclude_paths: set[str] | None = None) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application.
            exclude_paths: Paths that are never logged, such as probes.
        """
        self.app = app
        self.exclude_paths = exclude_paths or set(DEFAULT_EXCLUDE_PATHS)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        transport = scope["type"]
        if transport not in ("http", "websocket") or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        logger = structlog.get_logger(__name__)
        client = scope.get("client")
        client_ip = client[0] if client else "unknown"
        started = time.perf_counter()
        # HTTP status, or WebSocket close code
        outcome = {"code": 500 if transport == "http" else 1006}

        async def observed_send(message: Message) -> None:
            if message["type"] == "http.response.start":
                outcome["code"] = message.get("status", 500)
            elif message["type"] == "websocket.close":
                outcome["code"] = message.get("code", 1000)
            await send(message)

        async def observed_receive() -> Message:
            message = await receive()
            if message["type"] == "websocket.disconnect":
                outcome["code"] = message.get("code", 1000)
            return message

        try:
            await self.app(scope, observed_receive, observed_send)
        except Exception:
            logger.exception("Request failed with exception", client_ip=client_ip)
            raise
        finally:
            duration_ms = round((time.perf_counter() - started) * 1000, 2)
            if transport == "http":
                getattr(logger, _level_for_status(outcome["code"]))(
                    "Request completed",
                    status_code=outcome["code"],
                    duration_ms=duration_ms,
                    client_ip=client_ip,
                )
            else:
                getattr(logger, _level_for_close(outcome["code"]))(
                    "WebSocket closed",
                    close_code=outcome["code"],
                    duration_ms=duration_ms,
                    client_ip=client_ip,
                )


def get_middleware() -> list:
    """Get the logging middleware stack, outermost first."""
    return [
        CorrelationIdMiddleware,
        RequestLoggingMiddleware,
    ]
