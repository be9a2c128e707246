"""Health check endpoints for whiteboard-sync.

Provides /health and /ready endpoints for container orchestration
and load balancer health checks.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

import structlog
from litestar import Controller, get
from sqlalchemy import text

from whiteboard_sync.realtime.manager import ConnectionManager
from whiteboard_sync.services.session import SessionService

if TYPE_CHECKING:
    from litestar import Request

logger = structlog.get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    """Health status of an individual component."""

    name: str
    status: HealthStatus
    message: str | None = None
    latency_ms: float | None = None
    details: dict[str, Any] | None = None


@dataclass
class HealthResponse:
    """Health check response."""

    status: HealthStatus
    version: str = "0.1.0"
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    components: list[ComponentHealth] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "version": self.version,
            "timestamp": self.timestamp,
            "components": [
                {
                    "name": c.name,
                    "status": c.status.value,
                    "message": c.message,
                    "latency_ms": c.latency_ms,
                    "details": c.details,
                }
                for c in self.components
            ],
        }


class HealthController(Controller):
    """Health check controller.

    Reports the application, the live connection counters and the session
    store. A database-backed store is probed with a round trip; the
    in-memory store is always healthy.
    """

    path = ""
    tags: ClassVar[list[str]] = ["Health"]

    @get("/health")
    async def health(
        self,
        request: Request,
        service: SessionService,
        connection_manager: ConnectionManager,
    ) -> dict[str, Any]:
        """Liveness probe endpoint.

        Returns:
            Health status with component details.
        """
        components = [
            ComponentHealth(
                name="application",
                status=HealthStatus.HEALTHY,
                message="Application is running",
            ),
            ComponentHealth(
                name="realtime",
                status=HealthStatus.HEALTHY,
                details=connection_manager.stats(),
            ),
            await self._check_storage(request, service),
        ]

        statuses = {c.status for c in components}
        if HealthStatus.UNHEALTHY in statuses:
            overall_status = HealthStatus.UNHEALTHY
        elif HealthStatus.DEGRADED in statuses:
            overall_status = HealthStatus.DEGRADED
        else:
            overall_status = HealthStatus.HEALTHY

        return HealthResponse(status=overall_status, components=components).to_dict()

    @get("/ready")
    async def ready(self, request: Request, service: SessionService) -> dict[str, Any]:
        """Readiness probe endpoint.

        The service is ready once its session store answers.
        """
        storage = await self._check_storage(request, service)
        checks = {"application": True, "storage": storage.status == HealthStatus.HEALTHY}

        return {
            "ready": all(checks.values()),
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": checks,
        }

    async def _check_storage(self, request: Request, service: SessionService) -> ComponentHealth:
        backend = type(service.storage).__name__
        db_manager = getattr(request.app.state, "db_manager", None)
        if db_manager is None:
            return ComponentHealth(
                name="storage",
                status=HealthStatus.HEALTHY,
                message="Session store is in process",
                details={"backend": backend},
            )

        start = time.perf_counter()
        try:
            async with db_manager.session() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:  # noqa: BLE001
            logger.warning("Database health check failed", error=str(e))
            return ComponentHealth(
                name="storage",
                status=HealthStatus.UNHEALTHY,
                message=f"Database error: {e!s}",
                details={"backend": backend},
            )

        return ComponentHealth(
            name="storage",
            status=HealthStatus.HEALTHY,
            message="Database connection successful",
            latency_ms=round((time.perf_counter() - start) * 1000, 2),
            details={"backend": backend},
        )
