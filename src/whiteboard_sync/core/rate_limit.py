"""Rate limiting configuration for the whiteboard-sync HTTP API.

Uses Litestar's built-in RateLimitMiddleware. WebSocket frames are not rate
limited here; only the HTTP surface (session CRUD) is.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from litestar.middleware.rate_limit import RateLimitConfig


@dataclass
class RateLimitSettings:
    """Rate limiting configuration settings.

    Attributes:
        enabled: Whether rate limiting is enabled.
        requests_per_minute: Requests allowed per client per minute.
        exclude_paths: Paths to exclude from rate limiting.
    """

    enabled: bool = True
    requests_per_minute: int = 120
    exclude_paths: list[str] = field(
        default_factory=lambda: [
            "/health",
            "/ready",
            "/schema",
            "/ws",
        ]
    )

    @classmethod
    def from_env(cls) -> RateLimitSettings:
        """Create settings from environment variables.

        Environment variables:
            RATE_LIMIT_ENABLED: Set to "false" to disable rate limiting.
            RATE_LIMIT_PER_MINUTE: Requests per minute (default: 120).

        Returns:
            RateLimitSettings configured from environment.
        """
        return cls(
            enabled=os.environ.get("RATE_LIMIT_ENABLED", "true").lower() != "false",
            requests_per_minute=int(os.environ.get("RATE_LIMIT_PER_MINUTE", "120")),
        )


def get_rate_limit_config(settings: RateLimitSettings | None = None) -> RateLimitConfig | None:
    """Build the rate limit middleware configuration if enabled.

    Args:
        settings: Rate limit settings. If None, loads from environment.

    Returns:
        RateLimitConfig if rate limiting is enabled, None otherwise.
    """
    if settings is None:
        settings = RateLimitSettings.from_env()

    if not settings.enabled:
        return None

    return RateLimitConfig(
        rate_limit=("minute", settings.requests_per_minute),
        exclude=settings.exclude_paths,
        exclude_opt_key="exclude_from_rate_limit",
    )
