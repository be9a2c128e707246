"""OpenAPI configuration for the whiteboard-sync API docs."""

from __future__ import annotations

from litestar.openapi import OpenAPIConfig
from litestar.openapi.plugins import ScalarRenderPlugin, SwaggerRenderPlugin
from litestar.openapi.spec import Tag

_TAGS = [
    Tag(name="Sessions", description="Create, list, load and delete whiteboard sessions and their history"),
    Tag(name="Health", description="Liveness and readiness probes"),
]


def get_openapi_config(version: str) -> OpenAPIConfig:
    """Build the OpenAPI configuration.

    Endpoints:
        - /schema/ - Scalar UI (default)
        - /schema/swagger - Swagger UI
        - /schema/openapi.json - OpenAPI schema

    The WebSocket route is not described by OpenAPI; its frames are listed
    in the project README.

    Args:
        version: Application version shown in the docs.
    """
    return OpenAPIConfig(
        title="whiteboard-sync API",
        version=version,
        description="Real-time collaborative whiteboard sessions with durable drawing history",
        path="/schema",
        tags=_TAGS,
        render_plugins=[ScalarRenderPlugin(path="/"), SwaggerRenderPlugin(path="/swagger")],
        use_handler_docstrings=True,
    )
