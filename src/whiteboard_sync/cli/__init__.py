"""Command line extensions for the ``litestar`` CLI."""

from whiteboard_sync.cli.database import WhiteboardCLIPlugin, query_group

__all__ = ["WhiteboardCLIPlugin", "query_group"]
