"""Pure helpers and constants shared across MCP tool modules.

This module has NO dependency on ``mcp_server``, so it can be imported
freely without triggering circular-import issues.
"""

from __future__ import annotations

import json
from typing import Any

from mcp.types import TextContent


class ToolError(Exception):
    """A tool ran but could not complete (e.g. the store failed to persist)."""


def _text(content: object) -> list[TextContent]:
    if isinstance(content, str):
        return [TextContent(type="text", text=content)]
    return [TextContent(type="text", text=json.dumps(content, indent=2, default=str))]


def _line_range_schema(description: str, *, required: bool = True) -> dict[str, Any]:
    """JSON Schema for a ``{start, end}`` span."""
    schema: dict[str, Any] = {
        "type": "object",
        "description": description,
        "properties": {
            "start": {"type": "integer", "minimum": 0, "description": "Starting line number (1-indexed)"},
            "end": {"type": "integer", "minimum": 0, "description": "Ending line number (1-indexed, inclusive)"},
        },
    }
    if required:
        schema["required"] = ["start", "end"]
    return schema
