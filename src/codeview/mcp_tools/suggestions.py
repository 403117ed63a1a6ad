"""MCP tools for proposing tests that a source file is missing."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from mcp.types import TextContent, Tool

from codeview.mcp_tools.common import ToolError, _line_range_schema, _text
from codeview.models import VALID_PRIORITIES
from codeview.validation import SUGGEST_MISSING_TESTS

if TYPE_CHECKING:
    from codeview.store import MetadataStore
    from codeview.validation import SuggestMissingTests


def register() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    """Return (tool_definitions, handler_map) for suggestion tools."""
    tools = [
        Tool(
            name=SUGGEST_MISSING_TESTS,
            description=(
                "Suggest tests that are missing for a source file. Each suggestion names the "
                "uncovered lines, explains why a test is needed, and carries a test skeleton. "
                "Suggestions with the same suggestedName replace earlier ones."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "sourceFile": {"type": "string", "description": "Path to the source file lacking coverage"},
                    "suggestions": {
                        "type": "array",
                        "description": "Missing-test suggestions for this source file",
                        "items": {
                            "type": "object",
                            "properties": {
                                "targetLines": _line_range_schema("Line range in the source file that needs coverage"),
                                "reason": {"type": "string", "description": "Why this code needs a test"},
                                "suggestedName": {"type": "string", "description": "Proposed name for the new test"},
                                "testSkeleton": {"type": "string", "description": "Skeleton code for the test"},
                                "priority": {
                                    "type": "string",
                                    "enum": sorted(VALID_PRIORITIES),
                                    "description": "How urgently the test is needed",
                                },
                            },
                            "required": ["targetLines", "reason", "suggestedName", "testSkeleton", "priority"],
                        },
                    },
                },
                "required": ["sourceFile", "suggestions"],
            },
        ),
    ]

    handlers: dict[str, Callable[..., Any]] = {
        SUGGEST_MISSING_TESTS: _handle_suggest_missing_tests,
    }

    return tools, handlers


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_suggest_missing_tests(store: MetadataStore, args: SuggestMissingTests) -> list[TextContent]:
    try:
        store.add_suggestions(args.source_file, args.suggestions)
    except OSError as exc:
        msg = f"failed to store suggestions: {exc}"
        raise ToolError(msg) from exc
    return _text(f"Successfully stored {len(args.suggestions)} test suggestions for {args.source_file}")
