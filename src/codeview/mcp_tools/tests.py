"""MCP tools for recording which tests cover which parts of a source file."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from mcp.types import TextContent, Tool

from codeview.mcp_tools.common import ToolError, _line_range_schema, _text
from codeview.validation import SUBMIT_TEST_METADATA

if TYPE_CHECKING:
    from codeview.store import MetadataStore
    from codeview.validation import SubmitTestMetadata


def register() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    """Return (tool_definitions, handler_map) for test-metadata tools."""
    tools = [
        Tool(
            name=SUBMIT_TEST_METADATA,
            description=(
                "Submit metadata about tests for a source file. Registers which tests cover which "
                "parts of the file, including the line numbers for the test code, its input data, "
                "and its expected output. Re-submitting a test (same testFile + testName) replaces it."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "sourceFile": {"type": "string", "description": "Path to the source file being tested"},
                    "tests": {
                        "type": "array",
                        "description": "Test references for this source file",
                        "items": {
                            "type": "object",
                            "properties": {
                                "testFile": {"type": "string", "description": "Path to the test file"},
                                "testName": {"type": "string", "description": "Name of the test function/method"},
                                "comment": {"type": "string", "description": "What the test checks, in one sentence"},
                                "lineRange": _line_range_schema("Line range of the test code in the test file"),
                                "coveredLines": _line_range_schema("Line range in the source file that this test covers"),
                                "inputLines": _line_range_schema(
                                    "Line range in the test file containing the input/test data", required=False
                                ),
                                "outputLines": _line_range_schema(
                                    "Line range in the test file containing the expected output/assertions",
                                    required=False,
                                ),
                            },
                            "required": ["testFile", "testName", "comment", "lineRange", "coveredLines"],
                        },
                    },
                },
                "required": ["sourceFile", "tests"],
            },
        ),
    ]

    handlers: dict[str, Callable[..., Any]] = {
        SUBMIT_TEST_METADATA: _handle_submit_test_metadata,
    }

    return tools, handlers


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_submit_test_metadata(store: MetadataStore, args: SubmitTestMetadata) -> list[TextContent]:
    try:
        store.add_test_metadata(args.source_file, args.tests)
    except OSError as exc:
        msg = f"failed to store metadata: {exc}"
        raise ToolError(msg) from exc
    return _text(f"Successfully stored test metadata for {args.source_file} ({len(args.tests)} tests)")
