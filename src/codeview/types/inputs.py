"""TypedDict contracts for MCP tool handler input arguments.

Each TypedDict mirrors the JSON Schema ``inputSchema`` on the corresponding
``mcp.types.Tool`` definition.  The ``TOOL_ARGS_MAP`` registry maps tool names
to their TypedDict class so the sync test can verify structural agreement.

Unlike an SDK-hosted server, nothing validates arguments against the schema
before our handlers run.  The TypedDicts describe the shape; the decoders in
``codeview.validation`` enforce it at runtime.
"""

# NOTE: Do NOT add ``from __future__ import annotations`` to this module.
# It breaks TypedDict.__required_keys__ / __optional_keys__ introspection
# on Python <3.14, which the sync test in test_input_type_contracts.py
# depends on for verifying required/optional agreement with JSON Schema.

from typing import NotRequired, TypedDict

from codeview.types.core import LineRangeDict, Priority

# ---------------------------------------------------------------------------
# Nested item shapes
# ---------------------------------------------------------------------------


class TestInput(TypedDict):
    testFile: str
    testName: str
    comment: str
    lineRange: LineRangeDict
    coveredLines: LineRangeDict
    inputLines: NotRequired[LineRangeDict]
    outputLines: NotRequired[LineRangeDict]


class SuggestionInput(TypedDict):
    targetLines: LineRangeDict
    reason: str
    suggestedName: str
    testSkeleton: str
    priority: Priority


# ---------------------------------------------------------------------------
# tests.py handlers
# ---------------------------------------------------------------------------


class SubmitTestMetadataArgs(TypedDict):
    sourceFile: str
    tests: list[TestInput]


# ---------------------------------------------------------------------------
# suggestions.py handlers
# ---------------------------------------------------------------------------


class SuggestMissingTestsArgs(TypedDict):
    sourceFile: str
    suggestions: list[SuggestionInput]


# Registry: tool_name -> TypedDict class.
# No-argument tools (empty inputSchema properties) are intentionally excluded.
TOOL_ARGS_MAP: dict[str, type] = {
    "submit-test-metadata": SubmitTestMetadataArgs,
    "suggest-missing-tests": SuggestMissingTestsArgs,
}
