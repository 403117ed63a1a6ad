"""Shared validation functions for all entry points.

Pure functions with no MCP, FastAPI or Click dependencies.

Decoders turn untyped JSON (tool-call arguments, dashboard request bodies)
into model objects, raising ``ValueError`` with a field path on the first
problem.  A batch is decoded completely before anything touches the store,
so one bad item rejects the whole call.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, cast

from codeview.models import VALID_PRIORITIES, LineRange, TestReference, TestSuggestion
from codeview.types.inputs import (
    SubmitTestMetadataArgs,
    SuggestionInput,
    SuggestMissingTestsArgs,
    TestInput,
)

SUBMIT_TEST_METADATA = "submit-test-metadata"
SUGGEST_MISSING_TESTS = "suggest-missing-tests"


@dataclass(frozen=True)
class SubmitTestMetadata:
    source_file: str
    tests: tuple[TestReference, ...]


@dataclass(frozen=True)
class SuggestMissingTests:
    source_file: str
    suggestions: tuple[TestSuggestion, ...]


ToolArgs = SubmitTestMetadata | SuggestMissingTests


# ---------------------------------------------------------------------------
# Primitive field checks
# ---------------------------------------------------------------------------


def _require_object(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        msg = f"{where} must be an object"
        raise ValueError(msg)
    return value


def _require_str(data: Mapping[str, Any], key: str, where: str, *, non_empty: bool = False) -> str:
    if key not in data:
        msg = f"{where}.{key} is required"
        raise ValueError(msg)
    value = data[key]
    if not isinstance(value, str):
        msg = f"{where}.{key} must be a string"
        raise ValueError(msg)
    if non_empty and not value.strip():
        msg = f"{where}.{key} must not be empty"
        raise ValueError(msg)
    return value


def _require_int(data: Mapping[str, Any], key: str, where: str) -> int:
    if key not in data:
        msg = f"{where}.{key} is required"
        raise ValueError(msg)
    value = data[key]
    # bool is an int subclass; JSON true/false is never a line number.
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{where}.{key} must be an integer"
        raise ValueError(msg)
    return value


def _require_list(data: Mapping[str, Any], key: str) -> list[Any]:
    if key not in data:
        msg = f"{key} is required"
        raise ValueError(msg)
    value = data[key]
    if not isinstance(value, list):
        msg = f"{key} must be an array"
        raise ValueError(msg)
    return value


def decode_line_range(value: Any, where: str) -> LineRange:
    """Decode ``{start, end}``. ``{0, 0}`` is allowed and means unspecified."""
    data = _require_object(value, where)
    start = _require_int(data, "start", where)
    end = _require_int(data, "end", where)
    if start < 0 or end < 0:
        msg = f"{where} line numbers must be >= 0"
        raise ValueError(msg)
    if start > 0 and end > 0 and start > end:
        msg = f"{where}.start ({start}) must be <= end ({end})"
        raise ValueError(msg)
    return LineRange(start=start, end=end)


def _required_line_range(data: Mapping[str, Any], key: str, where: str) -> LineRange:
    if data.get(key) is None:
        msg = f"{where}.{key} is required"
        raise ValueError(msg)
    return decode_line_range(data[key], f"{where}.{key}")


def _optional_line_range(data: Mapping[str, Any], key: str, where: str) -> LineRange | None:
    value = data.get(key)
    if value is None:
        return None
    return decode_line_range(value, f"{where}.{key}")


# ---------------------------------------------------------------------------
# Tool argument decoders
# ---------------------------------------------------------------------------


def _source_file(arguments: Mapping[str, Any]) -> str:
    value = arguments.get("sourceFile")
    if not isinstance(value, str) or not value:
        msg = "sourceFile is required and must be a string"
        raise ValueError(msg)
    return value


def decode_test_reference(value: Any, where: str) -> TestReference:
    data = cast("TestInput", _require_object(value, where))
    return TestReference(
        test_file=_require_str(data, "testFile", where, non_empty=True),
        test_name=_require_str(data, "testName", where, non_empty=True),
        comment=_require_str(data, "comment", where),
        line_range=_required_line_range(data, "lineRange", where),
        covered_lines=_required_line_range(data, "coveredLines", where),
        input_lines=_optional_line_range(data, "inputLines", where),
        output_lines=_optional_line_range(data, "outputLines", where),
    )


def decode_test_suggestion(value: Any, where: str) -> TestSuggestion:
    data = cast("SuggestionInput", _require_object(value, where))
    priority = _require_str(data, "priority", where)
    if priority not in VALID_PRIORITIES:
        msg = f"{where}.priority must be one of: {', '.join(sorted(VALID_PRIORITIES))}"
        raise ValueError(msg)
    return TestSuggestion(
        suggested_name=_require_str(data, "suggestedName", where, non_empty=True),
        target_lines=_required_line_range(data, "targetLines", where),
        reason=_require_str(data, "reason", where),
        test_skeleton=_require_str(data, "testSkeleton", where),
        priority=priority,  # type: ignore[arg-type]
    )


def decode_submit_test_metadata(arguments: Any) -> SubmitTestMetadata:
    args = cast("SubmitTestMetadataArgs", _require_object(arguments, "arguments"))
    source_file = _source_file(args)
    raw_tests = _require_list(args, "tests")
    tests = tuple(decode_test_reference(t, f"tests[{i}]") for i, t in enumerate(raw_tests))
    return SubmitTestMetadata(source_file=source_file, tests=tests)


def decode_suggest_missing_tests(arguments: Any) -> SuggestMissingTests:
    args = cast("SuggestMissingTestsArgs", _require_object(arguments, "arguments"))
    source_file = _source_file(args)
    raw = _require_list(args, "suggestions")
    suggestions = tuple(decode_test_suggestion(s, f"suggestions[{i}]") for i, s in enumerate(raw))
    return SuggestMissingTests(source_file=source_file, suggestions=suggestions)


_DECODERS: dict[str, Callable[[Any], ToolArgs]] = {
    SUBMIT_TEST_METADATA: decode_submit_test_metadata,
    SUGGEST_MISSING_TESTS: decode_suggest_missing_tests,
}


def decode_tool_args(name: str, arguments: Any) -> ToolArgs:
    """Decode *arguments* for tool *name* into its typed form.

    Raises ValueError for unknown tools and for any shape problem.
    """
    decoder = _DECODERS.get(name)
    if decoder is None:
        msg = f"unknown tool: {name}"
        raise ValueError(msg)
    return decoder({} if arguments is None else arguments)


# ---------------------------------------------------------------------------
# Dashboard request bodies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CommentRequest:
    line: int
    content: str
    context_lines: LineRange | None = None
    author: str = ""


def decode_comment_request(body: dict[str, Any]) -> CommentRequest:
    """Decode ``{line, content, contextLines?, author?}`` from the dashboard."""
    line = _require_int(body, "line", "body")
    if line < 1:
        msg = "body.line must be >= 1"
        raise ValueError(msg)
    content = _require_str(body, "content", "body", non_empty=True)
    author = body.get("author", "")
    if not isinstance(author, str):
        msg = "body.author must be a string"
        raise ValueError(msg)
    return CommentRequest(
        line=line,
        content=content,
        context_lines=_optional_line_range(body, "contextLines", "body"),
        author=author.strip(),
    )


def decode_comment_content(body: dict[str, Any]) -> str:
    return _require_str(body, "content", "body", non_empty=True)
