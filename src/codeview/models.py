"""Metadata records attached to source files.

Attributes are snake_case; ``to_dict()`` / ``from_dict()`` translate to and
from the camelCase wire format shared by JSON-RPC, the dashboard API, and
the persisted metadata document.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from typing import Any

from codeview.types.core import (
    CommentDict,
    FileMetadataDict,
    ISOTimestamp,
    LineRangeDict,
    Priority,
    TestReferenceDict,
    TestSuggestionDict,
)

VALID_PRIORITIES: frozenset[str] = frozenset({"high", "medium", "low"})


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _next_timestamp(previous: str) -> str:
    """Return the current time, nudged forward so it sorts after *previous*.

    Guarantees ``updatedAt`` strictly increases even when two mutations land
    within the clock's resolution.
    """
    now = datetime.now(UTC)
    try:
        prev = datetime.fromisoformat(previous)
    except ValueError:
        return now.isoformat()
    if prev.tzinfo is None:
        prev = prev.replace(tzinfo=UTC)
    if now <= prev:
        now = prev + timedelta(microseconds=1)
    return now.isoformat()


@dataclass(frozen=True)
class LineRange:
    """1-indexed inclusive span. ``LineRange(0, 0)`` means unspecified."""

    start: int = 0
    end: int = 0

    @property
    def is_set(self) -> bool:
        return self.start > 0 and self.end > 0

    def __contains__(self, line: object) -> bool:
        return isinstance(line, int) and self.is_set and self.start <= line <= self.end

    def to_dict(self) -> LineRangeDict:
        return {"start": self.start, "end": self.end}

    @classmethod
    def from_dict(cls, data: Any) -> LineRange:
        if data is None:
            return cls()
        return cls(start=int(data.get("start", 0)), end=int(data.get("end", 0)))


@dataclass
class TestReference:
    """Links a source file to one test exercising it.

    ``line_range``, ``input_lines`` and ``output_lines`` are spans in the
    *test* file; ``covered_lines`` is a span in the *source* file.
    """

    __test__ = False  # not a pytest test class

    test_file: str
    test_name: str
    comment: str = ""
    line_range: LineRange = field(default_factory=LineRange)
    covered_lines: LineRange = field(default_factory=LineRange)
    input_lines: LineRange | None = None
    output_lines: LineRange | None = None

    @property
    def key(self) -> tuple[str, str]:
        """Merge identity within a file."""
        return (self.test_file, self.test_name)

    def to_dict(self) -> TestReferenceDict:
        data: TestReferenceDict = {
            "testFile": self.test_file,
            "testName": self.test_name,
            "comment": self.comment,
            "lineRange": self.line_range.to_dict(),
            "coveredLines": self.covered_lines.to_dict(),
        }
        if self.input_lines is not None:
            data["inputLines"] = self.input_lines.to_dict()
        if self.output_lines is not None:
            data["outputLines"] = self.output_lines.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Any) -> TestReference:
        return cls(
            test_file=data["testFile"],
            test_name=data["testName"],
            comment=data.get("comment", ""),
            line_range=LineRange.from_dict(data.get("lineRange")),
            covered_lines=LineRange.from_dict(data.get("coveredLines")),
            input_lines=LineRange.from_dict(data["inputLines"]) if data.get("inputLines") else None,
            output_lines=LineRange.from_dict(data["outputLines"]) if data.get("outputLines") else None,
        )


@dataclass
class TestSuggestion:
    """A test the agent thinks is missing for a span of the source file."""

    __test__ = False  # not a pytest test class

    suggested_name: str
    target_lines: LineRange = field(default_factory=LineRange)
    reason: str = ""
    test_skeleton: str = ""
    priority: Priority = "medium"

    @property
    def key(self) -> str:
        return self.suggested_name

    def to_dict(self) -> TestSuggestionDict:
        return {
            "targetLines": self.target_lines.to_dict(),
            "reason": self.reason,
            "suggestedName": self.suggested_name,
            "testSkeleton": self.test_skeleton,
            "priority": self.priority,
        }

    @classmethod
    def from_dict(cls, data: Any) -> TestSuggestion:
        return cls(
            suggested_name=data["suggestedName"],
            target_lines=LineRange.from_dict(data.get("targetLines")),
            reason=data.get("reason", ""),
            test_skeleton=data.get("testSkeleton", ""),
            priority=data.get("priority", "medium"),
        )


@dataclass
class Comment:
    id: str
    line: int
    content: str
    resolved: bool = False
    created_at: str = ""
    updated_at: str = ""
    context_lines: LineRange | None = None
    author: str = ""

    def to_dict(self) -> CommentDict:
        data: CommentDict = {
            "id": self.id,
            "line": self.line,
            "content": self.content,
            "resolved": self.resolved,
            "createdAt": ISOTimestamp(self.created_at),
            "updatedAt": ISOTimestamp(self.updated_at),
        }
        if self.context_lines is not None:
            data["contextLines"] = self.context_lines.to_dict()
        if self.author:
            data["author"] = self.author
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Comment:
        return cls(
            id=data["id"],
            line=int(data["line"]),
            content=data["content"],
            resolved=bool(data.get("resolved", False)),
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", ""),
            context_lines=LineRange.from_dict(data["contextLines"]) if data.get("contextLines") else None,
            author=data.get("author", ""),
        )


@dataclass
class FileMetadata:
    """Everything recorded against one source-file path."""

    tests: list[TestReference] = field(default_factory=list)
    suggestions: list[TestSuggestion] = field(default_factory=list)
    comments: list[Comment] = field(default_factory=list)

    def copy(self) -> FileMetadata:
        """Copy deep enough that callers cannot reach the store's records."""
        return FileMetadata(
            tests=[replace(t) for t in self.tests],
            suggestions=[replace(s) for s in self.suggestions],
            comments=[replace(c) for c in self.comments],
        )

    def to_dict(self) -> FileMetadataDict:
        data: FileMetadataDict = {}
        if self.tests:
            data["tests"] = [t.to_dict() for t in self.tests]
        if self.suggestions:
            data["suggestions"] = [s.to_dict() for s in self.suggestions]
        if self.comments:
            data["comments"] = [c.to_dict() for c in self.comments]
        return data

    @classmethod
    def from_dict(cls, data: Any) -> FileMetadata:
        return cls(
            tests=[TestReference.from_dict(t) for t in data.get("tests") or []],
            suggestions=[TestSuggestion.from_dict(s) for s in data.get("suggestions") or []],
            comments=[Comment.from_dict(c) for c in data.get("comments") or []],
        )
