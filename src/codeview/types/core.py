"""Foundational TypedDicts for model to_dict() returns.

Keys are camelCase: these are the shapes that travel over JSON-RPC, the
dashboard API, and the persisted metadata document.
"""

from __future__ import annotations

from typing import Literal, NewType, NotRequired, TypedDict

ISOTimestamp = NewType("ISOTimestamp", str)

Priority = Literal["high", "medium", "low"]


class ViewerConfig(TypedDict, total=False):
    """Shape of <base_dir>/.codeview.json."""

    port: int
    metadata: str
    log_dir: str


class LineRangeDict(TypedDict):
    start: int
    end: int


class TestReferenceDict(TypedDict):
    testFile: str
    testName: str
    comment: str
    lineRange: LineRangeDict
    coveredLines: LineRangeDict
    inputLines: NotRequired[LineRangeDict]
    outputLines: NotRequired[LineRangeDict]


class TestSuggestionDict(TypedDict):
    targetLines: LineRangeDict
    reason: str
    suggestedName: str
    testSkeleton: str
    priority: Priority


class CommentDict(TypedDict):
    id: str
    line: int
    content: str
    resolved: bool
    createdAt: ISOTimestamp
    updatedAt: ISOTimestamp
    contextLines: NotRequired[LineRangeDict]
    author: NotRequired[str]


class FileMetadataDict(TypedDict, total=False):
    """Per-file value in the persisted document. Empty lists are omitted."""

    tests: list[TestReferenceDict]
    suggestions: list[TestSuggestionDict]
    comments: list[CommentDict]
