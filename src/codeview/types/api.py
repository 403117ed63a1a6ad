"""TypedDicts for dashboard route API responses."""

from __future__ import annotations

from typing import NotRequired, TypedDict

from codeview.types.core import (
    CommentDict,
    FileMetadataDict,
    ISOTimestamp,
    LineRangeDict,
    TestSuggestionDict,
)


class ErrorDetail(TypedDict):
    message: str
    code: str
    details: dict[str, object]


class ErrorResponse(TypedDict):
    """Standard error envelope returned by dashboard error paths."""

    error: ErrorDetail


class FileEntryDict(TypedDict):
    name: str
    path: str
    isDir: bool
    size: int
    modTime: ISOTimestamp


class ListFilesResponse(TypedDict):
    path: str
    files: list[FileEntryDict]


class FileContentDict(TypedDict):
    path: str
    name: str
    content: str
    size: int
    modTime: ISOTimestamp
    mimeType: str
    metadata: NotRequired[FileMetadataDict]
    # JSON object keys are strings, so line numbers arrive as "12".
    coverageDepth: NotRequired[dict[str, list[str]]]


class TestDetailDict(TypedDict):
    """A stored TestReference enriched with text pulled from the test file."""

    testFile: str
    testName: str
    comment: str
    content: str
    lineRange: LineRangeDict
    coveredLines: LineRangeDict
    inputLines: NotRequired[LineRangeDict]
    outputLines: NotRequired[LineRangeDict]
    inputData: NotRequired[str]
    expectedOutput: NotRequired[str]


class TestsResponse(TypedDict):
    sourceFile: str
    tests: list[TestDetailDict]


class SuggestionsResponse(TypedDict):
    sourceFile: str
    suggestions: list[TestSuggestionDict]


class CommentsResponse(TypedDict):
    sourceFile: str
    comments: list[CommentDict]
