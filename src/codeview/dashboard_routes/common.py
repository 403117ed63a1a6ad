"""Shared helpers for dashboard route modules."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fastapi import Request
    from fastapi.responses import JSONResponse

    from codeview.models import LineRange, TestReference
    from codeview.types.api import ErrorResponse

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _error_response(
    message: str,
    code: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Return a structured error response and log the error."""
    from fastapi.responses import JSONResponse

    logger.warning("API error [%s] %s: %s", status_code, code, message)
    payload: ErrorResponse = {"error": {"message": message, "code": code, "details": details or {}}}
    return JSONResponse(payload, status_code=status_code)


async def _parse_json_body(request: Request) -> dict[str, Any] | JSONResponse:
    """Parse and validate a JSON object body, returning 400 on failure."""
    import json

    try:
        body = await request.json()
    except (json.JSONDecodeError, ValueError, UnicodeDecodeError):
        return _error_response("Invalid JSON body", "VALIDATION_ERROR", 400)
    if not isinstance(body, dict):
        return _error_response("Request body must be a JSON object", "VALIDATION_ERROR", 400)
    return body


def _file_error(exc: OSError | ValueError, path: str) -> JSONResponse:
    """Map a FileService failure to 400 (bad path) or 404 (nothing there)."""
    if isinstance(exc, ValueError):
        return _error_response(str(exc), "VALIDATION_ERROR", 400, {"path": path})
    if isinstance(exc, (FileNotFoundError, IsADirectoryError, NotADirectoryError)):
        return _error_response(str(exc), "FILE_NOT_FOUND", 404, {"path": path})
    return _error_response(f"Failed to read {path}: {exc}", "FILE_NOT_FOUND", 404, {"path": path})


def _persistence_error(exc: OSError) -> JSONResponse:
    return _error_response(f"Failed to save metadata: {exc}", "PERSISTENCE_ERROR", 500)


# ---------------------------------------------------------------------------
# Line helpers
# ---------------------------------------------------------------------------


def extract_lines(lines: list[str], line_range: LineRange | None) -> str:
    """Join the 1-indexed inclusive span of *lines*.

    Unspecified, inverted or out-of-bounds ranges yield ``""``.
    """
    if line_range is None:
        return ""
    start, end = line_range.start, line_range.end
    if start < 1 or end < 1 or start > end or end > len(lines):
        return ""
    return "\n".join(lines[start - 1 : end])


def coverage_depth(tests: Iterable[TestReference]) -> dict[str, list[str]]:
    """Map each covered source line to the names of the tests covering it."""
    depth: dict[str, list[str]] = {}
    for test in tests:
        if not test.covered_lines.is_set:
            continue
        for line in range(test.covered_lines.start, test.covered_lines.end + 1):
            depth.setdefault(str(line), []).append(test.test_name)
    return depth
