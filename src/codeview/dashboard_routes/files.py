"""File browsing and per-file metadata route handlers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi.responses import JSONResponse

from codeview.dashboard_routes.common import _file_error, coverage_depth, extract_lines
from codeview.files import FileService
from codeview.store import MetadataStore

if TYPE_CHECKING:
    from codeview.models import TestReference
    from codeview.types.api import SuggestionsResponse, TestDetailDict, TestsResponse

logger = logging.getLogger(__name__)


def _test_detail(test: TestReference, files: FileService) -> TestDetailDict:
    """Enrich a stored test with text pulled from its test file, when readable."""
    detail: TestDetailDict = {**test.to_dict(), "content": ""}  # type: ignore[typeddict-item]
    try:
        test_file = files.read_file(test.test_file)
    except (OSError, ValueError) as exc:
        logger.debug("Test file %s unavailable: %s", test.test_file, exc)
        return detail

    detail["content"] = test_file.content
    lines = test_file.lines
    if test.input_lines is not None and test.input_lines.is_set:
        detail["inputData"] = extract_lines(lines, test.input_lines)
    if test.output_lines is not None and test.output_lines.is_set:
        detail["expectedOutput"] = extract_lines(lines, test.output_lines)
    return detail


# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------


def create_router() -> Any:
    """Build the APIRouter for file listing, file content, tests and suggestions.

    Handlers are plain ``def``: FastAPI runs them in its threadpool and the
    store serializes access itself.

    Route order matters: the ``/tests`` and ``/suggestions`` suffix routes
    must be registered before the catch-all ``/files/{path:path}``.
    """
    from fastapi import APIRouter, Depends

    from codeview.dashboard import _get_files, _get_store

    router = APIRouter()

    @router.get("/files")
    def api_list_files(path: str = ".", files: FileService = Depends(_get_files)) -> JSONResponse:
        """List one directory of the source tree."""
        try:
            listing = files.list_files(path)
        except (OSError, ValueError) as exc:
            return _file_error(exc, path)
        return JSONResponse(listing, headers={"Cache-Control": "no-cache"})

    @router.get("/files/{path:path}/tests")
    def api_file_tests(
        path: str,
        store: MetadataStore = Depends(_get_store),
        files: FileService = Depends(_get_files),
    ) -> JSONResponse:
        """Tests recorded for a source file, with their test-file text."""
        meta = store.get_test_metadata(path)
        tests = meta.tests if meta is not None else []
        body: TestsResponse = {"sourceFile": path, "tests": [_test_detail(t, files) for t in tests]}
        return JSONResponse(body)

    @router.get("/files/{path:path}/suggestions")
    def api_file_suggestions(path: str, store: MetadataStore = Depends(_get_store)) -> JSONResponse:
        body: SuggestionsResponse = {"sourceFile": path, "suggestions": [s.to_dict() for s in store.get_suggestions(path)]}
        return JSONResponse(body)

    @router.get("/files/{path:path}")
    def api_get_file(
        path: str,
        store: MetadataStore = Depends(_get_store),
        files: FileService = Depends(_get_files),
    ) -> JSONResponse:
        """File content plus everything recorded against it."""
        try:
            content = files.read_file(path)
        except (OSError, ValueError) as exc:
            return _file_error(exc, path)

        data: dict[str, Any] = dict(content.to_dict())
        meta = store.get_test_metadata(path)
        if meta is not None:
            data["metadata"] = meta.to_dict()
            if meta.tests:
                data["coverageDepth"] = coverage_depth(meta.tests)
        return JSONResponse({"file": data})

    return router
