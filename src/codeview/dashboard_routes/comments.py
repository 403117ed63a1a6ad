"""Review comment route handlers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from codeview.dashboard_routes.common import _error_response, _parse_json_body, _persistence_error
from codeview.store import MetadataStore
from codeview.validation import decode_comment_content, decode_comment_request

if TYPE_CHECKING:
    from codeview.types.api import CommentsResponse

logger = logging.getLogger(__name__)


def create_router() -> Any:
    """Build the APIRouter for review comments on a source file.

    Handlers that read a body are ``async`` and hand the store call to the
    threadpool; the rest are plain ``def``.  An unknown comment id is not an
    error: the store treats it as a no-op and the route still answers ok.

    Must be included before the files router so ``.../comments`` is not
    swallowed by ``/files/{path:path}``.
    """
    from fastapi import APIRouter, Depends

    from codeview.dashboard import _get_store

    router = APIRouter()

    @router.get("/files/{path:path}/comments")
    def api_list_comments(path: str, store: MetadataStore = Depends(_get_store)) -> JSONResponse:
        body: CommentsResponse = {"sourceFile": path, "comments": [c.to_dict() for c in store.get_comments(path)]}
        return JSONResponse(body)

    @router.post("/files/{path:path}/comments")
    async def api_add_comment(path: str, request: Request, store: MetadataStore = Depends(_get_store)) -> JSONResponse:
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        try:
            req = decode_comment_request(body)
        except ValueError as exc:
            return _error_response(str(exc), "VALIDATION_ERROR", 400)
        try:
            comment = await run_in_threadpool(
                store.add_comment,
                path,
                line=req.line,
                content=req.content,
                context_lines=req.context_lines,
                author=req.author,
            )
        except OSError as exc:
            return _persistence_error(exc)
        return JSONResponse({"comment": comment.to_dict()}, status_code=201)

    @router.put("/files/{path:path}/comments/{comment_id}")
    async def api_update_comment(
        path: str, comment_id: str, request: Request, store: MetadataStore = Depends(_get_store)
    ) -> JSONResponse:
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        try:
            content = decode_comment_content(body)
        except ValueError as exc:
            return _error_response(str(exc), "VALIDATION_ERROR", 400)
        try:
            updated = await run_in_threadpool(store.update_comment, path, comment_id, content)
        except OSError as exc:
            return _persistence_error(exc)
        if not updated:
            logger.info("Update of unknown comment %s on %s ignored", comment_id, path)
        return JSONResponse({"status": "ok"})

    @router.delete("/files/{path:path}/comments/{comment_id}")
    def api_delete_comment(path: str, comment_id: str, store: MetadataStore = Depends(_get_store)) -> JSONResponse:
        try:
            deleted = store.delete_comment(path, comment_id)
        except OSError as exc:
            return _persistence_error(exc)
        if not deleted:
            logger.info("Delete of unknown comment %s on %s ignored", comment_id, path)
        return JSONResponse({"status": "ok"})

    @router.patch("/files/{path:path}/comments/{comment_id}/resolved")
    def api_toggle_resolved(path: str, comment_id: str, store: MetadataStore = Depends(_get_store)) -> JSONResponse:
        try:
            toggled = store.toggle_comment_resolved(path, comment_id)
        except OSError as exc:
            return _persistence_error(exc)
        if not toggled:
            logger.info("Toggle of unknown comment %s on %s ignored", comment_id, path)
        return JSONResponse({"status": "ok"})

    return router
