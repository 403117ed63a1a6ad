"""JSON-RPC endpoint for agents."""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from codeview.mcp_server import McpDispatcher


def create_router() -> Any:
    """Build the APIRouter exposing the JSON-RPC dispatcher at ``POST /mcp``.

    Protocol errors travel inside the JSON-RPC envelope, so the HTTP status
    is always 200.
    """
    from fastapi import APIRouter, Depends

    from codeview.dashboard import _get_dispatcher

    router = APIRouter()

    @router.post("/mcp")
    async def api_mcp(request: Request, dispatcher: McpDispatcher = Depends(_get_dispatcher)) -> JSONResponse:
        body = await request.body()
        envelope = await run_in_threadpool(dispatcher.handle, body)
        return JSONResponse(envelope)

    return router
