"""HTTP dashboard API for codeview.

Serves the source tree, the metadata recorded against it, review comments,
and the JSON-RPC endpoint agents call.  Module-level ``_store`` and
``_files`` are set at startup and injected via ``Depends``; tests set them
directly.

Usage:
    codeview serve                      # http://localhost:8080, cwd as base dir
    codeview serve --dir ../proj --port 9000
"""

from __future__ import annotations

import logging
from pathlib import Path
from time import perf_counter
from typing import TYPE_CHECKING, Any

from codeview.config import Settings, resolve_settings
from codeview.files import FileService
from codeview.mcp_server import McpDispatcher
from codeview.store import MetadataStore

if TYPE_CHECKING:
    from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level state, set by main() or test fixtures
# ---------------------------------------------------------------------------

_store: MetadataStore | None = None
_files: FileService | None = None


def _get_store() -> MetadataStore:
    from fastapi import HTTPException

    if _store is None:
        raise HTTPException(status_code=500, detail="Metadata store not initialized")
    return _store


def _get_files() -> FileService:
    from fastapi import HTTPException

    if _files is None:
        raise HTTPException(status_code=500, detail="File service not initialized")
    return _files


def _get_dispatcher() -> McpDispatcher:
    return McpDispatcher(_get_store())


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------


def create_app() -> Any:
    """Create the FastAPI application with every dashboard endpoint."""
    import contextlib
    from collections.abc import AsyncIterator, Awaitable, Callable

    from fastapi import FastAPI, Request, Response
    from fastapi.responses import JSONResponse

    from codeview.dashboard_routes import comments, files, mcp

    @contextlib.asynccontextmanager
    async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        # Retry any write that failed while serving; memory may be ahead of disk.
        if _store is not None:
            try:
                _store.save()
            except OSError:
                logger.error("Failed to save metadata on shutdown", exc_info=True)

    app = FastAPI(title="codeview", docs_url=None, redoc_url=None, lifespan=_lifespan)

    @app.middleware("http")
    async def _log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        t0 = perf_counter()
        response = await call_next(request)
        logger.info(
            "http_request",
            extra={
                "http_method": request.method,
                "http_path": request.url.path,
                "status": response.status_code,
                "duration_ms": round((perf_counter() - t0) * 1000, 1),
            },
        )
        return response

    @app.get("/api/health")
    async def api_health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    # comments before files: /files/{path:path} would shadow .../comments
    app.include_router(comments.create_router(), prefix="/api")
    app.include_router(files.create_router(), prefix="/api")
    app.include_router(mcp.create_router(), prefix="/api")

    return app


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def configure(settings: Settings) -> None:
    """Build the store and file service for *settings* and install them."""
    global _store, _files

    _files = FileService(settings.base_dir)
    _store = MetadataStore(settings.metadata_path)


def main(
    base_dir: Path | None = None,
    *,
    port: int | None = None,
    metadata: str | None = None,
    log_dir: str | None = None,
    host: str = "127.0.0.1",
) -> None:
    """Resolve settings, set up logging, and serve the dashboard under uvicorn."""
    import uvicorn

    from codeview.logging import setup_logging

    settings = resolve_settings(base_dir or Path.cwd(), port=port, metadata=metadata, log_dir=log_dir)
    if settings.log_dir is not None:
        setup_logging(settings.log_dir)
    configure(settings)

    app = create_app()
    logger.info(
        "Serving %s on %s:%d (metadata: %s)",
        settings.base_dir,
        host,
        settings.port,
        settings.metadata_path or "in-memory",
    )
    print(f"codeview: http://{host}:{settings.port}")
    uvicorn.run(app, host=host, port=settings.port, log_level="warning")
