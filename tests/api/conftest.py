"""Fixtures for HTTP dashboard API tests (FastAPI)."""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

import codeview.dashboard as dash_module
from codeview.dashboard import create_app
from codeview.files import FileService
from codeview.store import MetadataStore


@pytest.fixture
def api_store(source_tree: Path) -> MetadataStore:
    """Persistent store living next to the source tree."""
    return MetadataStore(source_tree / "metadata.json")


@pytest.fixture
async def client(source_tree: Path, api_store: MetadataStore) -> AsyncIterator[AsyncClient]:
    """Test client serving ``source_tree`` with ``api_store``."""
    dash_module._store = api_store
    dash_module._files = FileService(source_tree)
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    dash_module._store = None
    dash_module._files = None
