"""Fixtures for JSON-RPC dispatcher tests."""

from __future__ import annotations

import pytest

from codeview.mcp_server import McpDispatcher
from codeview.store import MetadataStore


@pytest.fixture
def dispatcher(store: MetadataStore) -> McpDispatcher:
    return McpDispatcher(store)


@pytest.fixture
def persistent_dispatcher(persistent_store: MetadataStore) -> McpDispatcher:
    return McpDispatcher(persistent_store)
