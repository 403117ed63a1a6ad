# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
# NEVER import from models.py, store.py, or the dashboard; doing so creates circular imports.
"""Typed wire-format contracts for codeview models and API layers."""

from __future__ import annotations

from codeview.types.core import (
    CommentDict,
    FileMetadataDict,
    ISOTimestamp,
    LineRangeDict,
    TestReferenceDict,
    TestSuggestionDict,
    ViewerConfig,
)

__all__ = [
    "CommentDict",
    "FileMetadataDict",
    "ISOTimestamp",
    "LineRangeDict",
    "TestReferenceDict",
    "TestSuggestionDict",
    "ViewerConfig",
]
