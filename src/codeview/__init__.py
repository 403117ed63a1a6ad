"""codeview: shared test-coverage, suggestion, and review-comment metadata for a codebase."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("codeview")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from codeview.models import Comment, FileMetadata, LineRange, TestReference, TestSuggestion
from codeview.store import MetadataStore

__all__ = [
    "Comment",
    "FileMetadata",
    "LineRange",
    "MetadataStore",
    "TestReference",
    "TestSuggestion",
    "__version__",
]
