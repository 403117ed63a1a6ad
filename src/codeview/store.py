"""In-memory metadata store with whole-document JSON persistence.

Single source of truth for test references, test suggestions, and review
comments, keyed by the caller-supplied source path (never normalized here).
Both the JSON-RPC dispatcher and the dashboard API mutate through this
module.

One readers-writer lock guards the entire map.  Reads share it; writes hold
it exclusively for the mutation *and* the rewrite of the backing file, so a
slow disk stalls every other caller for the duration.  A failed write leaves
the in-memory change in place: memory can run ahead of disk until the next
successful write.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from collections.abc import Callable, Hashable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import TypeVar

from codeview.models import (
    Comment,
    FileMetadata,
    LineRange,
    TestReference,
    TestSuggestion,
    _next_timestamp,
    _now_iso,
)

logger = logging.getLogger(__name__)

_V = TypeVar("_V")


class _ReadWriteLock:
    """Writer-preferring readers-writer lock built on a single Condition."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


def _merge_by_key(existing: Iterable[_V], incoming: Iterable[_V], key: Callable[[_V], Hashable]) -> list[_V]:
    """Old entries first, then new ones: a collision overwrites in place, new keys append."""
    merged: dict[Hashable, _V] = {}
    for item in existing:
        merged[key(item)] = item
    for item in incoming:
        merged[key(item)] = item
    return list(merged.values())


class MetadataStore:
    """Thread-safe, optionally persistent map of source path -> FileMetadata.

    Construct once and share by reference.  With ``persist_path`` set, the
    document is loaded at construction and rewritten in full after every
    mutation.
    """

    def __init__(self, persist_path: str | Path | None = None) -> None:
        self.persist_path = Path(persist_path) if persist_path else None
        self._lock = _ReadWriteLock()
        self._metadata: dict[str, FileMetadata] = {}
        if self.persist_path is not None:
            self._load(self.persist_path)

    # -- Persistence ----------------------------------------------------------

    def _load(self, path: Path) -> None:
        """Populate the map from disk. Missing file is fine; corrupt file means empty."""
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.warning("Failed to read metadata from %s: %s", path, exc)
            return

        try:
            document = json.loads(raw)
            if not isinstance(document, dict):
                msg = f"expected a JSON object, got {type(document).__name__}"
                raise ValueError(msg)
            loaded = {str(key): FileMetadata.from_dict(value or {}) for key, value in document.items()}
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.warning("Failed to load metadata from %s, starting empty: %s", path, exc)
            return

        with self._lock.write():
            self._metadata = loaded
        logger.info("Loaded metadata for %d file(s) from %s", len(loaded), path)

    def _save_unlocked(self) -> None:
        """Rewrite the backing file. Caller must hold the lock."""
        if self.persist_path is None:
            return
        document = {path: meta.to_dict() for path, meta in self._metadata.items()}
        self.persist_path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")

    def save(self) -> None:
        """Explicitly persist the whole store. No-op without a persistence path."""
        if self.persist_path is None:
            return
        with self._lock.write():
            self._save_unlocked()

    def _entry(self, path: str) -> FileMetadata:
        meta = self._metadata.get(path)
        if meta is None:
            meta = self._metadata[path] = FileMetadata()
        return meta

    # -- Tests ----------------------------------------------------------------

    def set_test_metadata(self, path: str, tests: Iterable[TestReference]) -> None:
        """Replace the whole test list for *path*. An empty list clears it."""
        with self._lock.write():
            self._entry(path).tests = [replace(t) for t in tests]
            self._save_unlocked()

    def add_test_metadata(self, path: str, tests: Iterable[TestReference]) -> None:
        """Merge *tests* into *path* by ``(test_file, test_name)``.

        Entries absent from the batch are kept, colliding entries are replaced
        wholesale (no field-level merge), unseen keys are appended.
        """
        with self._lock.write():
            meta = self._entry(path)
            meta.tests = _merge_by_key(meta.tests, (replace(t) for t in tests), key=lambda t: t.key)
            self._save_unlocked()

    def get_test_metadata(self, path: str) -> FileMetadata | None:
        """Return a copy of everything recorded for *path*, or None if never written."""
        with self._lock.read():
            meta = self._metadata.get(path)
            return meta.copy() if meta is not None else None

    # -- Suggestions ----------------------------------------------------------

    def add_suggestions(self, path: str, suggestions: Iterable[TestSuggestion]) -> None:
        """Merge *suggestions* into *path* by ``suggested_name``."""
        with self._lock.write():
            meta = self._entry(path)
            meta.suggestions = _merge_by_key(meta.suggestions, (replace(s) for s in suggestions), key=lambda s: s.key)
            self._save_unlocked()

    def get_suggestions(self, path: str) -> list[TestSuggestion]:
        with self._lock.read():
            meta = self._metadata.get(path)
            return meta.copy().suggestions if meta is not None else []

    # -- Comments -------------------------------------------------------------

    def add_comment(
        self,
        path: str,
        *,
        line: int,
        content: str,
        context_lines: LineRange | None = None,
        author: str = "",
    ) -> Comment:
        """Append a new comment to *path* and return it with its generated id.

        Comments are append-only and never deduplicated.
        """
        now = _now_iso()
        comment = Comment(
            id=str(uuid.uuid4()),
            line=line,
            content=content,
            created_at=now,
            updated_at=now,
            context_lines=context_lines,
            author=author,
        )
        with self._lock.write():
            self._entry(path).comments.append(comment)
            self._save_unlocked()
        return replace(comment)

    def _find_comment(self, path: str, comment_id: str) -> Comment | None:
        meta = self._metadata.get(path)
        if meta is None:
            return None
        return next((c for c in meta.comments if c.id == comment_id), None)

    def update_comment(self, path: str, comment_id: str, content: str) -> bool:
        """Replace a comment's content. Unknown path or id is a silent no-op (returns False)."""
        with self._lock.write():
            comment = self._find_comment(path, comment_id)
            if comment is None:
                return False
            comment.content = content
            comment.updated_at = _next_timestamp(comment.updated_at)
            self._save_unlocked()
            return True

    def delete_comment(self, path: str, comment_id: str) -> bool:
        """Remove a comment. Unknown path or id is a silent no-op (returns False)."""
        with self._lock.write():
            comment = self._find_comment(path, comment_id)
            if comment is None:
                return False
            self._metadata[path].comments.remove(comment)
            self._save_unlocked()
            return True

    def toggle_comment_resolved(self, path: str, comment_id: str) -> bool:
        """Flip a comment's resolved flag. Unknown path or id is a silent no-op (returns False)."""
        with self._lock.write():
            comment = self._find_comment(path, comment_id)
            if comment is None:
                return False
            comment.resolved = not comment.resolved
            comment.updated_at = _next_timestamp(comment.updated_at)
            self._save_unlocked()
            return True

    def get_comments(self, path: str) -> list[Comment]:
        with self._lock.read():
            meta = self._metadata.get(path)
            return meta.copy().comments if meta is not None else []

    # -- Whole store ----------------------------------------------------------

    def get_all_metadata(self) -> dict[str, FileMetadata]:
        """Shallow snapshot of the whole map. Treat the values as read-only."""
        with self._lock.read():
            return dict(self._metadata)
