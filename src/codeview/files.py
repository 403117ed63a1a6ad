"""Read-only access to the source tree being annotated.

Paths are given relative to ``base_dir`` (absolute paths are accepted when
they point inside it).  Anything resolving outside ``base_dir`` is refused,
so ``..`` segments and symlinks cannot reach the rest of the filesystem.
"""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath

from codeview.types.api import FileContentDict, FileEntryDict, ListFilesResponse
from codeview.types.core import ISOTimestamp

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "text/plain"


def _mtime_iso(mtime: float) -> ISOTimestamp:
    return ISOTimestamp(datetime.fromtimestamp(mtime, UTC).isoformat())


def _join(parent: str, name: str) -> str:
    if parent in ("", "."):
        return name
    return str(PurePosixPath(parent) / name)


@dataclass
class FileEntry:
    name: str
    path: str
    is_dir: bool
    size: int
    mod_time: ISOTimestamp

    def to_dict(self) -> FileEntryDict:
        return {"name": self.name, "path": self.path, "isDir": self.is_dir, "size": self.size, "modTime": self.mod_time}


@dataclass
class FileContent:
    path: str
    name: str
    content: str
    size: int
    mod_time: ISOTimestamp
    mime_type: str

    @property
    def lines(self) -> list[str]:
        return self.content.splitlines()

    def to_dict(self) -> FileContentDict:
        return {
            "path": self.path,
            "name": self.name,
            "content": self.content,
            "size": self.size,
            "modTime": self.mod_time,
            "mimeType": self.mime_type,
        }


class FileService:
    """List directories and read files under one base directory."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir).resolve()

    def resolve(self, path: str) -> Path:
        """Map a caller path to an absolute path inside ``base_dir``.

        Raises ValueError if the result escapes ``base_dir``.
        """
        if path in ("", "."):
            return self.base_dir
        candidate = Path(path)
        resolved = (candidate if candidate.is_absolute() else self.base_dir / candidate).resolve()
        try:
            resolved.relative_to(self.base_dir)
        except ValueError:
            msg = f"Path escapes base directory: {path}"
            raise ValueError(msg) from None
        return resolved

    def list_files(self, path: str = ".") -> ListFilesResponse:
        """List a directory: directories first, then by name; dotfiles hidden."""
        full = self.resolve(path)
        if not full.exists():
            msg = f"path not found: {path}"
            raise FileNotFoundError(msg)
        if not full.is_dir():
            msg = f"path is not a directory: {path}"
            raise NotADirectoryError(msg)

        entries: list[FileEntry] = []
        for child in full.iterdir():
            if child.name.startswith("."):
                continue
            try:
                st = child.stat()
            except OSError:
                # Dangling symlink or a file removed mid-listing.
                logger.debug("Skipping unreadable entry %s", child)
                continue
            entries.append(
                FileEntry(
                    name=child.name,
                    path=_join(path, child.name),
                    is_dir=child.is_dir(),
                    size=st.st_size,
                    mod_time=_mtime_iso(st.st_mtime),
                )
            )
        entries.sort(key=lambda e: (not e.is_dir, e.name))
        return {"path": path, "files": [e.to_dict() for e in entries]}

    def read_file(self, path: str) -> FileContent:
        full = self.resolve(path)
        if not full.exists():
            msg = f"file not found: {path}"
            raise FileNotFoundError(msg)
        if full.is_dir():
            msg = f"path is a directory, not a file: {path}"
            raise IsADirectoryError(msg)

        st = full.stat()
        content = full.read_text(encoding="utf-8", errors="replace")
        mime_type, _ = mimetypes.guess_type(full.name)
        return FileContent(
            path=path,
            name=full.name,
            content=content,
            size=st.st_size,
            mod_time=_mtime_iso(st.st_mtime),
            mime_type=mime_type or DEFAULT_MIME_TYPE,
        )
