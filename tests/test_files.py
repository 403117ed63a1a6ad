"""Tests for FileService: listing, reading and base-dir confinement."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from codeview.files import FileService


@pytest.fixture
def files(source_tree: Path) -> FileService:
    return FileService(source_tree)


class TestListFiles:
    def test_dirs_first_then_name_and_dotfiles_hidden(self, files: FileService, source_tree: Path) -> None:
        (source_tree / "aaa.txt").write_text("x")
        listing = files.list_files(".")
        assert [f["name"] for f in listing["files"]] == ["pkg", "README.md", "aaa.txt"]
        assert listing["path"] == "."

    def test_entry_fields(self, files: FileService) -> None:
        entry = next(f for f in files.list_files("pkg")["files"] if f["name"] == "calc.go")
        assert entry["path"] == "pkg/calc.go"
        assert entry["isDir"] is False
        assert entry["size"] > 0
        assert entry["modTime"].endswith("+00:00")

    def test_missing(self, files: FileService) -> None:
        with pytest.raises(FileNotFoundError):
            files.list_files("nope")

    def test_file_is_not_a_directory(self, files: FileService) -> None:
        with pytest.raises(NotADirectoryError):
            files.list_files("README.md")

    def test_dangling_symlink_skipped(self, files: FileService, source_tree: Path) -> None:
        os.symlink(source_tree / "does-not-exist", source_tree / "broken")
        names = [f["name"] for f in files.list_files(".")["files"]]
        assert "broken" not in names


class TestReadFile:
    def test_reads_content(self, files: FileService) -> None:
        content = files.read_file("pkg/calc.go")
        assert content.name == "calc.go"
        assert content.lines[2] == "func Add(a, b int) int {"
        assert content.to_dict()["mimeType"] == content.mime_type

    def test_directory_rejected(self, files: FileService) -> None:
        with pytest.raises(IsADirectoryError):
            files.read_file("pkg")

    def test_missing(self, files: FileService) -> None:
        with pytest.raises(FileNotFoundError):
            files.read_file("pkg/none.go")

    def test_invalid_utf8_replaced(self, files: FileService, source_tree: Path) -> None:
        (source_tree / "blob.bin").write_bytes(b"ok\xff\n")
        assert files.read_file("blob.bin").content.startswith("ok")


class TestConfinement:
    def test_dotdot_escape_rejected(self, files: FileService) -> None:
        with pytest.raises(ValueError, match="escapes base directory"):
            files.read_file("../outside.txt")

    def test_absolute_inside_base_allowed(self, files: FileService, source_tree: Path) -> None:
        assert files.read_file(str(source_tree / "README.md")).content == "# project\n"

    def test_absolute_outside_base_rejected(self, files: FileService, tmp_path: Path) -> None:
        (tmp_path / "outside.txt").write_text("no")
        with pytest.raises(ValueError):
            files.read_file(str(tmp_path / "outside.txt"))

    def test_symlink_out_of_base_rejected(self, files: FileService, source_tree: Path, tmp_path: Path) -> None:
        (tmp_path / "secret.txt").write_text("no")
        os.symlink(tmp_path / "secret.txt", source_tree / "link.txt")
        with pytest.raises(ValueError):
            files.read_file("link.txt")
