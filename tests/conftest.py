"""Shared pytest fixtures for codeview tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from codeview.store import MetadataStore


@pytest.fixture
def store() -> MetadataStore:
    """In-memory store with persistence disabled."""
    return MetadataStore()


@pytest.fixture
def metadata_path(tmp_path: Path) -> Path:
    return tmp_path / "metadata.json"


@pytest.fixture
def persistent_store(metadata_path: Path) -> MetadataStore:
    """Store backed by a JSON file under tmp_path (not yet written)."""
    return MetadataStore(metadata_path)


@pytest.fixture
def source_tree(tmp_path: Path) -> Path:
    """A small project: one source file, one test file, a subdir and a dotfile.

    ``pkg/calc.go`` lines 3-5 hold ``Add``; ``pkg/calc_test.go`` lines 3-9
    hold ``TestAdd`` with inputs on 4-5 and the expectation on 7.
    """
    root = tmp_path / "project"
    pkg = root / "pkg"
    pkg.mkdir(parents=True)
    (pkg / "calc.go").write_text(
        "package pkg\n\nfunc Add(a, b int) int {\n\treturn a + b\n}\n",
    )
    (pkg / "calc_test.go").write_text(
        "package pkg\n"
        "\n"
        "func TestAdd(t *testing.T) {\n"
        "\ta := 2\n"
        "\tb := 3\n"
        "\tgot := Add(a, b)\n"
        "\tif got != 5 {\n"
        '\t\tt.Fatal("bad")\n'
        "\t}\n"
        "}\n",
    )
    (root / "README.md").write_text("# project\n")
    (root / ".hidden").write_text("secret\n")
    return root


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()
