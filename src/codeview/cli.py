"""CLI for codeview.

Usage:
    codeview serve                              # Serve the cwd on :8080
    codeview serve --dir ../proj --port 9000    # Explicit base dir and port
    codeview tests src/app.py                   # Tests recorded for a file
    codeview suggestions src/app.py --json      # Missing-test suggestions
    codeview comments src/app.py                # Review comments
"""

from __future__ import annotations

import json as json_mod
import sys
from pathlib import Path

import click

from codeview import __version__
from codeview.config import resolve_settings
from codeview.store import MetadataStore


def _open_store(base_dir: str, metadata: str | None) -> MetadataStore:
    """Load the persisted store for *base_dir*, exiting if there is none."""
    settings = resolve_settings(Path(base_dir), metadata=metadata)
    if settings.metadata_path is None:
        click.echo("Persistence is disabled (empty metadata path); nothing to show.", err=True)
        sys.exit(1)
    if not settings.metadata_path.exists():
        click.echo(f"No metadata file at {settings.metadata_path}", err=True)
        sys.exit(1)
    return MetadataStore(settings.metadata_path)


def _fmt_range(start: int, end: int) -> str:
    return f"{start}-{end}" if start or end else "-"


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="codeview")
def cli() -> None:
    """codeview: browse a codebase with its tests, suggestions and review comments."""


@cli.command()
@click.option("--dir", "base_dir", default=".", type=click.Path(exists=True, file_okay=False), help="Base directory to serve")
@click.option("--port", default=None, type=int, help="Port (default: 8080, or CODEVIEW_PORT)")
@click.option("--metadata", default=None, help="Metadata JSON path, relative to --dir ('' disables persistence)")
@click.option("--log-dir", default=None, help="Directory for codeview.log (default: no file logging)")
@click.option("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
def serve(base_dir: str, port: int | None, metadata: str | None, log_dir: str | None, host: str) -> None:
    """Start the dashboard API and JSON-RPC endpoint."""
    from codeview.dashboard import main as dashboard_main

    dashboard_main(Path(base_dir), port=port, metadata=metadata, log_dir=log_dir, host=host)


@cli.command()
@click.argument("path")
@click.option("--dir", "base_dir", default=".", type=click.Path(exists=True, file_okay=False), help="Base directory")
@click.option("--metadata", default=None, help="Metadata JSON path, relative to --dir")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def tests(path: str, base_dir: str, metadata: str | None, as_json: bool) -> None:
    """Show tests recorded for PATH."""
    store = _open_store(base_dir, metadata)
    meta = store.get_test_metadata(path)
    refs = meta.tests if meta is not None else []

    if as_json:
        click.echo(json_mod.dumps({"sourceFile": path, "tests": [t.to_dict() for t in refs]}, indent=2))
        return
    if not refs:
        click.echo(f"No tests recorded for {path}")
        return

    for t in refs:
        covered = _fmt_range(t.covered_lines.start, t.covered_lines.end)
        click.echo(f"{t.test_file}::{t.test_name}  covers {covered}")
        if t.comment:
            click.echo(f"    {t.comment}")
    click.echo(f"\n{len(refs)} test(s)")


@cli.command()
@click.argument("path")
@click.option("--dir", "base_dir", default=".", type=click.Path(exists=True, file_okay=False), help="Base directory")
@click.option("--metadata", default=None, help="Metadata JSON path, relative to --dir")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def suggestions(path: str, base_dir: str, metadata: str | None, as_json: bool) -> None:
    """Show missing-test suggestions for PATH."""
    store = _open_store(base_dir, metadata)
    items = store.get_suggestions(path)

    if as_json:
        click.echo(json_mod.dumps({"sourceFile": path, "suggestions": [s.to_dict() for s in items]}, indent=2))
        return
    if not items:
        click.echo(f"No suggestions for {path}")
        return

    for s in items:
        target = _fmt_range(s.target_lines.start, s.target_lines.end)
        click.echo(f"[{s.priority}] {s.suggested_name}  lines {target}")
        if s.reason:
            click.echo(f"    {s.reason}")


@cli.command()
@click.argument("path")
@click.option("--dir", "base_dir", default=".", type=click.Path(exists=True, file_okay=False), help="Base directory")
@click.option("--metadata", default=None, help="Metadata JSON path, relative to --dir")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def comments(path: str, base_dir: str, metadata: str | None, as_json: bool) -> None:
    """Show review comments on PATH."""
    store = _open_store(base_dir, metadata)
    items = store.get_comments(path)

    if as_json:
        click.echo(json_mod.dumps({"sourceFile": path, "comments": [c.to_dict() for c in items]}, indent=2))
        return
    if not items:
        click.echo(f"No comments on {path}")
        return

    for c in items:
        mark = "x" if c.resolved else " "
        by = f" ({c.author})" if c.author else ""
        click.echo(f"[{mark}] L{c.line}{by}: {c.content}")


if __name__ == "__main__":
    cli()
