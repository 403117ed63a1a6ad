"""Runtime configuration.

Resolved lowest to highest precedence: built-in defaults,
``<base_dir>/.codeview.json``, ``CODEVIEW_*`` environment variables, then
explicit overrides from the CLI.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from codeview.types.core import ViewerConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".codeview.json"
DEFAULT_PORT = 8080
DEFAULT_METADATA = "metadata.json"

ENV_PORT = "CODEVIEW_PORT"
ENV_METADATA = "CODEVIEW_METADATA"
ENV_LOG_DIR = "CODEVIEW_LOG_DIR"


def read_config(base_dir: Path) -> ViewerConfig:
    """Read <base_dir>/.codeview.json. Returns defaults if missing or corrupt."""
    defaults = ViewerConfig(port=DEFAULT_PORT, metadata=DEFAULT_METADATA)
    config_path = base_dir / CONFIG_FILENAME
    if not config_path.exists():
        return defaults
    try:
        loaded = json.loads(config_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return defaults
    if not isinstance(loaded, dict):
        logger.warning("Ignoring %s: expected a JSON object", config_path)
        return defaults

    config = ViewerConfig(**defaults)
    port = loaded.get("port")
    if port is not None:
        if isinstance(port, int) and not isinstance(port, bool):
            config["port"] = port
        else:
            logger.warning("Ignoring non-integer port %r in %s", port, config_path)
    for key in ("metadata", "log_dir"):
        value = loaded.get(key)
        if isinstance(value, str):
            config[key] = value  # type: ignore[literal-required]
    return config


def _env_port() -> int | None:
    raw = os.getenv(ENV_PORT)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Unparseable %s=%r, ignoring", ENV_PORT, raw)
        return None


@dataclass(frozen=True)
class Settings:
    """Fully resolved settings for one server run."""

    base_dir: Path
    port: int = DEFAULT_PORT
    metadata_path: Path | None = None
    log_dir: Path | None = None


def _under(base_dir: Path, raw: str) -> Path:
    path = Path(raw).expanduser()
    return path if path.is_absolute() else base_dir / path


def resolve_settings(
    base_dir: Path,
    *,
    port: int | None = None,
    metadata: str | None = None,
    log_dir: str | None = None,
) -> Settings:
    """Layer file, environment, and explicit overrides into Settings.

    An empty ``metadata`` string at any layer disables persistence.
    """
    base_dir = base_dir.resolve()
    config = read_config(base_dir)

    resolved_port = config.get("port", DEFAULT_PORT)
    env_port = _env_port()
    if env_port is not None:
        resolved_port = env_port
    if port is not None:
        resolved_port = port

    resolved_metadata = config.get("metadata", DEFAULT_METADATA)
    env_metadata = os.getenv(ENV_METADATA)
    if env_metadata is not None:
        resolved_metadata = env_metadata
    if metadata is not None:
        resolved_metadata = metadata

    resolved_log_dir = config.get("log_dir")
    env_log_dir = os.getenv(ENV_LOG_DIR)
    if env_log_dir:
        resolved_log_dir = env_log_dir
    if log_dir:
        resolved_log_dir = log_dir

    return Settings(
        base_dir=base_dir,
        port=resolved_port,
        metadata_path=_under(base_dir, resolved_metadata) if resolved_metadata else None,
        log_dir=_under(base_dir, resolved_log_dir) if resolved_log_dir else None,
    )
