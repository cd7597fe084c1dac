"""Layered configuration for wt.

Settings come from shell-style ``KEY=value`` files:

1. built-in defaults
2. ``~/.wtconfig`` (global user config)
3. ``.wtconfig`` in the main worktree (project config)

Later layers override earlier ones.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from wt import git_ops
from wt.errors import WorktreeError
from wt.logging_config import get_logger

logger = get_logger(__name__)

GLOBAL_CONFIG_PATH = Path.home() / ".wtconfig"
PROJECT_CONFIG_FILENAME = ".wtconfig"

_LINE_RE = re.compile(r"^([A-Z_]+)=(.*)$")


@dataclass(frozen=True)
class Config:
    """Effective settings for one command invocation."""

    editor_cmd: str = "cursor"
    base_api_port: int = 4000
    base_web_port: int = 5173
    base_branch: str | None = None

    def __post_init__(self) -> None:
        for name in ("base_api_port", "base_web_port"):
            port = getattr(self, name)
            if not 1 <= port <= 65535:
                raise ValueError(f"{name} must be between 1 and 65535, got {port}")


DEFAULT_CONFIG = Config()


@dataclass(frozen=True)
class Context:
    """Explicit per-command state threaded into every operation."""

    cwd: Path
    main_worktree: Path
    config: Config


def _parse_port(key: str, value: str, path: Path | str) -> int:
    try:
        port = int(value.strip(), 10)
    except ValueError as exc:
        raise WorktreeError.config_parse(path, f"Invalid {key} value: {value}", exc) from exc
    if not 1 <= port <= 65535:
        raise WorktreeError.config_parse(path, f"Invalid {key} value: {value}")
    return port


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse_config_text(content: str, path: Path | str) -> dict[str, Any]:
    """Parse config file content into a partial mapping of Config fields."""
    partial: dict[str, Any] = {}
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        match = _LINE_RE.match(line)
        if match is None:
            continue
        key, value = match.group(1), _unquote(match.group(2))

        if key == "EDITOR_CMD":
            partial["editor_cmd"] = value
        elif key == "BASE_API_PORT":
            partial["base_api_port"] = _parse_port(key, value, path)
        elif key == "BASE_WEB_PORT":
            partial["base_web_port"] = _parse_port(key, value, path)
        elif key == "BASE_BRANCH":
            if value.strip():
                partial["base_branch"] = value.strip()
        else:
            logger.debug("Ignoring unknown config key %s in %s", key, path)
    return partial


def _load_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.debug("Could not read config file %s: %s", path, exc)
        return {}
    return parse_config_text(content, path)


def load_global_config(path: Path | None = None) -> dict[str, Any]:
    return _load_file(path or GLOBAL_CONFIG_PATH)


def load_project_config(project_root: Path) -> dict[str, Any]:
    return _load_file(project_root / PROJECT_CONFIG_FILENAME)


def merge_configs(*partials: dict[str, Any]) -> Config:
    """Merge partial configs over the defaults; later ones win."""
    known = {f.name for f in fields(Config)}
    merged: dict[str, Any] = {}
    for partial in partials:
        merged.update({k: v for k, v in partial.items() if k in known and v is not None})
    return Config(**merged)


def load_config(project_root: Path, global_path: Path | None = None) -> Config:
    """Load the effective configuration for the project rooted at ``project_root``."""
    global_config = load_global_config(global_path)
    project_config = load_project_config(project_root)
    return merge_configs(global_config, project_config)


def build_context(cwd: Path, global_path: Path | None = None) -> Context:
    """Resolve the repository around ``cwd`` and load its configuration."""
    git_ops.find_git_root(cwd)
    main_worktree = git_ops.find_main_worktree(cwd)
    config = load_config(main_worktree, global_path)
    return Context(cwd=cwd, main_worktree=main_worktree, config=config)
