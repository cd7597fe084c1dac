"""Dependency installation and editor launching for a worktree."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from wt.logging_config import get_logger
from wt.worktrees import DEPS_MARKER_DIR

logger = get_logger(__name__)

LOCKFILE_MANAGERS = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
)


def package_manager_for(worktree_path: Path) -> str:
    for lockfile, manager in LOCKFILE_MANAGERS:
        if (worktree_path / lockfile).exists():
            return manager
    return "npm"


def needs_install(worktree_path: Path) -> bool:
    return (worktree_path / "package.json").is_file() and not (
        worktree_path / DEPS_MARKER_DIR
    ).exists()


def install_dependencies(worktree_path: Path) -> bool:
    """Install JavaScript dependencies. Returns False when it did not succeed."""
    manager = package_manager_for(worktree_path)
    if shutil.which(manager) is None:
        logger.warning("%s not found, skipping dependency install", manager)
        return False
    try:
        result = subprocess.run([manager, "install"], cwd=worktree_path, check=False)
    except OSError as exc:
        logger.warning("%s install failed to start: %s", manager, exc)
        return False
    if result.returncode != 0:
        logger.warning("%s install exited with code %d", manager, result.returncode)
        return False
    return True


def open_editor(editor_cmd: str, path: Path) -> bool:
    """Launch the editor detached from this process."""
    if not editor_cmd or shutil.which(editor_cmd) is None:
        logger.warning("Editor '%s' not found", editor_cmd)
        return False
    try:
        subprocess.Popen(
            [editor_cmd, str(path)],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as exc:
        logger.warning("Could not launch %s: %s", editor_cmd, exc)
        return False
    return True
