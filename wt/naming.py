"""Naming conventions for worktree directories.

A worktree called ``feature`` of a repository checked out at
``~/code/shop`` lives at ``~/code/shop-feature``.
"""

from __future__ import annotations

from pathlib import Path, PurePath

from wt import git_ops

MAIN_NAME = "main"


def repo_base_name(main_worktree: PurePath | str) -> str:
    """Final path segment of the main worktree, or "unknown" for a root path."""
    parts = [part for part in str(main_worktree).split("/") if part]
    return parts[-1] if parts else "unknown"


def parent_dir(path: PurePath | str) -> Path:
    parts = [part for part in str(path).split("/") if part]
    return Path("/" + "/".join(parts[:-1]))


def worktree_path_for(main_worktree: PurePath | str, short_name: str) -> Path:
    return parent_dir(main_worktree) / f"{repo_base_name(main_worktree)}-{short_name}"


def worktree_path(cwd: Path, short_name: str) -> Path:
    """Canonical on-disk location for the worktree ``short_name``."""
    return worktree_path_for(git_ops.find_main_worktree(cwd), short_name)


def resolved_name(raw_path: PurePath | str, repo_name: str, is_main: bool) -> str:
    """Short name of a worktree, derived from its directory name."""
    if is_main:
        return MAIN_NAME
    base = repo_base_name(raw_path) if str(raw_path).strip("/") else ""
    prefix = f"{repo_name}-"
    if base.startswith(prefix):
        return base[len(prefix) :]
    return base


def is_main_name(name: str) -> bool:
    return name.lower() == MAIN_NAME
