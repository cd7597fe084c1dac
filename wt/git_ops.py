"""Git subprocess operations."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Sequence

from wt.errors import WorktreeError, wrap_error
from wt.logging_config import get_logger
from wt.models import RawWorktree

logger = get_logger(__name__)


class GitError(Exception):
    """Git command failed."""

    def __init__(self, cmd: Sequence[str], stderr: str) -> None:
        self.cmd = cmd
        self.stderr = stderr
        super().__init__(f"git {' '.join(cmd)}: {stderr}")


def run(args: Sequence[str], cwd: Path | None = None) -> str:
    """Run a git command and return stdout."""
    logger.debug("git %s (cwd=%s)", " ".join(args), cwd)
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as exc:
        raise GitError(args, str(exc)) from exc
    if result.returncode != 0:
        raise GitError(args, result.stderr.strip() or result.stdout.strip())
    return result.stdout.strip()


def try_run(args: Sequence[str], cwd: Path | None = None) -> str | None:
    """Run a git command, returning None on failure."""
    try:
        return run(args, cwd=cwd)
    except GitError:
        return None


def find_git_root(cwd: Path) -> Path:
    """Get the top-level directory of the repository containing ``cwd``."""
    try:
        return Path(run(["rev-parse", "--show-toplevel"], cwd=cwd))
    except GitError as exc:
        raise WorktreeError.not_a_repository(cwd) from exc


def parse_worktree_porcelain(output: str) -> list[RawWorktree]:
    """Parse the output of git worktree list --porcelain, keeping emission order."""
    worktrees: list[RawWorktree] = []
    current: dict[str, object] | None = None

    for line in output.splitlines():
        if line.startswith("worktree "):
            if current is not None:
                worktrees.append(RawWorktree(**current))  # type: ignore[arg-type]
            current = {"path": Path(line[len("worktree ") :].strip())}
        elif current is None:
            continue
        elif line.startswith("HEAD "):
            current["head"] = line[len("HEAD ") :].strip()
        elif line.startswith("branch "):
            current["branch"] = line[len("branch ") :].strip().removeprefix("refs/heads/")
        elif line == "bare":
            current["bare"] = True
        elif line == "detached":
            current["detached"] = True
        elif line.startswith("locked"):
            current["locked"] = True
        elif line.startswith("prunable"):
            current["prunable"] = True

    if current is not None:
        worktrees.append(RawWorktree(**current))  # type: ignore[arg-type]

    return worktrees


def list_raw_worktrees(cwd: Path) -> list[RawWorktree]:
    """List worktrees as git reports them; the first entry is the main worktree."""
    try:
        output = run(["worktree", "list", "--porcelain"], cwd=cwd)
    except GitError as exc:
        raise wrap_error(exc, "Failed to list worktrees") from exc
    return parse_worktree_porcelain(output)


def find_main_worktree(cwd: Path) -> Path:
    """Get the path of the main worktree (the first one git lists)."""
    try:
        output = run(["worktree", "list", "--porcelain"], cwd=cwd)
    except GitError as exc:
        if "not a git repository" in exc.stderr.lower():
            raise WorktreeError.not_a_repository(cwd) from exc
        raise wrap_error(exc, "Failed to find main worktree") from exc
    for line in output.splitlines():
        if line.startswith("worktree "):
            return Path(line[len("worktree ") :].strip())
    return find_git_root(cwd)


def get_current_branch(path: Path) -> str | None:
    """Get the checked-out branch, or None when HEAD is detached."""
    try:
        branch = run(["rev-parse", "--abbrev-ref", "HEAD"], cwd=path)
    except GitError as exc:
        raise wrap_error(exc, "Failed to get current branch") from exc
    if branch == "HEAD":
        return None
    return branch


def get_current_commit(path: Path) -> str:
    try:
        return run(["rev-parse", "HEAD"], cwd=path)
    except GitError as exc:
        raise wrap_error(exc, "Failed to get current commit") from exc


def branch_exists(path: Path, branch: str) -> bool:
    """Check if a local branch exists."""
    return try_run(["show-ref", "--verify", f"refs/heads/{branch}"], cwd=path) is not None


def ref_exists(path: Path, ref: str) -> bool:
    """Check if a fully qualified ref resolves."""
    return try_run(["rev-parse", "--verify", "--quiet", ref], cwd=path) is not None


def is_path_ignored(repo_path: Path, path: Path) -> bool:
    """Check if ``path`` matches the repository's ignore rules."""
    return try_run(["check-ignore", "--quiet", str(path)], cwd=repo_path) is not None


def fetch_remote(repo_path: Path, remote: str = "origin") -> None:
    """Fetch from a remote."""
    run(["fetch", remote], cwd=repo_path)


def worktree_add(
    repo_path: Path,
    path: Path,
    branch: str | None = None,
    new_branch: str | None = None,
    base: str | None = None,
) -> None:
    """Add a new worktree, either checking out ``branch`` or creating ``new_branch``."""
    args = ["worktree", "add"]
    if new_branch:
        args += ["-b", new_branch, str(path)]
        if base:
            args.append(base)
    else:
        args.append(str(path))
        if branch:
            args.append(branch)
    run(args, cwd=repo_path)


def worktree_remove(repo_path: Path, path: Path, force: bool = False) -> None:
    """Remove a worktree."""
    args = ["worktree", "remove", str(path)]
    if force:
        args.append("--force")
    run(args, cwd=repo_path)


def checkout(path: Path, branch: str) -> None:
    run(["checkout", branch], cwd=path)


def checkout_new_branch(path: Path, branch: str) -> None:
    run(["checkout", "-b", branch], cwd=path)
