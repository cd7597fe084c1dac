"""Worktree lifecycle: listing, creation, removal and detached HEAD repair."""

from __future__ import annotations

import datetime as dt
from pathlib import Path

from wt import git_ops, naming
from wt.errors import WorktreeError
from wt.logging_config import get_logger
from wt.models import CreateResult, RawWorktree, WorktreeRecord

logger = get_logger(__name__)

ENV_FILE_LOCATIONS = (".env", "apps/api/.env", "apps/web/.env", "packages/api/.env")
DEPS_MARKER_DIR = "node_modules"
DEFAULT_BRANCH_PREFIX = "worktree/"
EPOCH = dt.datetime.fromtimestamp(0, tz=dt.timezone.utc)


def validate_name(name: str) -> None:
    """Reject names that would escape the naming convention."""
    if not name or not name.strip():
        raise WorktreeError.invalid_name(name, "name cannot be empty")
    if "/" in name:
        raise WorktreeError.invalid_name(name, "name cannot contain slashes")
    if ".." in name:
        raise WorktreeError.invalid_name(name, 'name cannot contain ".."')
    if name.startswith("-"):
        raise WorktreeError.invalid_name(name, 'name cannot start with "-"')


def default_branch_name(name: str) -> str:
    return f"{DEFAULT_BRANCH_PREFIX}{name}"


def _has_env_files(path: Path) -> bool:
    try:
        return any((path / location).exists() for location in ENV_FILE_LOCATIONS)
    except OSError:
        return False


def _has_deps(path: Path) -> bool:
    try:
        return (path / DEPS_MARKER_DIR).exists()
    except OSError:
        return False


def _last_modified(path: Path) -> dt.datetime:
    try:
        return dt.datetime.fromtimestamp(path.stat().st_mtime, tz=dt.timezone.utc)
    except OSError:
        return EPOCH


def _build_record(raw: RawWorktree, main_worktree: Path, repo_name: str) -> WorktreeRecord:
    is_main = raw.path == main_worktree
    return WorktreeRecord(
        name=naming.resolved_name(raw.path, repo_name, is_main),
        path=raw.path,
        branch=raw.branch,
        is_main=is_main,
        commit_sha=raw.head,
        is_detached=raw.detached,
        has_env=_has_env_files(raw.path),
        has_deps=_has_deps(raw.path),
        last_modified=_last_modified(raw.path),
    )


def list_worktrees(cwd: Path) -> list[WorktreeRecord]:
    """List all worktrees in git's order with their filesystem status."""
    main_worktree = git_ops.find_main_worktree(cwd)
    repo_name = naming.repo_base_name(main_worktree)
    records = [
        _build_record(raw, main_worktree, repo_name) for raw in git_ops.list_raw_worktrees(cwd)
    ]
    logger.debug("Found %d worktrees", len(records))
    return records


def find_by_name(records: list[WorktreeRecord], name: str) -> WorktreeRecord | None:
    if naming.is_main_name(name):
        return next((wt for wt in records if wt.is_main), None)
    return next((wt for wt in records if wt.name == name), None)


def get_by_name(cwd: Path, name: str) -> WorktreeRecord | None:
    """Look up a worktree by short name; "main" matches case-insensitively."""
    return find_by_name(list_worktrees(cwd), name)


def _check_branch_available(main_worktree: Path, cwd: Path, branch: str) -> None:
    """A local branch must not be checked out elsewhere; any other ref must resolve."""
    if git_ops.branch_exists(main_worktree, branch):
        for raw in git_ops.list_raw_worktrees(cwd):
            if raw.branch == branch:
                raise WorktreeError.branch_in_use(branch, raw.path)
        return
    if not git_ops.ref_exists(main_worktree, f"{branch}^{{commit}}") and not git_ops.ref_exists(
        main_worktree, f"refs/remotes/origin/{branch}"
    ):
        raise WorktreeError.branch_not_found(branch)


def create_worktree(
    name: str,
    cwd: Path,
    branch: str | None = None,
    new_branch: str | None = None,
    from_branch: str | None = None,
    skip_fetch: bool = False,
) -> CreateResult:
    """Create a worktree next to the main one.

    With ``from_branch`` the new branch starts at ``origin/<from_branch>``
    after a best-effort fetch. ``new_branch`` names the branch explicitly;
    ``branch`` checks out an existing branch; otherwise ``worktree/<name>``
    is created.
    """
    validate_name(name)

    main_worktree = git_ops.find_main_worktree(cwd)
    target = naming.worktree_path_for(main_worktree, name)
    if target.exists():
        raise WorktreeError.worktree_exists(target)

    if branch and not new_branch:
        _check_branch_available(main_worktree, cwd, branch)

    fetched = False
    if from_branch and not skip_fetch:
        try:
            git_ops.fetch_remote(main_worktree)
            fetched = True
        except git_ops.GitError as exc:
            logger.warning("Fetch failed, continuing without it: %s", exc.stderr)

    base = f"origin/{from_branch}" if from_branch else None
    base_used: str | None = None
    try:
        if new_branch:
            git_ops.worktree_add(main_worktree, target, new_branch=new_branch, base=base)
            base_used = base
        elif branch:
            git_ops.worktree_add(main_worktree, target, branch=branch)
        else:
            git_ops.worktree_add(
                main_worktree, target, new_branch=default_branch_name(name), base=base
            )
            base_used = base
    except git_ops.GitError as exc:
        raise WorktreeError.git_command("git worktree add", exc.stderr, exc) from exc
    logger.info("Created worktree %s at %s", name, target)

    record = get_by_name(cwd, name)
    if record is None:
        raise WorktreeError.worktree_not_found(name)
    return CreateResult(worktree=record, fetched=fetched, base_branch=base_used)


def remove_worktree(name: str, cwd: Path, force: bool = False) -> WorktreeRecord:
    """Remove a linked worktree; the main worktree can never be removed."""
    validate_name(name)

    record = get_by_name(cwd, name)
    if record is None:
        raise WorktreeError.worktree_not_found(name)
    if record.is_main:
        raise WorktreeError.git_command("git worktree remove", "Cannot remove main worktree")

    main_worktree = git_ops.find_main_worktree(cwd)
    try:
        git_ops.worktree_remove(main_worktree, record.path, force=force)
    except git_ops.GitError as exc:
        raise WorktreeError.git_command("git worktree remove", exc.stderr, exc) from exc
    logger.info("Removed worktree %s at %s", name, record.path)
    return record


def fix_detached_head(worktree_path: Path, name: str) -> str:
    """Make sure the worktree is on a branch and return that branch."""
    current = git_ops.get_current_branch(worktree_path)
    if current:
        return current

    branch = default_branch_name(name)
    try:
        if git_ops.branch_exists(worktree_path, branch):
            git_ops.checkout(worktree_path, branch)
        else:
            git_ops.checkout_new_branch(worktree_path, branch)
    except git_ops.GitError as exc:
        raise WorktreeError.git_command("git checkout", exc.stderr, exc) from exc
    logger.info("Attached %s to branch %s", worktree_path, branch)
    return branch
