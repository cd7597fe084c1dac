"""Editor rule syncing between worktrees.

Copies ``.cursor/rules/*.mdc`` from the main worktree. Ignored files
(local credentials and the like) never travel through git, so they are
always copied; tracked files are only copied when missing.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from wt import git_ops
from wt.errors import wrap_error
from wt.logging_config import get_logger
from wt.models import RuleSyncResult

logger = get_logger(__name__)

RULES_DIR = Path(".cursor") / "rules"
RULE_FILE_EXTENSION = ".mdc"


def find_rule_files(worktree_path: Path) -> list[Path]:
    rules_dir = worktree_path / RULES_DIR
    try:
        entries = sorted(rules_dir.iterdir())
    except OSError:
        return []
    return [
        entry for entry in entries if entry.name.endswith(RULE_FILE_EXTENSION) and entry.is_file()
    ]


def sync_rules(main_worktree: Path, target_worktree: Path) -> RuleSyncResult:
    if main_worktree.resolve() == target_worktree.resolve():
        return RuleSyncResult()
    if not (main_worktree / RULES_DIR).is_dir():
        return RuleSyncResult()

    rule_files = find_rule_files(main_worktree)
    if not rule_files:
        return RuleSyncResult()

    target_dir = target_worktree / RULES_DIR
    copied: list[str] = []
    skipped = 0
    try:
        target_dir.mkdir(parents=True, exist_ok=True)
        for source in rule_files:
            target = target_dir / source.name
            if git_ops.is_path_ignored(main_worktree, source) or not target.exists():
                shutil.copyfile(source, target)
                copied.append(source.name)
            else:
                skipped += 1
    except OSError as exc:
        raise wrap_error(exc, f"Failed to sync rules into {target_worktree}") from exc
    logger.info("Synced %d rule files into %s (%d skipped)", len(copied), target_worktree, skipped)
    return RuleSyncResult(copied_count=len(copied), skipped_count=skipped, copied_files=copied)
