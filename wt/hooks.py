"""Repository hook script detection and execution.

A repository can ship one script that wt calls at lifecycle points. The
script receives the hook type as its first argument and a JSON payload on
stdin. Hook failures are reported, never fatal.
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Literal

from wt.logging_config import get_logger
from wt.models import HookPayload, HookResult

logger = get_logger(__name__)

HOOK_SCRIPT_LOCATIONS = (
    "scripts/worktree-hooks.sh",
    ".worktree/hooks.sh",
    "worktree-hooks.sh",
)

HookType = Literal["post-create", "post-switch", "pre-remove"]


def find_hook_script(project_root: Path) -> Path | None:
    for location in HOOK_SCRIPT_LOCATIONS:
        script = project_root / location
        if script.is_file():
            return script
    return None


def has_hooks(project_root: Path) -> bool:
    return find_hook_script(project_root) is not None


def execute_hook(hook_type: HookType, payload: HookPayload, project_root: Path) -> HookResult:
    """Run the repository hook script, if there is one."""
    script = find_hook_script(project_root)
    if script is None:
        return HookResult(executed=False)

    logger.debug("Running %s hook %s", hook_type, script)
    try:
        result = subprocess.run(
            ["bash", str(script), hook_type],
            cwd=project_root,
            input=json.dumps(payload.to_dict()),
            text=True,
            check=False,
        )
    except OSError as exc:
        return HookResult(executed=True, exit_code=1, script_path=script, error=str(exc))
    return HookResult(executed=True, exit_code=result.returncode, script_path=script)


def execute_hook_safe(hook_type: HookType, payload: HookPayload, project_root: Path) -> HookResult:
    """Run a hook, logging failures instead of raising."""
    result = execute_hook(hook_type, payload, project_root)
    if result.executed and result.exit_code != 0:
        logger.warning("Hook '%s' exited with code %d", hook_type, result.exit_code)
        if result.error:
            logger.warning("Hook error: %s", result.error)
    return result
