"""Environment file provisioning for worktrees.

Known ``.env`` files are copied from the main worktree into a worktree,
rewriting the port-related variables to the worktree's own ports.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path

from wt.errors import WorktreeError
from wt.logging_config import get_logger
from wt.models import EnvFileInfo, EnvRole, PortAllocation, ProvisionResult

logger = get_logger(__name__)

ENV_LOCATIONS: tuple[tuple[str, EnvRole], ...] = (
    (".env", EnvRole.ROOT),
    ("apps/api/.env", EnvRole.API),
    ("apps/web/.env", EnvRole.WEB),
    ("packages/api/.env", EnvRole.API),
)

Substitution = tuple[re.Pattern[str], Callable[[PortAllocation], str]]


def _rule(key: str, render: Callable[[PortAllocation], str]) -> Substitution:
    return re.compile(rf"^{key}=[^\r\n]*", re.MULTILINE), lambda p: f"{key}={render(p)}"


_API_PORT = _rule("PORT", lambda p: str(p.api_port))
_APP_URL = _rule("APP_URL", lambda p: f"http://localhost:{p.web_port}")
_VITE_API_BASE = _rule("VITE_API_BASE", lambda p: f"http://localhost:{p.api_port}/api")
_VITE_PORT = _rule("VITE_PORT", lambda p: str(p.web_port))
_WEB_PORT = _rule("PORT", lambda p: str(p.web_port))

SUBSTITUTIONS: dict[EnvRole, tuple[Substitution, ...]] = {
    EnvRole.API: (_API_PORT, _APP_URL),
    EnvRole.WEB: (_VITE_API_BASE, _VITE_PORT, _WEB_PORT),
    EnvRole.ROOT: (_API_PORT, _APP_URL, _VITE_API_BASE, _VITE_PORT),
}


def detect_env_files(project_root: Path) -> list[EnvFileInfo]:
    """Return the known env files that exist under ``project_root``."""
    found: list[EnvFileInfo] = []
    for relative_path, role in ENV_LOCATIONS:
        absolute_path = project_root / relative_path
        if absolute_path.exists():
            found.append(EnvFileInfo(relative_path, absolute_path, role, exists=True))
    return found


def substitute_port_vars(content: str, role: EnvRole, ports: PortAllocation) -> str:
    """Rewrite the first line of each port variable the role knows about."""
    result = content
    for pattern, render in SUBSTITUTIONS[role]:
        replacement = render(ports)
        result = pattern.sub(lambda _match: replacement, result, count=1)
    return result


def copy_env_file(source: Path, target: Path, role: EnvRole, ports: PortAllocation) -> None:
    """Copy ``source`` to ``target`` with port substitution.

    A symlink at ``target`` is replaced by a regular file rather than
    written through.
    """
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.is_symlink():
            target.unlink()
        with source.open(encoding="utf-8", newline="") as handle:
            content = handle.read()
        with target.open("w", encoding="utf-8", newline="") as handle:
            handle.write(substitute_port_vars(content, role, ports))
    except OSError as exc:
        raise WorktreeError.env_copy(source, target, exc) from exc


def setup_environment(
    source_root: Path, target_root: Path, ports: PortAllocation
) -> ProvisionResult:
    """Copy every detected env file from ``source_root`` into ``target_root``."""
    env_files = detect_env_files(source_root)
    if not env_files:
        return ProvisionResult(configured=False, files=[])

    copied: list[str] = []
    for env_file in env_files:
        copy_env_file(
            env_file.absolute_path, target_root / env_file.relative_path, env_file.role, ports
        )
        copied.append(env_file.relative_path)
        logger.info("Copied %s (%s ports)", env_file.relative_path, env_file.role.value)
    return ProvisionResult(configured=True, files=copied)
