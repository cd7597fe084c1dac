"""Port allocation and detection for worktrees.

Each worktree gets an offset: 0 for main, then 1..N by its position among
the non-main worktrees git lists. Ports are the configured bases plus the
offset, so removing a worktree shifts the ports of those listed after it.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

from wt import naming, worktrees
from wt.config import Config
from wt.logging_config import get_logger
from wt.models import PortAllocation, PortStatus

logger = get_logger(__name__)

COMMON_DEV_PORTS = (3000, 3001, 4000, 4001, 4002, 4003, 5173, 5174, 5175, 5176, 8080, 8081)


def offset_for(cwd: Path, short_name: str) -> int:
    """Port offset of ``short_name``; an unknown name gets the number of linked worktrees."""
    if naming.is_main_name(short_name):
        return 0

    offset = 0
    for record in worktrees.list_worktrees(cwd):
        if record.is_main:
            continue
        offset += 1
        if record.name == short_name:
            return offset
    return offset


def calculate_ports(config: Config, offset: int) -> PortAllocation:
    return PortAllocation(
        api_port=config.base_api_port + offset,
        web_port=config.base_web_port + offset,
        offset=offset,
    )


def _run_probe(args: list[str]) -> str:
    try:
        result = subprocess.run(
            args,
            check=False,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
        )
    except OSError as exc:
        logger.debug("%s unavailable: %s", args[0], exc)
        return ""
    if result.returncode != 0:
        return ""
    return result.stdout.strip()


def probe_port(port: int) -> PortStatus:
    """Report which process, if any, listens on ``port``. Never raises."""
    output = _run_probe(["lsof", "-t", f"-iTCP:{port}", "-sTCP:LISTEN"])
    if not output:
        return PortStatus(port=port, in_use=False)

    first = output.splitlines()[0].strip()
    try:
        pid = int(first)
    except ValueError:
        return PortStatus(port=port, in_use=False)

    process = _run_probe(["ps", "-p", str(pid), "-o", "comm="]) or "unknown"
    return PortStatus(port=port, in_use=True, pid=pid, process=process)


def all_port_statuses(ports: tuple[int, ...] = COMMON_DEV_PORTS) -> list[PortStatus]:
    return [probe_port(port) for port in ports]


def allocation_plan(config: Config, worktree_count: int) -> list[str]:
    """Describe the ports main and the first ``worktree_count`` worktrees would get."""
    lines = [f"main:       API={config.base_api_port}, Web={config.base_web_port}"]
    for index in range(1, worktree_count + 1):
        ports = calculate_ports(config, index)
        lines.append(f"worktree {index}: API={ports.api_port}, Web={ports.web_port}")
    return lines
