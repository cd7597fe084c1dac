"""MCP tool server exposing worktree operations to agents over stdio.

Every tool returns a JSON string. A ``WorktreeError`` is reported as
``{"error": ..., "code": ...}`` rather than raised to the client.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from fastmcp import FastMCP

from wt import naming, ports, worktrees
from wt.errors import WorktreeError
from wt.git_ops import find_git_root, find_main_worktree
from wt.logging_config import get_logger

logger = get_logger(__name__)

SERVER_NAME = "git-worktree-manager"


def _dump(data: Any) -> str:
    return json.dumps(data, indent=2)


def _error(exc: WorktreeError) -> str:
    logger.debug("Tool call failed: %s", exc.message)
    return _dump({"error": exc.message, "code": exc.code.value})


def _cwd(cwd: Optional[str]) -> Path:
    return Path(cwd) if cwd else Path.cwd()


def worktree_list(cwd: Optional[str] = None) -> str:
    """List all git worktrees for the repository, with their branch and status."""
    path = _cwd(cwd)
    try:
        find_git_root(path)
        main_worktree = find_main_worktree(path)
        records = worktrees.list_worktrees(path)
    except WorktreeError as exc:
        return _error(exc)
    return _dump(
        {
            "repository": naming.repo_base_name(main_worktree),
            "mainPath": str(main_worktree),
            "worktrees": [record.to_dict() for record in records],
        }
    )


def worktree_create(name: str, branch: Optional[str] = None, cwd: Optional[str] = None) -> str:
    """Create a worktree next to the main one, optionally checking out an existing branch."""
    try:
        result = worktrees.create_worktree(name, _cwd(cwd), branch=branch)
    except WorktreeError as exc:
        return _error(exc)
    return _dump({"success": True, "worktree": result.worktree.to_dict()})


def worktree_remove(name: str, force: bool = False, cwd: Optional[str] = None) -> str:
    """Remove a worktree. The main worktree cannot be removed."""
    try:
        worktrees.remove_worktree(name, _cwd(cwd), force=force)
    except WorktreeError as exc:
        return _error(exc)
    return _dump({"success": True, "removed": name})


def worktree_get(name: str, cwd: Optional[str] = None) -> str:
    """Get details of one worktree by name ("main" for the main worktree)."""
    try:
        if not name:
            raise WorktreeError.invalid_name(name, "name cannot be empty")
        record = worktrees.get_by_name(_cwd(cwd), name)
    except WorktreeError as exc:
        return _error(exc)
    if record is None:
        return _dump({"error": f"Worktree '{name}' not found"})
    return _dump({"worktree": record.to_dict()})


def worktree_ports() -> str:
    """Check what processes are running on common development ports."""
    return _dump({"ports": [status.to_dict() for status in ports.all_port_statuses()]})


TOOLS = (worktree_list, worktree_create, worktree_remove, worktree_get, worktree_ports)


def build_server() -> FastMCP:
    server = FastMCP(SERVER_NAME)
    for tool in TOOLS:
        server.tool()(tool)
    return server


def run_server() -> None:
    """Serve the tools on stdio until the client disconnects."""
    logger.info("Starting %s MCP server", SERVER_NAME)
    build_server().run()
