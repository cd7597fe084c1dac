"""Data models for wt."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class RawWorktree:
    """One block of ``git worktree list --porcelain`` output."""

    path: Path
    head: str = ""
    branch: str | None = None
    bare: bool = False
    detached: bool = False
    locked: bool = False
    prunable: bool = False


@dataclass(frozen=True)
class WorktreeRecord:
    """A checked-out worktree combined with filesystem probes."""

    name: str
    path: Path
    branch: str | None
    is_main: bool
    commit_sha: str
    is_detached: bool
    has_env: bool
    has_deps: bool
    last_modified: dt.datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "path": str(self.path),
            "branch": self.branch,
            "isMain": self.is_main,
            "commitSha": self.commit_sha,
            "isDetached": self.is_detached,
            "hasEnv": self.has_env,
            "hasDeps": self.has_deps,
            "lastModified": self.last_modified.isoformat(),
        }


@dataclass(frozen=True)
class CreateResult:
    worktree: WorktreeRecord
    fetched: bool
    base_branch: str | None

    def to_dict(self) -> dict[str, object]:
        return {
            "worktree": self.worktree.to_dict(),
            "fetched": self.fetched,
            "baseBranch": self.base_branch,
        }


@dataclass(frozen=True)
class PortAllocation:
    api_port: int
    web_port: int
    offset: int

    def to_dict(self) -> dict[str, int]:
        return {"apiPort": self.api_port, "webPort": self.web_port, "offset": self.offset}


@dataclass(frozen=True)
class PortStatus:
    """What, if anything, is listening on a TCP port."""

    port: int
    in_use: bool
    pid: int | None = None
    process: str | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {"port": self.port, "inUse": self.in_use}
        if self.pid is not None:
            data["pid"] = self.pid
        if self.process is not None:
            data["process"] = self.process
        return data


class EnvRole(str, Enum):
    API = "api"
    WEB = "web"
    ROOT = "root"


@dataclass(frozen=True)
class EnvFileInfo:
    relative_path: str
    absolute_path: Path
    role: EnvRole
    exists: bool


@dataclass(frozen=True)
class ProvisionResult:
    configured: bool
    files: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RuleSyncResult:
    copied_count: int = 0
    skipped_count: int = 0
    copied_files: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class HookPayload:
    worktree_name: str
    worktree_path: Path
    main_worktree_path: Path
    is_main: bool
    port_offset: int

    def to_dict(self) -> dict[str, object]:
        return {
            "worktreeName": self.worktree_name,
            "worktreePath": str(self.worktree_path),
            "mainWorktreePath": str(self.main_worktree_path),
            "isMain": self.is_main,
            "portOffset": self.port_offset,
        }


@dataclass(frozen=True)
class HookResult:
    executed: bool
    exit_code: int = 0
    script_path: Path | None = None
    error: str | None = None
