"""Error taxonomy for wt.

Every failure that crosses a module boundary is a ``WorktreeError``. The
``code`` attribute is the discriminant; callers branch on it rather than
on exception subclasses.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class ErrorCode(str, Enum):
    NOT_GIT_REPO = "NOT_GIT_REPO"
    WORKTREE_NOT_FOUND = "WORKTREE_NOT_FOUND"
    WORKTREE_EXISTS = "WORKTREE_EXISTS"
    BRANCH_NOT_FOUND = "BRANCH_NOT_FOUND"
    BRANCH_IN_USE = "BRANCH_IN_USE"
    CONFIG_PARSE_ERROR = "CONFIG_PARSE_ERROR"
    GIT_COMMAND_FAILED = "GIT_COMMAND_FAILED"
    ENV_COPY_FAILED = "ENV_COPY_FAILED"
    INVALID_WORKTREE_NAME = "INVALID_WORKTREE_NAME"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class WorktreeError(Exception):
    """A categorized failure raised by a wt operation."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        cause: BaseException | None = None,
        **details: object,
    ) -> None:
        self.code = code
        self.message = message
        self.cause = cause
        self.details = details
        for key, value in details.items():
            setattr(self, key, value)
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, object]:
        return {
            "name": type(self).__name__,
            "code": self.code.value,
            "message": self.message,
            "cause": str(self.cause) if self.cause is not None else None,
        }

    @classmethod
    def not_a_repository(cls, path: Path | str) -> WorktreeError:
        return cls(ErrorCode.NOT_GIT_REPO, f"Not a git repository: {path}", path=str(path))

    @classmethod
    def worktree_not_found(cls, name: str) -> WorktreeError:
        return cls(ErrorCode.WORKTREE_NOT_FOUND, f"Worktree not found: {name}", name=name)

    @classmethod
    def worktree_exists(cls, path: Path | str) -> WorktreeError:
        return cls(
            ErrorCode.WORKTREE_EXISTS, f"Worktree already exists: {path}", worktree_path=str(path)
        )

    @classmethod
    def branch_not_found(cls, branch: str) -> WorktreeError:
        return cls(ErrorCode.BRANCH_NOT_FOUND, f"Branch not found: {branch}", branch=branch)

    @classmethod
    def branch_in_use(cls, branch: str, worktree_path: Path | str) -> WorktreeError:
        return cls(
            ErrorCode.BRANCH_IN_USE,
            f"Branch '{branch}' is already checked out in: {worktree_path}",
            branch=branch,
            worktree_path=str(worktree_path),
        )

    @classmethod
    def config_parse(
        cls, path: Path | str, reason: str, cause: BaseException | None = None
    ) -> WorktreeError:
        return cls(
            ErrorCode.CONFIG_PARSE_ERROR,
            f"Failed to parse config file {path}: {reason}",
            cause,
            config_path=str(path),
            reason=reason,
        )

    @classmethod
    def git_command(
        cls, command: str, message: str, cause: BaseException | None = None
    ) -> WorktreeError:
        return cls(
            ErrorCode.GIT_COMMAND_FAILED,
            f"Git command failed ({command}): {message}",
            cause,
            command=command,
        )

    @classmethod
    def env_copy(
        cls, source: Path | str, target: Path | str, cause: BaseException | None = None
    ) -> WorktreeError:
        message = f"Failed to copy env file from {source} to {target}"
        if cause is not None:
            message += f": {cause}"
        return cls(
            ErrorCode.ENV_COPY_FAILED, message, cause, source=str(source), target=str(target)
        )

    @classmethod
    def invalid_name(cls, name: str, reason: str) -> WorktreeError:
        return cls(
            ErrorCode.INVALID_WORKTREE_NAME,
            f"Invalid worktree name '{name}': {reason}",
            name=name,
            reason=reason,
        )

    @classmethod
    def unknown(cls, context: str, cause: BaseException) -> WorktreeError:
        return cls(ErrorCode.UNKNOWN_ERROR, f"{context}: {cause}", cause, context=context)


def wrap_error(error: BaseException, context: str) -> WorktreeError:
    """Return ``error`` if already categorized, otherwise wrap it as UNKNOWN_ERROR."""
    if isinstance(error, WorktreeError):
        return error
    return WorktreeError.unknown(context, error)
