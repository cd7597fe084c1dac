from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

import pytest

GIT_AVAILABLE = shutil.which("git") is not None


def run_git(args: list[str], cwd: Path) -> str:
    result = subprocess.run(
        ["git", *args], cwd=cwd, check=True, capture_output=True, text=True
    )
    return result.stdout.strip()


def init_repo(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    run_git(["init", "-q"], cwd=root)
    run_git(["symbolic-ref", "HEAD", "refs/heads/main"], cwd=root)
    run_git(["config", "user.email", "test@example.com"], cwd=root)
    run_git(["config", "user.name", "Test"], cwd=root)
    run_git(["config", "commit.gpgsign", "false"], cwd=root)
    (root / "README.md").write_text("hello\n")
    run_git(["add", "."], cwd=root)
    run_git(["commit", "-q", "-m", "init"], cwd=root)
    return root


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    """A fresh repository with one commit on ``main`` at ``<tmp>/repo``."""
    if not GIT_AVAILABLE:
        pytest.skip("git missing")
    return init_repo(tmp_path.resolve() / "repo")


@pytest.fixture
def global_config(tmp_path: Path) -> Path:
    """Path of a global config file that does not exist yet."""
    return tmp_path / "home.wtconfig"
