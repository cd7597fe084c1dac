from __future__ import annotations

import logging
import shutil
from pathlib import Path

import pytest
from click.testing import CliRunner

from wt import config
from wt.cli import main


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def runner(repo: Path, global_config: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    monkeypatch.setattr(config, "GLOBAL_CONFIG_PATH", global_config)
    monkeypatch.chdir(repo)
    return CliRunner()


def test_version() -> None:
    result = CliRunner().invoke(main, ["--version"])
    assert result.exit_code == 0
    assert "1.0.0" in result.output


def test_help_lists_commands() -> None:
    result = CliRunner().invoke(main, [])
    assert result.exit_code == 0
    for command in ("create", "switch", "remove", "status", "ports", "shell-init"):
        assert command in result.output


def test_create_list_and_cd(runner: CliRunner, repo: Path) -> None:
    result = runner.invoke(main, ["create", "feature", "--no-hooks"])
    assert result.exit_code == 0, result.output
    assert "Worktree created!" in result.output
    assert (repo.parent / "repo-feature").is_dir()

    result = runner.invoke(main, ["ls"])
    assert result.exit_code == 0
    assert "feature" in result.output
    assert "worktree/feature" in result.output

    result = runner.invoke(main, ["cd", "feature"])
    assert result.exit_code == 0
    assert result.output == f"{repo.parent / 'repo-feature'}\n"


def test_create_existing_reports_error(runner: CliRunner) -> None:
    assert runner.invoke(main, ["new", "feature"]).exit_code == 0
    result = runner.invoke(main, ["create", "feature"])
    assert result.exit_code == 1
    assert "Error: Worktree already exists" in result.output


def test_status_shows_ports(runner: CliRunner) -> None:
    runner.invoke(main, ["create", "feature"])
    result = runner.invoke(main, ["st"])
    assert result.exit_code == 0
    assert "PORTS" in result.output
    assert "4000/5173" in result.output
    assert "4001/5174" in result.output


def test_switch_provisions_env(runner: CliRunner, repo: Path) -> None:
    (repo / "apps" / "api").mkdir(parents=True)
    (repo / "apps" / "api" / ".env").write_text("PORT=4000\nSECRET=abc\n")
    runner.invoke(main, ["create", "feature"])

    result = runner.invoke(main, ["switch", "feature", "--no-editor", "--no-deps"])
    assert result.exit_code == 0, result.output
    assert "Ports: API=4001, Web=5174" in result.output
    env = repo.parent / "repo-feature" / "apps" / "api" / ".env"
    assert env.read_text() == "PORT=4001\nSECRET=abc\n"


def test_switch_without_name_needs_terminal(runner: CliRunner) -> None:
    result = runner.invoke(main, ["switch"])
    assert result.exit_code == 2
    assert "Please provide a worktree name" in result.output


def test_switch_unknown_worktree(runner: CliRunner) -> None:
    result = runner.invoke(main, ["sw", "ghost", "--no-editor"])
    assert result.exit_code == 1
    assert "Worktree not found: ghost" in result.output


def test_remove(runner: CliRunner, repo: Path) -> None:
    runner.invoke(main, ["create", "feature"])
    result = runner.invoke(main, ["rm", "feature", "--yes"])
    assert result.exit_code == 0, result.output
    assert not (repo.parent / "repo-feature").exists()


def test_remove_main_fails(runner: CliRunner, repo: Path) -> None:
    result = runner.invoke(main, ["remove", "main", "-y", "--force"])
    assert result.exit_code == 1
    assert "Cannot remove main worktree" in result.output
    assert repo.exists()


@pytest.mark.skipif(shutil.which("bash") is None, reason="bash missing")
def test_remove_runs_pre_remove_hook(runner: CliRunner, repo: Path) -> None:
    script = repo / "scripts" / "worktree-hooks.sh"
    script.parent.mkdir()
    script.write_text('echo "$1" >> "$(pwd)/hook.log"\n')
    runner.invoke(main, ["create", "feature"])

    result = runner.invoke(main, ["remove", "feature", "-y"])
    assert result.exit_code == 0, result.output
    assert (repo / "hook.log").read_text().split() == ["post-create", "pre-remove"]


def test_outside_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    outside = tmp_path / "plain"
    outside.mkdir()
    monkeypatch.chdir(outside)
    result = CliRunner().invoke(main, ["list"])
    assert result.exit_code == 1
    assert "Not a git repository" in result.output


def test_shell_init() -> None:
    result = CliRunner().invoke(main, ["shell-init"])
    assert result.exit_code == 0
    assert "wtcd()" in result.output
    assert "function wtcd" in result.output


def test_switch_rule_sync_failure_reports_error(runner: CliRunner, repo: Path) -> None:
    rules_dir = repo / ".cursor" / "rules"
    rules_dir.mkdir(parents=True)
    (rules_dir / "style.mdc").write_text("tabs")
    runner.invoke(main, ["create", "feature"])
    (repo.parent / "repo-feature" / ".cursor").write_text("not a directory")

    result = runner.invoke(
        main, ["switch", "feature", "--no-editor", "--no-deps", "--no-hooks"]
    )
    assert result.exit_code == 1
    assert "Error: Failed to sync rules into" in result.output
