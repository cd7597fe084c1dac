from __future__ import annotations

import subprocess
from pathlib import Path
from unittest import mock

import pytest

from wt import deps


@pytest.mark.parametrize(
    ("lockfile", "manager"),
    [("pnpm-lock.yaml", "pnpm"), ("yarn.lock", "yarn"), ("bun.lockb", "bun"), (None, "npm")],
)
def test_package_manager_for(tmp_path: Path, lockfile: str | None, manager: str) -> None:
    if lockfile:
        (tmp_path / lockfile).write_text("")
    assert deps.package_manager_for(tmp_path) == manager


def test_needs_install(tmp_path: Path) -> None:
    assert not deps.needs_install(tmp_path)
    (tmp_path / "package.json").write_text("{}")
    assert deps.needs_install(tmp_path)
    (tmp_path / "node_modules").mkdir()
    assert not deps.needs_install(tmp_path)


def test_install_dependencies_runs_manager(tmp_path: Path) -> None:
    (tmp_path / "yarn.lock").write_text("")
    with mock.patch.object(deps.shutil, "which", return_value="/usr/bin/yarn"), mock.patch.object(
        deps.subprocess, "run", return_value=subprocess.CompletedProcess(["yarn"], 0)
    ) as run:
        assert deps.install_dependencies(tmp_path)
    run.assert_called_once_with(["yarn", "install"], cwd=tmp_path, check=False)


def test_install_dependencies_failure(tmp_path: Path) -> None:
    with mock.patch.object(deps.shutil, "which", return_value="/usr/bin/npm"), mock.patch.object(
        deps.subprocess, "run", return_value=subprocess.CompletedProcess(["npm"], 1)
    ):
        assert not deps.install_dependencies(tmp_path)


def test_install_dependencies_missing_manager(tmp_path: Path) -> None:
    with mock.patch.object(deps.shutil, "which", return_value=None):
        assert not deps.install_dependencies(tmp_path)


def test_open_editor(tmp_path: Path) -> None:
    with mock.patch.object(deps.shutil, "which", return_value="/usr/bin/code"), mock.patch.object(
        deps.subprocess, "Popen"
    ) as popen:
        assert deps.open_editor("code", tmp_path)
    args, kwargs = popen.call_args
    assert args[0] == ["code", str(tmp_path)]
    assert kwargs["start_new_session"] is True


def test_open_editor_missing(tmp_path: Path) -> None:
    with mock.patch.object(deps.shutil, "which", return_value=None):
        assert not deps.open_editor("cursor", tmp_path)
    assert not deps.open_editor("", tmp_path)
