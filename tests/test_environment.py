from __future__ import annotations

from pathlib import Path

import pytest

from wt import environment
from wt.errors import ErrorCode, WorktreeError
from wt.models import EnvRole, PortAllocation

PORTS = PortAllocation(api_port=4001, web_port=5174, offset=1)


def test_api_substitution_leaves_other_lines() -> None:
    content = "PORT=4000\nSECRET=abc"
    assert environment.substitute_port_vars(content, EnvRole.API, PORTS) == "PORT=4001\nSECRET=abc"


def test_web_substitution() -> None:
    content = "VITE_API_BASE=http://localhost:4000/api\nVITE_PORT=5173\nPORT=5173\n"
    assert environment.substitute_port_vars(content, EnvRole.WEB, PORTS) == (
        "VITE_API_BASE=http://localhost:4001/api\nVITE_PORT=5174\nPORT=5174\n"
    )


def test_root_substitution() -> None:
    content = "APP_URL=http://localhost:5173\nPORT=4000\nNAME=shop\n"
    assert environment.substitute_port_vars(content, EnvRole.ROOT, PORTS) == (
        "APP_URL=http://localhost:5174\nPORT=4001\nNAME=shop\n"
    )


def test_only_first_occurrence_is_replaced() -> None:
    content = "PORT=1\nOTHER=x\nPORT=2\n"
    assert environment.substitute_port_vars(content, EnvRole.API, PORTS) == (
        "PORT=4001\nOTHER=x\nPORT=2\n"
    )


def test_absent_keys_leave_content_unchanged() -> None:
    content = "# comment\nDATABASE_URL=postgres://x\n  PORT=9\nEXPORT=1\n"
    for role in EnvRole:
        assert environment.substitute_port_vars(content, role, PORTS) == content


def test_replacement_is_literal() -> None:
    content = "APP_URL=old\\1value\n"
    assert environment.substitute_port_vars(content, EnvRole.API, PORTS) == (
        "APP_URL=http://localhost:5174\n"
    )


def test_detect_env_files(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("A=1\n")
    (tmp_path / "apps" / "web").mkdir(parents=True)
    (tmp_path / "apps" / "web" / ".env").write_text("B=2\n")
    found = environment.detect_env_files(tmp_path)
    assert [(f.relative_path, f.role) for f in found] == [
        (".env", EnvRole.ROOT),
        ("apps/web/.env", EnvRole.WEB),
    ]
    assert all(f.exists for f in found)


def test_copy_env_file_replaces_symlink(tmp_path: Path) -> None:
    source = tmp_path / "main" / ".env"
    source.parent.mkdir()
    source.write_text("PORT=4000\nSECRET=abc\n")
    target = tmp_path / "feature" / ".env"
    target.parent.mkdir()
    target.symlink_to(source)

    environment.copy_env_file(source, target, EnvRole.API, PORTS)

    assert not target.is_symlink()
    assert target.read_text() == "PORT=4001\nSECRET=abc\n"
    assert source.read_text() == "PORT=4000\nSECRET=abc\n"


def test_copy_env_file_preserves_crlf(tmp_path: Path) -> None:
    source = tmp_path / "src.env"
    source.write_bytes(b"PORT=4000\r\nSECRET=abc\r\n")
    target = tmp_path / "out" / ".env"
    environment.copy_env_file(source, target, EnvRole.API, PORTS)
    assert target.read_bytes() == b"PORT=4001\r\nSECRET=abc\r\n"


def test_copy_env_file_missing_source(tmp_path: Path) -> None:
    with pytest.raises(WorktreeError) as excinfo:
        environment.copy_env_file(tmp_path / "nope", tmp_path / "out", EnvRole.API, PORTS)
    assert excinfo.value.code is ErrorCode.ENV_COPY_FAILED
    assert excinfo.value.source == str(tmp_path / "nope")


def test_setup_environment(tmp_path: Path) -> None:
    main = tmp_path / "main"
    (main / "apps" / "api").mkdir(parents=True)
    (main / "apps" / "api" / ".env").write_text("PORT=4000\nSECRET=abc")
    (main / "apps" / "web").mkdir(parents=True)
    (main / "apps" / "web" / ".env").write_text("VITE_PORT=5173\n")
    target = tmp_path / "feature"
    target.mkdir()

    result = environment.setup_environment(main, target, PORTS)

    assert result.configured
    assert result.files == ["apps/api/.env", "apps/web/.env"]
    assert (target / "apps" / "api" / ".env").read_text() == "PORT=4001\nSECRET=abc"
    assert (target / "apps" / "web" / ".env").read_text() == "VITE_PORT=5174\n"

    again = environment.setup_environment(main, target, PORTS)
    assert again.files == result.files
    assert (target / "apps" / "api" / ".env").read_text() == "PORT=4001\nSECRET=abc"


def test_setup_environment_without_env_files(tmp_path: Path) -> None:
    result = environment.setup_environment(tmp_path, tmp_path / "target", PORTS)
    assert not result.configured
    assert result.files == []
