from __future__ import annotations

import functools
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from wt import ui
from wt.app import App
from wt.errors import WorktreeError
from wt.logging_config import setup_logging

VERSION = "1.0.0"


def _handle_errors(func: Callable[..., None]) -> Callable[..., None]:
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> None:
        try:
            func(*args, **kwargs)
        except WorktreeError as exc:
            ui.error(exc.message)
            raise SystemExit(1) from exc

    return wrapper


def _app() -> App:
    return App(Path.cwd())


@click.group(context_settings={"help_option_names": ["-h", "--help"]}, invoke_without_command=True)
@click.version_option(VERSION, prog_name="wt")
@click.option("-v", "--verbose", is_flag=True, help="Show informational log messages.")
@click.option("--debug", is_flag=True, help="Show debug log messages.")
@click.option("--mcp", "run_mcp", is_flag=True, help="Start the MCP tool server on stdio.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, debug: bool, run_mcp: bool) -> None:
    """wt: git worktree manager."""
    setup_logging(verbose=verbose, debug=debug)
    if run_mcp:
        from wt.mcp_server import run_server

        run_server()
        return
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@click.command("list")
@_handle_errors
def list_cmd() -> None:
    """List all worktrees."""
    _app().list_worktrees()


@click.command("create")
@click.argument("name")
@click.argument("branch", required=False)
@click.option("--from", "from_branch", help="Base branch to create from (uses origin/<branch>).")
@click.option("--branch", "new_branch", help="Explicit name for the new branch.")
@click.option("--no-fetch", is_flag=True, help="Skip fetching from remote before creating.")
@click.option("--no-hooks", is_flag=True, help="Skip running post-create hooks.")
@_handle_errors
def create_cmd(
    name: str,
    branch: str | None,
    from_branch: str | None,
    new_branch: str | None,
    no_fetch: bool,
    no_hooks: bool,
) -> None:
    """Create a new worktree next to the main one."""
    _app().create(
        name,
        branch=branch,
        new_branch=new_branch,
        from_branch=from_branch,
        no_fetch=no_fetch,
        run_hooks=not no_hooks,
    )


@click.command("switch")
@click.argument("name", required=False)
@click.option("--no-editor", is_flag=True, help="Skip opening the editor.")
@click.option("--no-hooks", is_flag=True, help="Skip running post-switch hooks.")
@click.option("--no-env", is_flag=True, help="Skip copying env files.")
@click.option("--no-deps", is_flag=True, help="Skip installing dependencies.")
@_handle_errors
def switch_cmd(
    name: str | None, no_editor: bool, no_hooks: bool, no_env: bool, no_deps: bool
) -> None:
    """Set up a worktree and open it in the editor."""
    _app().switch(
        name,
        open_editor=not no_editor,
        run_hooks=not no_hooks,
        setup_env=not no_env,
        install_deps=not no_deps,
    )


@click.command("remove")
@click.argument("name", required=False)
@click.option("-f", "--force", is_flag=True, help="Force removal even with local changes.")
@click.option("--no-hooks", is_flag=True, help="Skip running pre-remove hooks.")
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation.")
@_handle_errors
def remove_cmd(name: str | None, force: bool, no_hooks: bool, yes: bool) -> None:
    """Remove a worktree."""
    _app().remove(name, force=force, run_hooks=not no_hooks, assume_yes=yes)


@click.command("status")
@_handle_errors
def status_cmd() -> None:
    """Show a status table of all worktrees."""
    _app().status()


@click.command("ports")
@_handle_errors
def ports_cmd() -> None:
    """Show what is running on common dev ports."""
    _app().ports()


@click.command("cd")
@click.argument("name", required=False)
@_handle_errors
def cd_cmd(name: str | None) -> None:
    """Print the path of a worktree (use: cd "$(wt cd name)")."""
    click.echo(_app().path_of(name))


@click.command("mcp")
def mcp_cmd() -> None:
    """Start the MCP tool server on stdio."""
    from wt.mcp_server import run_server

    run_server()


@click.command("shell-init")
def shell_init() -> None:
    """Print shell helpers for wt (bash/zsh + fish)."""
    bash_zsh = r'''wtcd() {
  local dest
  dest="$(command wt cd "$@")" || return $?
  if [ -n "$dest" ]; then
    cd "$dest" || return $?
  fi
}
'''
    fish = r'''function wtcd
  set -l dest (command wt cd $argv)
  or return $status
  if test -n "$dest"
    cd "$dest"
  end
end
'''
    click.echo("# bash/zsh\n" + bash_zsh + "\n# fish\n" + fish)


_COMMANDS: list[tuple[click.Command, tuple[str, ...]]] = [
    (list_cmd, ("list", "ls", "l")),
    (create_cmd, ("create", "new", "c")),
    (switch_cmd, ("switch", "sw", "s")),
    (remove_cmd, ("remove", "rm", "d", "delete")),
    (status_cmd, ("status", "st")),
    (ports_cmd, ("ports", "p")),
    (cd_cmd, ("cd",)),
    (shell_init, ("shell-init",)),
    (mcp_cmd, ("mcp",)),
]

for _command, _names in _COMMANDS:
    for _name in _names:
        main.add_command(_command, name=_name)


if __name__ == "__main__":
    main()
