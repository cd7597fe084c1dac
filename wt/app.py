from __future__ import annotations

import sys
from pathlib import Path

import click

from wt import deps, environment, hooks, naming, ports, rules, ui, worktrees
from wt.config import Context, build_context
from wt.errors import WorktreeError
from wt.hooks import HookType
from wt.logging_config import get_logger
from wt.models import HookPayload, WorktreeRecord

logger = get_logger(__name__)


def is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


class App:
    """Command flows shared by the CLI subcommands."""

    def __init__(self, cwd: Path, global_config: Path | None = None) -> None:
        self.ctx: Context = build_context(cwd, global_config)

    @property
    def cwd(self) -> Path:
        return self.ctx.cwd

    @property
    def main_worktree(self) -> Path:
        return self.ctx.main_worktree

    @property
    def repo_name(self) -> str:
        return naming.repo_base_name(self.main_worktree)

    def resolve(self, name: str | None) -> WorktreeRecord:
        """Find a worktree by name, or let the user pick one on a terminal."""
        records = worktrees.list_worktrees(self.cwd)
        if name is None:
            if not is_interactive():
                raise click.UsageError("Please provide a worktree name")
            selected = ui.pick_worktree(records)
            if selected is None:
                raise click.Abort()
            return selected
        record = worktrees.find_by_name(records, name)
        if record is None:
            raise WorktreeError.worktree_not_found(name)
        return record

    def list_worktrees(self) -> None:
        records = worktrees.list_worktrees(self.cwd)
        ui.header(f"Git Worktrees for {self.repo_name}")
        click.echo(click.style("Main Project:", bold=True))
        click.echo(f"  {self.main_worktree}")
        click.echo()
        click.echo(click.style("Available Worktrees:", bold=True))
        click.echo()
        for line in ui.render_list(records):
            click.echo(line)
        ui.tip("Use 'wt switch <name>' to set up and open a worktree")

    def status(self) -> None:
        records = worktrees.list_worktrees(self.cwd)
        ui.header(f"Worktree Status Overview for {self.repo_name}")
        rows = []
        offset = 0
        for record in records:
            if not record.is_main:
                offset += 1
            allocation = ports.calculate_ports(self.ctx.config, 0 if record.is_main else offset)
            rows.append((record, allocation))
        for line in ui.render_status_table(rows):
            click.echo(line)

    def ports(self) -> None:
        records = worktrees.list_worktrees(self.cwd)
        ui.header("Development Ports Status")
        click.echo(click.style("Checking common development ports...", bold=True))
        click.echo()
        for line in ui.render_port_table(ports.all_port_statuses()):
            click.echo(line)
        click.echo()
        ui.tip("Kill a process with: kill <PID>")
        click.echo()
        click.echo(click.style("Port Allocation (wt assigns automatically):", bold=True))
        linked = sum(1 for record in records if not record.is_main)
        for line in ports.allocation_plan(self.ctx.config, linked):
            click.echo(f"  {line}")

    def path_of(self, name: str | None) -> Path:
        return self.resolve(name).path

    def create(
        self,
        name: str,
        branch: str | None = None,
        new_branch: str | None = None,
        from_branch: str | None = None,
        no_fetch: bool = False,
        run_hooks: bool = True,
    ) -> None:
        base_branch = from_branch or self.ctx.config.base_branch
        target = naming.worktree_path_for(self.main_worktree, name)

        ui.header(f"Creating Worktree: {name}")
        click.echo(f"Main project: {self.main_worktree}")
        click.echo(f"New worktree: {target}")
        if new_branch:
            click.echo(f"New branch: {new_branch}")
        if base_branch:
            click.echo(f"Base branch: origin/{base_branch}")

        ui.section("Step 1: Creating Worktree")
        result = worktrees.create_worktree(
            name,
            self.cwd,
            branch=branch,
            new_branch=new_branch,
            from_branch=base_branch,
            skip_fetch=no_fetch,
        )
        if result.fetched:
            ui.success("Fetched latest from remote")
        ui.success(f"Worktree created at {result.worktree.path}")
        ui.success(f"Branch: {ui.branch_label(result.worktree)}")
        if result.base_branch:
            ui.success(f"Based on: {result.base_branch}")

        self._run_hook("post-create", result.worktree, run_hooks, step=2)

        click.echo()
        ui.success("Worktree created!")
        click.echo()
        click.echo(click.style("Next step - open in editor:", bold=True))
        click.echo(f"  {click.style(f'wt switch {name}', fg='cyan')}")

    def switch(
        self,
        name: str | None,
        open_editor: bool = True,
        run_hooks: bool = True,
        setup_env: bool = True,
        install_deps: bool = True,
    ) -> None:
        record = self.resolve(name)
        label = "main" if record.is_main else record.name

        ui.header(f"Setting Up Worktree: {label}")
        click.echo(f"Target: {record.path}")

        ui.section("Step 1: Checking Git Branch State")
        if record.is_detached:
            ui.warning("Worktree is in detached HEAD state")
            branch = worktrees.fix_detached_head(record.path, label)
            ui.success(f"Now on branch: {branch}")
        else:
            ui.success(f"Already on branch: {ui.branch_label(record)}")

        ui.section("Step 2: Environment")
        if record.is_main:
            ui.dim("  Main worktree uses its own env files")
        elif not setup_env:
            ui.dim("  --no-env flag specified")
        else:
            allocation = ports.calculate_ports(
                self.ctx.config, ports.offset_for(self.cwd, record.name)
            )
            provisioned = environment.setup_environment(self.main_worktree, record.path, allocation)
            if provisioned.configured:
                for relative_path in provisioned.files:
                    ui.success(f"Copied {relative_path}")
                ui.success(f"Ports: API={allocation.api_port}, Web={allocation.web_port}")
            else:
                ui.dim("  No env files found in main worktree")

        synced = rules.sync_rules(self.main_worktree, record.path)
        if synced.copied_count:
            ui.success(f"Synced {synced.copied_count} editor rule file(s)")

        ui.section("Step 3: Dependencies")
        if not install_deps:
            ui.dim("  --no-deps flag specified")
        elif deps.needs_install(record.path):
            if deps.install_dependencies(record.path):
                ui.success("Dependencies installed")
            else:
                ui.warning("Dependency install did not complete")
        else:
            ui.dim("  Nothing to install")

        self._run_hook("post-switch", record, run_hooks, step=4)

        if open_editor:
            ui.section("Step 5: Opening Editor")
            editor = self.ctx.config.editor_cmd
            if deps.open_editor(editor, record.path):
                ui.success(f"Opened in {editor}")
            else:
                ui.warning(f"Editor '{editor}' not found")
                ui.dim(f"  Set EDITOR_CMD in ~/.wtconfig or install {editor}")

        click.echo()
        ui.success(f"Worktree '{label}' is ready!")
        click.echo(f"{click.style('Path:', bold=True)} {record.path}")

    def remove(
        self,
        name: str | None,
        force: bool = False,
        run_hooks: bool = True,
        assume_yes: bool = False,
    ) -> None:
        if name is not None:
            worktrees.validate_name(name)
        record = self.resolve(name)
        label = "main" if record.is_main else record.name

        ui.header(f"Removing Worktree: {label}")
        click.echo(f"Path: {record.path}")
        click.echo()

        if not record.is_main:
            if not assume_yes and is_interactive() and not ui.confirm(f"Remove {record.path}?"):
                raise click.Abort()
            self._run_hook("pre-remove", record, run_hooks, step=None)

        worktrees.remove_worktree(label, self.cwd, force=force)
        ui.success(f"Worktree '{label}' removed")

    def _run_hook(
        self, hook_type: HookType, record: WorktreeRecord, enabled: bool, step: int | None
    ) -> None:
        title = f"Step {step}: " if step else ""
        if not enabled:
            ui.section(f"{title}Hooks (skipped)")
            ui.dim("  --no-hooks flag specified")
            return
        ui.section(f"{title}Running Repo Hooks")
        if not hooks.has_hooks(self.main_worktree):
            ui.dim(f"  No hooks found ({hooks.HOOK_SCRIPT_LOCATIONS[0]})")
            return
        name = "main" if record.is_main else record.name
        payload = HookPayload(
            worktree_name=name,
            worktree_path=record.path,
            main_worktree_path=self.main_worktree,
            is_main=record.is_main,
            port_offset=ports.offset_for(self.cwd, name),
        )
        result = hooks.execute_hook_safe(hook_type, payload, self.main_worktree)
        if result.executed and result.exit_code == 0:
            ui.success("Hooks completed successfully")
        elif result.executed:
            ui.warning(f"Hook exited with code {result.exit_code}")
