from __future__ import annotations

import datetime as dt
from collections.abc import Iterable

import click
import questionary
from prompt_toolkit.completion import FuzzyCompleter, WordCompleter
from prompt_toolkit.shortcuts import prompt

from wt.models import PortAllocation, PortStatus, WorktreeRecord

RULE_WIDTH = 60
NAME_WIDTH = 15
BRANCH_WIDTH = 25
FLAG_WIDTH = 5
PORTS_WIDTH = 18
MODIFIED_WIDTH = 16
PORT_WIDTH = 8
PORT_STATUS_WIDTH = 10
PROCESS_WIDTH = 40


def _format_relative_age(when: dt.datetime) -> str:
    if when.timestamp() <= 0:
        return "unknown"
    now = dt.datetime.now(tz=dt.timezone.utc)
    delta = now - when
    if delta.total_seconds() < 0:
        return "just now"
    minutes = int(delta.total_seconds() // 60)
    if minutes < 60:
        minutes = max(1, minutes)
        unit = "minute" if minutes == 1 else "minutes"
        return f"{minutes} {unit} ago"
    hours = minutes // 60
    if hours < 24:
        unit = "hour" if hours == 1 else "hours"
        return f"{hours} {unit} ago"
    days = hours // 24
    if days < 7:
        unit = "day" if days == 1 else "days"
        return f"{days} {unit} ago"
    weeks = days // 7
    if days < 30:
        unit = "week" if weeks == 1 else "weeks"
        return f"{weeks} {unit} ago"
    months = days // 30
    unit = "month" if months == 1 else "months"
    return f"{months} {unit} ago"


def _fit(text: str, width: int) -> str:
    if len(text) > width:
        if width <= 3:
            return text[:width]
        return f"{text[: width - 3]}..."
    return text.ljust(width)


def _flag(value: bool) -> str:
    return "yes" if value else "no"


def branch_label(record: WorktreeRecord) -> str:
    return record.branch or "(detached)"


def format_row(columns: Iterable[str], widths: Iterable[int]) -> str:
    return " ".join(_fit(col, width) for col, width in zip(columns, widths)).rstrip()


def header(title: str) -> None:
    rule = click.style("═" * RULE_WIDTH, fg="blue", bold=True)
    click.echo()
    click.echo(rule)
    click.echo(click.style(f"  {title}", fg="blue", bold=True))
    click.echo(rule)
    click.echo()


def section(title: str) -> None:
    click.echo(click.style(f"\n── {title} ──\n", fg="cyan"))


def success(message: str) -> None:
    click.echo(click.style(f"✓ {message}", fg="green"))


def warning(message: str) -> None:
    click.echo(click.style(f"⚠ {message}", fg="yellow"))


def error(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)


def tip(message: str) -> None:
    click.echo(click.style(f"Tip: {message}", fg="cyan"))


def dim(message: str) -> None:
    click.echo(click.style(message, dim=True))


def render_list(records: Iterable[WorktreeRecord]) -> list[str]:
    lines: list[str] = []
    for record in records:
        if record.is_main:
            lines.append(f"  {click.style('● MAIN', fg='green')} ({branch_label(record)})")
            lines.append(f"    Path: {record.path}")
        else:
            lines.append(f"  {click.style(f'○ {record.name}', fg='yellow')}")
            lines.append(f"    Branch: {branch_label(record)}")
            lines.append(f"    Path: {record.path}")
            lines.append(f"    Env: {_flag(record.has_env)}  Deps: {_flag(record.has_deps)}")
        lines.append("")
    return lines


def render_status_table(rows: Iterable[tuple[WorktreeRecord, PortAllocation]]) -> list[str]:
    widths = [NAME_WIDTH, BRANCH_WIDTH, FLAG_WIDTH, FLAG_WIDTH, PORTS_WIDTH, MODIFIED_WIDTH]
    headers = ["NAME", "BRANCH", "ENV", "DEPS", "PORTS", "LAST MODIFIED"]
    lines = [format_row(headers, widths), format_row(["─" * len(h) for h in headers], widths)]
    for record, ports in rows:
        lines.append(
            format_row(
                [
                    "MAIN" if record.is_main else record.name,
                    branch_label(record),
                    _flag(record.has_env),
                    _flag(record.has_deps),
                    f"{ports.api_port}/{ports.web_port}",
                    _format_relative_age(record.last_modified),
                ],
                widths,
            )
        )
    return lines


def render_port_table(statuses: Iterable[PortStatus]) -> list[str]:
    widths = [PORT_WIDTH, PORT_STATUS_WIDTH, PROCESS_WIDTH]
    lines = [
        format_row(["PORT", "STATUS", "PROCESS"], widths),
        format_row(["────", "──────", "───────"], widths),
    ]
    for status in statuses:
        state = "in use" if status.in_use else "free"
        process = f"{status.process} (PID: {status.pid})" if status.in_use else "-"
        lines.append(format_row([str(status.port), state, process], widths))
    return lines


def format_pick_label(record: WorktreeRecord) -> str:
    name = "main" if record.is_main else record.name
    return f"{name:20} {branch_label(record):30} {record.path}"


def pick_worktree(records: list[WorktreeRecord]) -> WorktreeRecord | None:
    if not records:
        return None
    labels = [format_pick_label(r) for r in records]
    mapping = {label: record for label, record in zip(labels, records)}
    completer = FuzzyCompleter(WordCompleter(labels, ignore_case=True))
    selection = prompt("Worktree: ", completer=completer).strip()
    if selection in mapping:
        return mapping[selection]
    return next((r for r in records if selection in (r.name, str(r.path))), None)


def confirm(text: str) -> bool:
    return bool(questionary.confirm(text, default=False).unsafe_ask())
