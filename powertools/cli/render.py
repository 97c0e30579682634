"""
Rich-based rendering for show and list output.

Tables go through a rich Console; tabbed output is plain tab separated text
for scripts.
"""

from __future__ import annotations

from collections.abc import Sequence

import typer
from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from powertools.modules.lifecycle.reports import EMPTY, RepositoryReport

console = Console(highlight=False)


def _table(headers: Sequence[str], rows: Sequence[Sequence[str]], box_style: box.Box = box.SIMPLE_HEAD) -> Table:
    table = Table(box=box_style, show_edge=False)
    for header in headers:
        table.add_column(header)
    for row in rows:
        table.add_row(*(Text(cell) for cell in row))
    return table


def print_table(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    tabbed: bool = False,
    out: Console | None = None,
) -> None:
    """Print rows as a table, or as tab separated lines when tabbed."""
    if tabbed:
        for row in rows:
            typer.echo("\t".join(row))
        return
    (out or console).print(_table(headers, rows))


def _section(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> Table | Text:
    if not rows:
        return Text(EMPTY)
    return _table(headers, rows, box.MINIMAL)


def print_report(report: RepositoryReport, out: Console | None = None) -> None:
    """Print a repository report as one panel with four sections."""
    fields = Table.grid(padding=(0, 1))
    fields.add_column(no_wrap=True)
    fields.add_column()
    for index, section in enumerate(report.sections):
        if index:
            fields.add_row("", "")
        width = max(len(label) for label, _ in section)
        for label, value in section:
            fields.add_row(Text(f"{label.rjust(width) if label == 'inherited' else label.ljust(width)} :"), Text(value))

    body = Group(
        Text("FIELDS", style="bold"),
        fields,
        Text(""),
        Text("OWNERS", style="bold"),
        _section(("Account", "Name"), report.owners),
        Text(""),
        Text("TEAM PERMISSIONS", style="bold"),
        _section(("Team", "Permission", "Type"), report.team_permissions),
        Text(""),
        Text("USER PERMISSIONS", style="bold"),
        _section(
            ("Account", "Name", "Permission", "Type", "Source", "Mutable"),
            report.user_permissions,
        ),
    )
    (out or console).print(Panel(body, title=Text(report.title), title_align="left"))
