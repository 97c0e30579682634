"""Project and ticket CLI commands."""

from __future__ import annotations

from typing import Annotated

import typer

from powertools.cli.dispatcher import Dispatcher, command_context
from powertools.cli.render import print_table
from powertools.modules.lifecycle import list_projects, ticket_rows
from powertools.modules.lifecycle.reports import format_date

FilterArg = Annotated[
    str | None, typer.Argument(metavar="FILTER", help="regular expression the whole name must match")
]
TabbedOpt = Annotated[bool, typer.Option("--tabbed", "-t", help="print tab separated values")]

projects_list_app = typer.Typer(name="list", help="List projects", add_completion=False)


@projects_list_app.command()
def projects_list(ctx: typer.Context, pattern: FilterArg = None, tabbed: TabbedOpt = False) -> None:
    """List projects with the repositories you can see."""
    context = command_context(ctx)
    projects = list_projects(context.registry, context.user, pattern)
    print_table(
        ("Name", "Repositories", "Last Modified"),
        [(p.name, str(p.repositories), format_date(p.last_change)) for p in projects],
        tabbed=tabbed,
    )


tickets_list_app = typer.Typer(name="list", help="List tickets", add_completion=False)


@tickets_list_app.command()
def tickets_list(ctx: typer.Context, pattern: FilterArg = None, tabbed: TabbedOpt = False) -> None:
    """List tickets of the repositories you can see."""
    context = command_context(ctx)
    print_table(
        ("Repository", "#", "Status", "Title", "Author"),
        ticket_rows(context.registry, context.user, pattern),
        tabbed=tabbed,
    )


def build_projects_dispatcher() -> Dispatcher:
    dispatcher = Dispatcher("projects", "Project management commands")
    dispatcher.register("list", projects_list_app, aliases=("ls",))
    return dispatcher


def build_tickets_dispatcher() -> Dispatcher:
    dispatcher = Dispatcher("tickets", "Ticket commands")
    dispatcher.register("list", tickets_list_app, aliases=("ls",))
    return dispatcher
