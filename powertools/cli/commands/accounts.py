"""
User and team CLI commands.

Both listings are administrator-only; the dispatchers mark them admin so the
check happens before the command runs.
"""

from __future__ import annotations

from typing import Annotated

import typer

from powertools.cli.dispatcher import Dispatcher, command_context
from powertools.cli.render import print_table
from powertools.modules.lifecycle import team_rows, user_rows

FilterArg = Annotated[
    str | None, typer.Argument(metavar="FILTER", help="regular expression the whole name must match")
]
TabbedOpt = Annotated[bool, typer.Option("--tabbed", "-t", help="print tab separated values")]

users_list_app = typer.Typer(name="list", help="List users", add_completion=False)


@users_list_app.command()
def users_list(ctx: typer.Context, pattern: FilterArg = None, tabbed: TabbedOpt = False) -> None:
    """List user accounts."""
    context = command_context(ctx)
    print_table(
        ("Username", "Display Name", "Email", "Role"),
        user_rows(context.registry, pattern),
        tabbed=tabbed,
    )


teams_list_app = typer.Typer(name="list", help="List teams", add_completion=False)


@teams_list_app.command()
def teams_list(ctx: typer.Context, pattern: FilterArg = None, tabbed: TabbedOpt = False) -> None:
    """List teams."""
    context = command_context(ctx)
    print_table(
        ("Team", "Members", "Repositories"),
        team_rows(context.registry, pattern),
        tabbed=tabbed,
    )


def build_users_dispatcher() -> Dispatcher:
    dispatcher = Dispatcher("users", "User management commands")
    dispatcher.register("list", users_list_app, aliases=("ls",), admin=True)
    return dispatcher


def build_teams_dispatcher() -> Dispatcher:
    dispatcher = Dispatcher("teams", "Team management commands")
    dispatcher.register("list", teams_list_app, aliases=("ls",), admin=True)
    return dispatcher
