"""
Repository CLI commands.

Each command is a single-command typer app so that it can be mounted in
more than one dispatcher (the list command appears under both
"repositories" and "list").
"""

from __future__ import annotations

from typing import Annotated

import typer

from powertools.cli.dispatcher import Dispatcher, command_context
from powertools.cli.render import print_report, print_table
from powertools.modules.lifecycle import (
    create_repository,
    field_names,
    fork_repository,
    list_repositories,
    remove_repository,
    rename_repository,
    repository_rows,
    set_field,
    show_repository,
)

RepositoryArg = Annotated[str, typer.Argument(metavar="REPOSITORY", help="repository")]
FilterArg = Annotated[
    str | None, typer.Argument(metavar="FILTER", help="regular expression the whole name must match")
]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="verbose")]
TabbedOpt = Annotated[bool, typer.Option("--tabbed", "-t", help="print tab separated values")]


# =============================================================================
# new
# =============================================================================

new_app = typer.Typer(name="new", help="Create a new repository", add_completion=False)


@new_app.command()
def repository_new(
    ctx: typer.Context,
    repository: RepositoryArg,
    mirror: Annotated[
        str | None, typer.Option("--mirror", "-m", metavar="URL", help="URL of repository to mirror")
    ] = None,
) -> None:
    """Create a new repository.

    Examples: 'new myRepo' creates myRepo.git; 'new myMirror --mirror URL'
    creates a mirror of URL.
    """
    context = command_context(ctx)
    result = create_repository(context.registry, context.backend, context.user, repository, mirror)
    typer.echo(result["message"])


# =============================================================================
# rename
# =============================================================================

rename_app = typer.Typer(name="rename", help="Rename a repository", add_completion=False)


@rename_app.command()
def repository_rename(
    ctx: typer.Context,
    repository: RepositoryArg,
    new_name: Annotated[str, typer.Argument(metavar="NEWNAME", help="the new repository name")],
) -> None:
    """Rename a repository, e.g. 'rename myRepo.git otherRepo.git'."""
    context = command_context(ctx)
    result = rename_repository(context.registry, context.user, repository, new_name)
    typer.echo(result["message"])


# =============================================================================
# remove
# =============================================================================

remove_app = typer.Typer(name="remove", help="Remove a repository", add_completion=False)


@remove_app.command()
def repository_remove(ctx: typer.Context, repository: RepositoryArg) -> None:
    """Remove a repository and its storage."""
    context = command_context(ctx)
    result = remove_repository(context.registry, context.user, repository)
    typer.echo(result["message"])


# =============================================================================
# show
# =============================================================================

show_app = typer.Typer(name="show", help="Show the details of a repository", add_completion=False)


@show_app.command()
def repository_show(ctx: typer.Context, repository: RepositoryArg) -> None:
    """Show the settings, owners and permissions of a repository."""
    context = command_context(ctx)
    print_report(show_repository(context.registry, context.user, repository))


# =============================================================================
# fork
# =============================================================================

fork_app = typer.Typer(name="fork", help="Fork a repository", add_completion=False)


@fork_app.command()
def repository_fork(ctx: typer.Context, repository: RepositoryArg) -> None:
    """Fork a repository into your personal namespace."""
    context = command_context(ctx)
    result = fork_repository(context.registry, context.user, repository)
    typer.echo(result["message"])
    typer.echo("")
    typer.echo(f"   git clone {result['clone_url']}")
    typer.echo("")


# =============================================================================
# list
# =============================================================================

list_app = typer.Typer(name="list", help="List repositories", add_completion=False)


@list_app.command()
def repository_list(
    ctx: typer.Context,
    pattern: FilterArg = None,
    verbose: VerboseOpt = False,
    tabbed: TabbedOpt = False,
) -> None:
    """List repositories, e.g. 'list mirror/.* -v'."""
    context = command_context(ctx)
    records = list_repositories(context.registry, context.user, pattern)
    rows = repository_rows(records, verbose)

    if tabbed and not verbose:
        for row in rows:
            typer.echo(row["name"])
        return

    if verbose:
        headers = ("Name", "Description", "Owners", "Last Modified", "Size")
        data = [
            (r["name"], r["description"], r["owners"], r["last_modified"], r["size"])
            for r in rows
        ]
    else:
        headers = ("Name", "Last Modified", "Size")
        data = [(r["name"], r["last_modified"], r["size"]) for r in rows]
    print_table(headers, data, tabbed=tabbed)


# =============================================================================
# set
# =============================================================================

set_app = typer.Typer(
    name="set", help="Set the specified field of a repository", add_completion=False
)


@set_app.command(
    context_settings={"ignore_unknown_options": True},
    epilog="Valid fields are: " + ", ".join(field_names()),
)
def repository_set(
    ctx: typer.Context,
    repository: RepositoryArg,
    field: Annotated[str, typer.Argument(metavar="FIELD", help="the field to update")],
    values: Annotated[list[str], typer.Argument(metavar="VALUE", help="the new value")],
) -> None:
    """Set a repository field, e.g. 'set myRepo description John's projects'."""
    context = command_context(ctx)
    result = set_field(context.registry, context.user, repository, field, values)
    typer.echo(result["message"])


# =============================================================================
# Dispatcher
# =============================================================================


def build_dispatcher() -> Dispatcher:
    """The "repositories" command group."""
    dispatcher = Dispatcher("repositories", "Repository management commands")
    dispatcher.register("new", new_app, aliases=("add",))
    dispatcher.register("rename", rename_app, aliases=("mv",))
    dispatcher.register("remove", remove_app, aliases=("rm",))
    dispatcher.register("show", show_app)
    dispatcher.register("fork", fork_app)
    dispatcher.register("list", list_app, aliases=("ls",))
    dispatcher.register("set", set_app)
    return dispatcher
