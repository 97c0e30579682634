"""
CLI entry point for powertools.

The root command only handles the caller identity and logging options;
everything after them is routed through the dispatcher tree.

Usage:
    powertools -u admin gitblit repositories new team/app.git
    powertools -u admin gb repos new mirrors/lib --mirror https://example.com/lib.git
    powertools -u admin gb repos rename team/app team/service
    powertools -u admin gb repos set team/app accessRestriction VIEW
    powertools -u alice gb repos fork team/app
    powertools -u alice gb ls repos "team/.*" -v
    powertools -u admin gb config git.defaultAccessRestriction
"""

from __future__ import annotations

import logging
import sys
from typing import Annotated

import typer

from powertools import __version__
from powertools.cli.commands import build_command_tree
from powertools.cli.dispatcher import CLICK_EXCEPTIONS, CommandContext
from powertools.common.exceptions import PowertoolsError
from powertools.common.logging import setup_logging
from powertools.services.config import get_settings
from powertools.services.session import PowertoolsSession

logger = logging.getLogger(__name__)

COMMAND_TREE = build_command_tree()

app = typer.Typer(
    name="powertools",
    help="Powertools CLI - repository lifecycle commands for a Git hosting server",
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"powertools {__version__}")
        raise typer.Exit()


@app.command(
    context_settings={
        "allow_extra_args": True,
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
    }
)
def run(
    ctx: typer.Context,
    user: Annotated[
        str | None,
        typer.Option("--user", "-u", envvar="POWERTOOLS_USER", help="Account to run the command as"),
    ] = None,
    log_level: Annotated[
        str | None, typer.Option("--log-level", help="Console log level (default from settings)")
    ] = None,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version"),
    ] = False,
) -> None:
    """Run a command from the gitblit (gb) command tree."""
    settings = get_settings()
    setup_logging(log_level or settings.logging.level)

    if not ctx.args:
        typer.echo(COMMAND_TREE.usage())
        return

    try:
        with PowertoolsSession(settings) as session:
            context = CommandContext(session=session, user=session.resolve_user(user))
            COMMAND_TREE.dispatch(list(ctx.args), context)
    except PowertoolsError as e:
        logger.debug("Command failed: %s", e)
        typer.echo(f"fatal: {e}", err=True)
        raise typer.Exit(e.exit_code)
    except CLICK_EXCEPTIONS as e:
        e.show()
        raise typer.Exit(e.exit_code)


def main() -> int:
    """Main entry point."""
    try:
        app()
        return 0
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1


if __name__ == "__main__":
    sys.exit(main())
