"""
Server administration commands: reset and config.

Usage:
    powertools gb reset
    powertools gb config
    powertools gb config git.defaultAccessRestriction
    powertools gb config git.defaultAccessRestriction VIEW
"""

from __future__ import annotations

from typing import Annotated

import typer

from powertools.cli.dispatcher import command_context
from powertools.cli.render import print_table
from powertools.services import config


reset_app = typer.Typer(name="reset", help="Reset internal caches", add_completion=False)


@reset_app.command()
def server_reset(ctx: typer.Context) -> None:
    """Reset the repository list cache and the ticket caches."""
    context = command_context(ctx)
    context.registry.reset_caches()


config_app = typer.Typer(name="config", help="Administer server settings", add_completion=False)


@config_app.command(context_settings={"ignore_unknown_options": True})
def server_config(
    ctx: typer.Context,
    key: Annotated[str | None, typer.Argument(metavar="KEY", help="setting key or key prefix")] = None,
    value: Annotated[
        list[str] | None, typer.Argument(metavar="VALUE", help="new value for the setting")
    ] = None,
) -> None:
    """Show all settings, settings matching a prefix, or set one setting."""
    context = command_context(ctx)
    registry = context.registry

    if key and value:
        setting = config.set_setting(registry, key, " ".join(value))
        typer.echo(f"{setting.key} = {setting.value}")
        return

    settings = config.list_settings(registry, key)
    if key and (key in settings or not settings):
        # exact key; an undefined key raises NotFoundError
        typer.echo(f"{key} = {config.get_setting(registry, key)}")
        return
    print_table(("Key", "Value"), list(settings.items()))
