"""
Command dispatch tree.

A Dispatcher maps command names and aliases to either a leaf command (a
single-command typer app) or a nested Dispatcher. The same leaf app can be
registered under several dispatchers; nodes hold a reference to it, nothing
is subclassed.

Usage:
    repositories = Dispatcher("repositories", "Repository management commands")
    repositories.register("new", new_app, aliases=("add",))

    root = Dispatcher("powertools")
    root.register_dispatcher(repositories, aliases=("repos",))
    root.dispatch(["repos", "new", "team/app"], context)
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

import click
import typer
from typer.core import TyperCommand
from typer.main import get_command

from powertools.common.exceptions import PermissionDeniedError, PowertoolsError, UnknownCommandError

if TYPE_CHECKING:
    from powertools.adapters.registry import RegistryManager
    from powertools.adapters.repository import GitBackend
    from powertools.common.types import CallerIdentity

logger = logging.getLogger(__name__)

HELP_TOKENS = ("-h", "--help")


def _click_exception_types() -> tuple[type[Exception], ...]:
    """ClickException classes that typer commands can raise.

    Newer typer releases ship their own copy of click, whose exceptions do
    not derive from the installed click package's.
    """
    found: list[type[Exception]] = [click.ClickException]
    for cls in TyperCommand.__mro__:
        package = cls.__module__.rpartition(".")[0]
        exceptions = sys.modules.get(f"{package}.exceptions") if package else None
        exception_cls = getattr(exceptions, "ClickException", None)
        if isinstance(exception_cls, type) and exception_cls not in found:
            found.append(exception_cls)
    return tuple(found)


CLICK_EXCEPTIONS = _click_exception_types()


@dataclass(frozen=True)
class CommandContext:
    """Per-invocation state handed to every leaf command as ctx.obj."""

    session: Any
    user: CallerIdentity
    path: tuple[str, ...] = ()

    @property
    def registry(self) -> RegistryManager:
        return self.session.registry

    @property
    def backend(self) -> GitBackend:
        return self.session.backend

    @property
    def command(self) -> str:
        return " ".join(self.path)


def command_context(ctx: typer.Context) -> CommandContext:
    """The CommandContext a dispatcher passed to a leaf command."""
    obj = ctx.find_object(CommandContext)
    if obj is None:
        raise RuntimeError("Command invoked outside of a dispatcher")
    return obj


@dataclass(frozen=True)
class CommandNode:
    """One position in the command tree."""

    name: str
    description: str = ""
    aliases: tuple[str, ...] = ()
    admin: bool = False
    app: typer.Typer | None = None
    dispatcher: Dispatcher | None = None

    @property
    def names(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)

    @property
    def is_leaf(self) -> bool:
        return self.dispatcher is None


class Dispatcher:
    """A level of the command tree."""

    def __init__(self, name: str, description: str = ""):
        self.name = name
        self.description = description
        self._nodes: list[CommandNode] = []
        self._index: dict[str, CommandNode] = {}

    def __repr__(self) -> str:
        return f"Dispatcher({self.name!r}, commands={self.command_names()!r})"

    def _add(self, node: CommandNode) -> CommandNode:
        for token in node.names:
            if token in self._index:
                raise ValueError(f"{self.name}: command '{token}' is already registered")
        self._nodes.append(node)
        for token in node.names:
            self._index[token] = node
        return node

    def register(
        self,
        name: str,
        app: typer.Typer,
        *,
        aliases: tuple[str, ...] = (),
        description: str | None = None,
        admin: bool = False,
    ) -> CommandNode:
        """Register a leaf command."""
        if description is None:
            description = app.info.help if isinstance(app.info.help, str) else ""
        return self._add(CommandNode(name, description, tuple(aliases), admin, app=app))

    def register_dispatcher(
        self,
        dispatcher: Dispatcher,
        *,
        aliases: tuple[str, ...] = (),
        admin: bool = False,
    ) -> CommandNode:
        """Register a nested dispatcher under its own name."""
        return self._add(
            CommandNode(
                dispatcher.name, dispatcher.description, tuple(aliases), admin,
                dispatcher=dispatcher,
            )
        )

    @property
    def nodes(self) -> list[CommandNode]:
        return list(self._nodes)

    def command_names(self) -> list[str]:
        return [node.name for node in self._nodes]

    def resolve(self, token: str) -> CommandNode:
        """
        Match a command token against names and aliases (case-sensitive).

        Raises:
            UnknownCommandError: If nothing matches
        """
        node = self._index.get(token)
        if node is None:
            raise UnknownCommandError(
                f"{self.name}: {token}: not found", self.command_names()
            )
        return node

    def usage(self, user: CallerIdentity | None = None) -> str:
        """Listing of the commands available at this level."""
        lines = [f"{self.description or self.name}", "", "Available commands:"]
        nodes = [n for n in self._nodes if user is None or not n.admin or user.is_admin]
        width = max((len(n.name) for n in nodes), default=0)
        for node in nodes:
            aliases = f" ({', '.join(node.aliases)})" if node.aliases else ""
            lines.append(f"  {node.name.ljust(width)}  {node.description}{aliases}")
        return "\n".join(lines)

    def dispatch(self, args: list[str], context: CommandContext) -> Any:
        """
        Route args to the matching leaf or nested dispatcher.

        Raises:
            UnknownCommandError: If the first token matches nothing, or
                there is no token
            PermissionDeniedError: If the node is admin-only and the caller
                is not an administrator
        """
        if not args:
            raise UnknownCommandError(
                f"{self.name}: no command specified", self.command_names()
            )
        token, rest = args[0], list(args[1:])
        if token in HELP_TOKENS:
            typer.echo(self.usage(context.user))
            return None

        node = self.resolve(token)
        path = (*context.path, node.name)
        if node.admin and not context.user.is_admin:
            raise PermissionDeniedError(
                f"Sorry, you must be an administrator to run '{' '.join(path)}'"
            )

        sub_context = replace(context, path=path)
        if node.dispatcher is not None:
            return node.dispatcher.dispatch(rest, sub_context)
        return _invoke_leaf(node, rest, sub_context)


def _invoke_leaf(node: CommandNode, args: list[str], context: CommandContext) -> Any:
    """Run a leaf typer app with args, recording the outcome in the audit log."""
    if node.app is None:
        raise RuntimeError(f"Command '{node.name}' has no application")
    command = get_command(node.app)
    audit = getattr(context.session, "command_logger", None)
    log_ctx = audit.command_start(context.command, context.user.username, args) if audit else None

    logger.debug("Running %s %s", context.command, args)
    try:
        result = command.main(
            args=args, prog_name=context.command, standalone_mode=False, obj=context
        )
    except (PowertoolsError, *CLICK_EXCEPTIONS) as e:
        if log_ctx is not None:
            log_ctx.error(str(e) if isinstance(e, PowertoolsError) else e.format_message())
        raise
    if log_ctx is not None:
        log_ctx.complete()
    return result
