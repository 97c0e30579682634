"""
Command tree construction.

The tree is built once by build_command_tree(); the CLI keeps the result
for the lifetime of the process.
"""

from __future__ import annotations

from powertools.cli.dispatcher import Dispatcher

from . import accounts, listing, projects, repositories, server


def build_command_tree() -> Dispatcher:
    """Root dispatcher holding the "gitblit" (alias "gb") group."""
    gitblit = Dispatcher("gitblit", "Gitblit powertools commands")
    gitblit.register("config", server.config_app, admin=True)
    gitblit.register("reset", server.reset_app, admin=True)
    gitblit.register_dispatcher(listing.build_dispatcher(), aliases=("ls",))
    gitblit.register_dispatcher(projects.build_tickets_dispatcher())
    gitblit.register_dispatcher(accounts.build_users_dispatcher())
    gitblit.register_dispatcher(accounts.build_teams_dispatcher())
    gitblit.register_dispatcher(projects.build_projects_dispatcher())
    gitblit.register_dispatcher(repositories.build_dispatcher(), aliases=("repos",))

    root = Dispatcher("powertools", "Repository lifecycle commands")
    root.register_dispatcher(gitblit, aliases=("gb",))
    return root


__all__ = ["build_command_tree"]
