"""
The "list" command group.

Collects the listing commands of the other groups in one place. The leaf
apps are the same objects the other dispatchers mount.
"""

from __future__ import annotations

from powertools.cli.dispatcher import Dispatcher

from .accounts import teams_list_app, users_list_app
from .projects import projects_list_app, tickets_list_app
from .repositories import list_app as repositories_list_app


def build_dispatcher() -> Dispatcher:
    dispatcher = Dispatcher("list", "Object list commands")
    dispatcher.register("repositories", repositories_list_app, aliases=("repos",))
    dispatcher.register("projects", projects_list_app)
    dispatcher.register("users", users_list_app, admin=True)
    dispatcher.register("teams", teams_list_app, admin=True)
    dispatcher.register("tickets", tickets_list_app)
    return dispatcher
