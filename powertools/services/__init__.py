"""
Services layer for powertools.

Primary API:
    PowertoolsSession: collaborators for one command invocation
        - Lifecycle: connect(), disconnect(), context manager
        - Collaborators: registry, backend, command_logger
        - Identity: resolve_user()

Usage:
    from powertools.services.session import PowertoolsSession

    with PowertoolsSession() as session:
        user = session.resolve_user("admin")

Internal services:
    config: process settings and server setting CRUD
    config_models: pydantic settings models
"""

from __future__ import annotations

from . import config, config_models
from .session import PowertoolsSession

__all__ = [
    "config",
    "config_models",
    "PowertoolsSession",
]
