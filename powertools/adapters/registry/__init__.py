"""Registry - YAML-backed metadata manager.

This package stores repository records, accounts, tickets and server
settings, and keeps repository storage in step with them.
"""

from __future__ import annotations

from powertools.common.exceptions import RegistryError

from .manager import DEFAULT_CLONE_URL, DEFAULT_SETTINGS, RegistryManager
from .models import (
    AccessPermission,
    AccessRestriction,
    AuthorizationControl,
    CommitMessageRenderer,
    FederationStrategy,
    PermissionType,
    RegistrantAccessPermission,
    RepositoryRecord,
    TeamAccount,
    Ticket,
    UserAccount,
)

__all__ = [
    # Manager
    "RegistryManager",
    "DEFAULT_SETTINGS",
    "DEFAULT_CLONE_URL",
    # Enums
    "AccessPermission",
    "AccessRestriction",
    "AuthorizationControl",
    "CommitMessageRenderer",
    "FederationStrategy",
    "PermissionType",
    # Models
    "RegistrantAccessPermission",
    "RepositoryRecord",
    "TeamAccount",
    "Ticket",
    "UserAccount",
    # Exceptions
    "RegistryError",
]

__version__ = "1.0.0"
