"""
Shared type definitions for lifecycle operations.

This module provides the TypedDicts returned by lifecycle operations and the
Protocols describing their collaborators: the metadata manager that owns
repository records, the backend that owns repository storage, and the caller
identity every operation receives explicitly.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, TypedDict, runtime_checkable

if TYPE_CHECKING:
    from powertools.adapters.registry.models import (
        RegistrantAccessPermission,
        RepositoryRecord,
        TeamAccount,
        Ticket,
        UserAccount,
    )

# =============================================================================
# Result Types
# =============================================================================


class LifecycleResult(TypedDict, total=False):
    """
    Result structure returned by lifecycle operations.

    Failures are raised as PowertoolsError subclasses, so a returned result
    always describes a success.
    """

    success: bool  # Always True for a returned result
    repository: str  # Final repository name
    message: str  # Human readable outcome
    previous_name: str  # Rename: name before the operation
    mirror_of: str  # Create: mirror source URL
    clone_url: str  # Fork: clone URL of the new repository
    field: str  # SetField: canonical field name
    value: Any  # SetField: value as applied


class ListRow(TypedDict, total=False):
    """One row of the repository listing."""

    name: str
    description: str
    owners: str
    last_modified: str
    size: str


# =============================================================================
# Protocols
# =============================================================================


@runtime_checkable
class CallerIdentity(Protocol):
    """Account on whose behalf a command runs."""

    username: str
    is_admin: bool

    @property
    def personal_path(self) -> str: ...

    def can_create(self, name: str) -> bool: ...

    def can_admin(self, record: RepositoryRecord) -> bool: ...

    def can_fork(self, record: RepositoryRecord) -> bool: ...

    def can_view(self, record: RepositoryRecord) -> bool: ...

    def is_my_personal_repository(self, name: str) -> bool: ...


@runtime_checkable
class RepositoryBackend(Protocol):
    """Storage operations on bare repositories."""

    def init_bare(self, path: Path) -> None: ...

    def clone_bare(self, url: str, path: Path) -> None: ...

    def set_config(self, path: Path, key: str, value: str | bool) -> None: ...

    def fetch(self, path: Path) -> None: ...

    def delete(self, path: Path) -> None: ...

    def last_change(self, path: Path) -> Any: ...

    def size(self, path: Path) -> str: ...


@runtime_checkable
class MetadataManager(Protocol):
    """Authoritative store of repository records, accounts and settings."""

    @property
    def repositories_folder(self) -> Path: ...

    def get_repository(self, name: str) -> RepositoryRecord | None: ...

    def list_repositories(self, user: CallerIdentity) -> list[RepositoryRecord]: ...

    def update_repository(
        self, name: str, record: RepositoryRecord, is_create: bool
    ) -> None: ...

    def delete_repository(self, record: RepositoryRecord) -> bool: ...

    def fork(
        self, record: RepositoryRecord, user: CallerIdentity
    ) -> RepositoryRecord | None: ...

    def get_user(self, username: str) -> UserAccount | None: ...

    def list_users(self) -> list[UserAccount]: ...

    def list_teams(self) -> list[TeamAccount]: ...

    def list_tickets(self) -> list[Ticket]: ...

    def get_user_access_permissions(
        self, record: RepositoryRecord
    ) -> list[RegistrantAccessPermission]: ...

    def get_team_access_permissions(
        self, record: RepositoryRecord
    ) -> list[RegistrantAccessPermission]: ...

    def get_setting(self, key: str, default: str | None = None) -> str | None: ...

    def get_pre_receive_scripts_inherited(
        self, record: RepositoryRecord
    ) -> list[str]: ...

    def get_post_receive_scripts_inherited(
        self, record: RepositoryRecord
    ) -> list[str]: ...

    def get_repository_url(self, name: str, username: str) -> str: ...

    def reset_caches(self) -> None: ...
