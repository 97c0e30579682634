"""
Repository lifecycle operations.

Each operation receives its collaborators and the caller explicitly, checks
preconditions in a fixed order, mutates the registry only after every check
passed, and returns a LifecycleResult. Failures are raised as
PowertoolsError subclasses; collaborator errors are logged and chained as
the cause.

Usage:
    from powertools.modules.lifecycle import operations

    result = operations.create_repository(registry, backend, user, "team/app")
    print(result["message"])  # 'team/app.git' created.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

from powertools.adapters.registry.models import (
    AccessRestriction,
    AuthorizationControl,
    RepositoryRecord,
)
from powertools.common.exceptions import (
    AlreadyExistsError,
    BackendError,
    DeleteFailedError,
    ForkFailedError,
    InvalidValueError,
    MirrorFailedError,
    NoOpError,
    NotFoundError,
    PermissionDeniedError,
    RegistryError,
    UpdateFailedError,
)
from powertools.common.types import LifecycleResult

from .fields import lookup_field
from .naming import apply_personal_namespace, ensure_git_suffix, first_path_element, sanitize

if TYPE_CHECKING:
    from powertools.common.types import CallerIdentity, MetadataManager, RepositoryBackend

logger = logging.getLogger(__name__)

__all__ = [
    "resolve_repository",
    "require_admin",
    "repository_url",
    "create_repository",
    "mirror_repository",
    "rename_repository",
    "remove_repository",
    "fork_repository",
    "set_field",
    "list_repositories",
]


# =============================================================================
# Shared Preconditions
# =============================================================================


def resolve_repository(registry: MetadataManager, name: str) -> RepositoryRecord:
    """
    Look up a repository by the name the caller typed.

    Raises:
        NotFoundError: If the registry has no such repository
    """
    record = registry.get_repository(name)
    if record is None:
        raise NotFoundError(f"Repository {name} does not exist!")
    return record


def require_admin(user: CallerIdentity, record: RepositoryRecord, message: str) -> None:
    """Raise PermissionDeniedError with message unless user administers record."""
    if not user.can_admin(record):
        raise PermissionDeniedError(message)


def repository_url(registry: MetadataManager, user: CallerIdentity, name: str) -> str:
    """Clone URL of a repository as seen by user."""
    return registry.get_repository_url(name, user.username)


# =============================================================================
# Create
# =============================================================================


def mirror_repository(backend: RepositoryBackend, url: str, target: Path) -> None:
    """
    Create a bare mirror of url at target.

    Clones every branch, rewrites the origin refspec to track the whole ref
    namespace, flags the remote as a mirror and fetches. Any failure removes
    the partially created directory.

    Raises:
        MirrorFailedError: If any step fails
    """
    try:
        backend.clone_bare(url, target)
        backend.set_config(target, "remote.origin.fetch", "+refs/*:refs/*")
        backend.set_config(target, "remote.origin.mirror", True)
        backend.fetch(target)
    except (BackendError, OSError) as e:
        logger.error("Failed to mirror %s into %s: %s", url, target, e)
        try:
            backend.delete(target)
        except BackendError:
            logger.exception("Failed to clean up %s", target)
        raise MirrorFailedError(f"Failed to mirror {url}") from e


def create_repository(
    registry: MetadataManager,
    backend: RepositoryBackend,
    user: CallerIdentity,
    name: str,
    mirror_url: str | None = None,
) -> LifecycleResult:
    """
    Create an empty repository, or a mirror of mirror_url.

    Top-level names the caller may not create land in the caller's personal
    namespace. Personal repositories are owned by the caller and private.

    Args:
        registry: Metadata manager
        backend: Repository backend, used for mirrors
        user: Caller
        name: Repository name as typed; ".git" is appended when missing
        mirror_url: Optional source URL to mirror

    Raises:
        IllegalPathError: If the name does not sanitize
        AlreadyExistsError: If the final name is taken
        PermissionDeniedError: If the caller may not create the final name
        MirrorFailedError: If mirroring fails
        UpdateFailedError: If the registry rejects the record
    """
    final_name = ensure_git_suffix(sanitize(name))
    final_name = apply_personal_namespace(final_name, user)

    if registry.get_repository(final_name) is not None:
        raise AlreadyExistsError(f"Repository {final_name} already exists!")
    if not user.can_create(final_name):
        raise PermissionDeniedError(
            f"Sorry, you do not have permission to create {final_name}"
        )

    target = registry.repositories_folder / final_name
    if mirror_url:
        if target.exists():
            raise AlreadyExistsError(f"Repository {final_name} already exists!")
        mirror_repository(backend, mirror_url, target)

    record = RepositoryRecord(name=final_name)
    record.project_path = first_path_element(final_name)
    record.access_restriction = AccessRestriction.from_name(
        registry.get_setting("git.defaultAccessRestriction", "PUSH")
    )
    record.authorization_control = AuthorizationControl.from_name(
        registry.get_setting("git.defaultAuthorizationControl", None)
    )
    if mirror_url:
        record.is_mirror = True
        record.origin = mirror_url

    if user.is_my_personal_repository(final_name):
        # personal repositories are private by default
        record.owners.append(user.username)
        record.access_restriction = AccessRestriction.VIEW
        record.authorization_control = AuthorizationControl.NAMED

    try:
        registry.update_repository(record.name, record, not mirror_url)
    except RegistryError as e:
        logger.exception("Failed to add %s", name)
        if mirror_url:
            try:
                backend.delete(target)
            except BackendError:
                logger.exception("Failed to clean up %s", target)
        raise UpdateFailedError(str(e)) from e

    if mirror_url:
        message = f"'{record.name}' created as mirror of {mirror_url}."
    else:
        message = f"'{record.name}' created."
    logger.info(message)
    result: LifecycleResult = {"success": True, "repository": record.name, "message": message}
    if mirror_url:
        result["mirror_of"] = mirror_url
    return result


# =============================================================================
# Rename / Remove / Fork
# =============================================================================


def rename_repository(
    registry: MetadataManager, user: CallerIdentity, name: str, new_name: str
) -> LifecycleResult:
    """
    Rename (move) a repository.

    Raises:
        NotFoundError: If name does not exist
        IllegalPathError: If new_name does not sanitize
        NoOpError: If both names are equal ignoring case
        AlreadyExistsError: If new_name is taken
        PermissionDeniedError: If the caller may not administer the source
            or create the target
        UpdateFailedError: If the registry fails to move the repository
    """
    record = resolve_repository(registry, name)

    target = apply_personal_namespace(sanitize(new_name), user)

    if record.name.lower() == target.lower():
        raise NoOpError("Repository names are identical")
    if registry.get_repository(target) is not None:
        raise AlreadyExistsError(f"Repository {target} already exists!")
    require_admin(user, record, f"Sorry, you do not have permission to rename {name}")
    if not user.can_create(target):
        raise PermissionDeniedError(
            f"Sorry, you don't have permission to move {name} to {target}/"
        )

    old_name = record.name
    record.name = target
    try:
        registry.update_repository(old_name, record, False)
    except RegistryError as e:
        msg = f"Failed to rename repository from {name} to {target}"
        logger.exception(msg)
        raise UpdateFailedError(msg) from e

    return {
        "success": True,
        "repository": target,
        "previous_name": old_name,
        "message": f"Renamed repository {name} to {target}.",
    }


def remove_repository(
    registry: MetadataManager, user: CallerIdentity, name: str
) -> LifecycleResult:
    """Delete a repository and its storage."""
    record = resolve_repository(registry, name)
    require_admin(user, record, f"Sorry, you do not have permission to delete {name}")

    if not registry.delete_repository(record):
        raise DeleteFailedError(f"Failed to delete {name}!")
    return {"success": True, "repository": record.name, "message": f"{name} has been deleted."}


def fork_repository(
    registry: MetadataManager, user: CallerIdentity, name: str
) -> LifecycleResult:
    """Fork a repository into the caller's personal namespace."""
    record = resolve_repository(registry, name)
    if not user.can_fork(record):
        raise PermissionDeniedError(f"Sorry, you do not have permission to fork {name}")

    try:
        fork = registry.fork(record, user)
    except RegistryError as e:
        logger.exception("Failed to fork %s", name)
        raise ForkFailedError(f"Failed to fork {name}!") from e
    if fork is None:
        raise ForkFailedError(f"Failed to fork {name}!")

    return {
        "success": True,
        "repository": fork.name,
        "clone_url": repository_url(registry, user, fork.name),
        "message": f"{name} has been forked.",
    }


# =============================================================================
# Set Field
# =============================================================================


def set_field(
    registry: MetadataManager,
    user: CallerIdentity,
    name: str,
    field_name: str,
    values: list[str],
) -> LifecycleResult:
    """
    Set one field of a repository.

    Args:
        registry: Metadata manager
        user: Caller
        name: Repository name
        field_name: Field name, any case
        values: Raw value tokens; list fields keep them as given, the other
            kinds see them joined by single spaces

    Raises:
        NotFoundError: If the repository does not exist
        PermissionDeniedError: If the caller may not administer it
        UnknownFieldError: If the field is not settable
        InvalidValueError: If a boolean or integer value does not parse
        UpdateFailedError: If the registry rejects the change
    """
    record = resolve_repository(registry, name)
    require_admin(user, record, f"Sorry, you do not have permission to administer {name}")
    descriptor = lookup_field(field_name)

    value = " ".join(values).strip()
    descriptor.setter(record, descriptor.parse(values))

    try:
        registry.update_repository(record.name, record, False)
    except RegistryError as e:
        msg = f"Failed to set {record.name}.{field_name} = {value}"
        logger.exception(msg)
        raise UpdateFailedError(msg) from e

    return {
        "success": True,
        "repository": record.name,
        "field": descriptor.name,
        "value": value,
        "message": f"Set {record.name}.{field_name} = {value}",
    }


# =============================================================================
# List
# =============================================================================


def list_repositories(
    registry: MetadataManager, user: CallerIdentity, pattern: str | None = None
) -> list[RepositoryRecord]:
    """
    Repositories visible to user whose whole name matches pattern.

    Registry order is kept. Without a pattern every visible repository is
    returned.

    Raises:
        InvalidValueError: If pattern is not a valid regular expression
    """
    records = registry.list_repositories(user)
    if not pattern:
        return records
    try:
        regex = re.compile(pattern)
    except re.error as e:
        raise InvalidValueError(f"Invalid filter {pattern}: {e}") from e
    return [r for r in records if regex.fullmatch(r.name)]
