"""
Exception hierarchy for powertools.

Every failure a command can report derives from PowertoolsError and carries
the exit code the CLI returns for it. Collaborator failures (registry, git)
have their own types and are chained as the cause of the lifecycle error
that reports them.

Usage:
    from powertools.common.exceptions import NotFoundError

    try:
        record = resolve_repository(registry, name)
    except NotFoundError as e:
        typer.echo(f"fatal: {e}", err=True)
        raise typer.Exit(e.exit_code)
"""

from __future__ import annotations

from collections.abc import Iterable

__all__ = [
    "PowertoolsError",
    # Lifecycle
    "IllegalPathError",
    "NotFoundError",
    "AlreadyExistsError",
    "PermissionDeniedError",
    "NoOpError",
    "UnknownFieldError",
    "InvalidValueError",
    "UnknownCommandError",
    "MirrorFailedError",
    "DeleteFailedError",
    "ForkFailedError",
    "UpdateFailedError",
    # Collaborators
    "RegistryError",
    "BackendError",
    "CloneError",
    "DeleteError",
]


class PowertoolsError(Exception):
    """Base class for all command failures."""

    exit_code: int = 1

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code

    def __str__(self) -> str:
        return self.message


# =============================================================================
# Lifecycle Errors
# =============================================================================


class IllegalPathError(PowertoolsError):
    """Repository name has a leading slash or a relative segment."""


class NotFoundError(PowertoolsError):
    """Referenced repository, account or setting does not exist."""


class AlreadyExistsError(PowertoolsError):
    """Target repository name is already taken."""


class PermissionDeniedError(PowertoolsError):
    """Caller lacks the capability the command requires."""


class NoOpError(PowertoolsError):
    """Requested change would leave everything as it is."""


class UnknownFieldError(PowertoolsError):
    """Field name is not part of the settable field table."""

    def __init__(self, field: str, valid_fields: Iterable[str]):
        self.field = field
        self.valid_fields = list(valid_fields)
        super().__init__(
            f"Unknown field {field}\nValid fields are:\n   "
            + ", ".join(self.valid_fields)
        )


class InvalidValueError(PowertoolsError):
    """Value does not parse as the kind its field expects."""


class UnknownCommandError(PowertoolsError):
    """Command token matches no name or alias at its dispatcher level."""

    def __init__(self, message: str, available: Iterable[str] = ()):
        self.available = list(available)
        if self.available:
            message = f"{message}\nAvailable commands: {', '.join(self.available)}"
        super().__init__(message)


class MirrorFailedError(PowertoolsError):
    """Mirror clone, configuration or fetch failed."""


class DeleteFailedError(PowertoolsError):
    """Registry refused or failed to delete a repository."""


class ForkFailedError(PowertoolsError):
    """Registry failed to fork a repository."""


class UpdateFailedError(PowertoolsError):
    """Registry failed to persist a repository record."""


# =============================================================================
# Collaborator Errors
# =============================================================================


class RegistryError(PowertoolsError):
    """Metadata registry failure (storage, consistency, I/O)."""


class BackendError(PowertoolsError):
    """Git backend failure."""

    def __init__(self, message: str, stderr: str | None = None):
        super().__init__(message)
        self.stderr = stderr


class CloneError(BackendError):
    """Git clone or fetch failed."""


class DeleteError(BackendError):
    """Repository storage could not be removed."""
