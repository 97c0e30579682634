"""
Lifecycle module - repository create, mirror, rename, remove, fork, show,
set-field and list.

Architecture:
- naming.py: name sanitization and the personal-namespace fallback
- fields.py: the table of settable repository fields
- operations.py: mutating operations and shared preconditions
- reports.py: read-only show and list reports

Every operation takes its registry (and backend, where storage is touched)
and the caller identity as explicit arguments. Failures are raised as
PowertoolsError subclasses.

Usage:
    from powertools.modules.lifecycle import create_repository, set_field

    create_repository(registry, backend, user, "team/app")
    set_field(registry, user, "team/app.git", "description", ["Main", "app"])
"""

from __future__ import annotations

from .fields import FIELDS, FieldDescriptor, FieldKind, field_names, lookup_field, parse_bool, parse_int
from .naming import (
    apply_personal_namespace,
    ensure_git_suffix,
    first_path_element,
    last_path_element,
    sanitize,
    strip_git_suffix,
)
from .operations import (
    create_repository,
    fork_repository,
    list_repositories,
    mirror_repository,
    remove_repository,
    rename_repository,
    repository_url,
    require_admin,
    resolve_repository,
    set_field,
)
from .reports import (
    ProjectSummary,
    RepositoryReport,
    list_projects,
    repository_rows,
    show_repository,
    team_rows,
    ticket_rows,
    user_rows,
)

__all__ = [
    # Naming
    "sanitize",
    "first_path_element",
    "last_path_element",
    "ensure_git_suffix",
    "strip_git_suffix",
    "apply_personal_namespace",
    # Fields
    "FIELDS",
    "FieldDescriptor",
    "FieldKind",
    "field_names",
    "lookup_field",
    "parse_bool",
    "parse_int",
    # Operations
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
    # Reports
    "RepositoryReport",
    "ProjectSummary",
    "show_repository",
    "repository_rows",
    "list_projects",
    "user_rows",
    "team_rows",
    "ticket_rows",
]
