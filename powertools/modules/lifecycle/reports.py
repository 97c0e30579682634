"""
Structured reports for the show and list commands.

Functions here only read from the registry. They return plain data
(dataclasses, TypedDicts, tuples of strings) that the CLI renders as
tables or tab separated lines.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from powertools.common.exceptions import InvalidValueError, PowertoolsError
from powertools.common.types import ListRow

from .naming import first_path_element
from .operations import list_repositories, require_admin, resolve_repository

if TYPE_CHECKING:
    from powertools.adapters.registry.models import RepositoryRecord
    from powertools.common.types import CallerIdentity, MetadataManager

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M"
EMPTY = "(empty)"


def flag(value: bool) -> str:
    return "Y" if value else ""


def text(value: object | None) -> str:
    if value is None:
        return ""
    if isinstance(value, Enum):
        return value.name
    return str(value)


def joined(values: Iterable[str] | None, separator: str = ", ") -> str:
    if not values:
        return ""
    return separator.join(values)


def format_date(value: datetime | None) -> str:
    return value.strftime(DATE_FORMAT) if value else ""


# =============================================================================
# Show
# =============================================================================


@dataclass
class RepositoryReport:
    """Everything the show command prints about one repository."""

    title: str
    sections: list[list[tuple[str, str]]] = field(default_factory=list)
    owners: list[tuple[str, str]] = field(default_factory=list)
    team_permissions: list[tuple[str, str, str]] = field(default_factory=list)
    user_permissions: list[tuple[str, str, str, str, str, str]] = field(default_factory=list)


def _field_sections(registry: MetadataManager, r: RepositoryRecord) -> list[list[tuple[str, str]]]:
    return [
        [
            ("Description", text(r.description)),
            ("Origin", text(r.origin)),
            ("Default Branch", text(r.head)),
        ],
        [
            ("GC Period", text(r.gc_period)),
            ("GC Threshold", text(r.gc_threshold)),
        ],
        [
            ("Accept Tickets", flag(r.accept_new_tickets)),
            ("Accept Patchsets", flag(r.accept_new_patchsets)),
            ("Require Approval", flag(r.require_approval)),
            ("Merge To", text(r.merge_to)),
        ],
        [
            ("Incremental push tags", flag(r.use_incremental_push_tags)),
            ("Show remote branches", flag(r.show_remote_branches)),
            ("Skip size calculations", flag(r.skip_size_calculation)),
            ("Skip summary metrics", flag(r.skip_summary_metrics)),
            ("Max activity commits", text(r.max_activity_commits)),
            ("Author metric exclusions", joined(r.metric_author_exclusions)),
            ("Commit Message Renderer", text(r.commit_message_renderer)),
            ("Mailing Lists", joined(r.mailing_lists)),
        ],
        [
            ("Access Restriction", text(r.access_restriction)),
            ("Authorization Control", text(r.authorization_control)),
        ],
        [
            ("Is Frozen", flag(r.is_frozen)),
            ("Allow Forks", flag(r.allow_forks)),
            ("Verify Committer", flag(r.verify_committer)),
        ],
        [
            ("Federation Strategy", text(r.federation_strategy)),
            ("Federation Sets", joined(r.federation_sets)),
        ],
        [
            ("Indexed Branches", joined(r.indexed_branches)),
        ],
        [
            ("Pre-Receive Scripts", joined(r.pre_receive_scripts)),
            ("inherited", joined(registry.get_pre_receive_scripts_inherited(r))),
            ("Post-Receive Scripts", joined(r.post_receive_scripts)),
            ("inherited", joined(registry.get_post_receive_scripts_inherited(r))),
        ],
    ]


def _display_name(registry: MetadataManager, username: str) -> str:
    """Display name of an account, blank when it cannot be looked up."""
    try:
        account = registry.get_user(username)
    except PowertoolsError as e:
        logger.debug("Could not look up %s: %s", username, e)
        return ""
    if account is None or account.display_name is None:
        return ""
    return account.display_name


def show_repository(
    registry: MetadataManager, user: CallerIdentity, name: str
) -> RepositoryReport:
    """
    Build the settings report of a repository.

    Raises:
        NotFoundError: If the repository does not exist
        PermissionDeniedError: If the caller may not administer it
    """
    record = resolve_repository(registry, name)
    require_admin(
        user, record, f"Sorry, you do not have permission to see the {name} settings."
    )

    report = RepositoryReport(title=record.name, sections=_field_sections(registry, record))

    for owner in record.owners:
        account = registry.get_user(owner)
        report.owners.append((owner, "" if account is None else account.display_name or account.username))

    for ap in registry.get_team_access_permissions(record):
        report.team_permissions.append(
            (ap.registrant, ap.permission.code, ap.permission_type.name)
        )

    for ap in registry.get_user_access_permissions(record):
        report.user_permissions.append(
            (
                ap.registrant,
                _display_name(registry, ap.registrant),
                ap.permission.code,
                ap.permission_type.name,
                text(ap.source),
                flag(ap.mutable),
            )
        )
    return report


# =============================================================================
# List
# =============================================================================


def repository_rows(records: list[RepositoryRecord], verbose: bool = False) -> list[ListRow]:
    """Listing rows; repositories without commits show no date and "(empty)"."""
    rows: list[ListRow] = []
    for r in records:
        last_modified = format_date(r.last_change)
        size = r.size or ""
        if not r.has_commits:
            last_modified = ""
            size = EMPTY
        row: ListRow = {"name": r.name, "last_modified": last_modified, "size": size}
        if verbose:
            row["description"] = r.description or ""
            row["owners"] = joined(r.owners, ",")
        rows.append(row)
    return rows


def _compile(pattern: str | None) -> re.Pattern[str] | None:
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidValueError(f"Invalid filter {pattern}: {e}") from e


@dataclass
class ProjectSummary:
    """Repositories grouped by their leading folder."""

    name: str
    repositories: int = 0
    last_change: datetime | None = None


def list_projects(
    registry: MetadataManager, user: CallerIdentity, pattern: str | None = None
) -> list[ProjectSummary]:
    """Projects holding at least one repository visible to user."""
    regex = _compile(pattern)
    projects: dict[str, ProjectSummary] = {}
    for record in list_repositories(registry, user):
        project = record.project_path or first_path_element(record.name) or "/"
        summary = projects.setdefault(project, ProjectSummary(project))
        summary.repositories += 1
        if record.last_change and (
            summary.last_change is None or record.last_change > summary.last_change
        ):
            summary.last_change = record.last_change
    result = sorted(projects.values(), key=lambda p: (p.name != "/", p.name.lower()))
    if regex is not None:
        result = [p for p in result if regex.fullmatch(p.name)]
    return result


def user_rows(registry: MetadataManager, pattern: str | None = None) -> list[tuple[str, str, str, str]]:
    """(username, display name, email, role) for every account."""
    regex = _compile(pattern)
    return [
        (u.username, text(u.display_name), text(u.email), "admin" if u.is_admin else "")
        for u in registry.list_users()
        if regex is None or regex.fullmatch(u.username)
    ]


def team_rows(registry: MetadataManager, pattern: str | None = None) -> list[tuple[str, str, str]]:
    """(team, member count, repository permission count) for every team."""
    regex = _compile(pattern)
    return [
        (t.name, str(len(t.users)), str(len(t.permissions)))
        for t in registry.list_teams()
        if regex is None or regex.fullmatch(t.name)
    ]


def ticket_rows(
    registry: MetadataManager, user: CallerIdentity, pattern: str | None = None
) -> list[tuple[str, str, str, str, str]]:
    """(repository, number, status, title, author) of tickets user can see."""
    regex = _compile(pattern)
    visible = {r.name.lower() for r in registry.list_repositories(user)}
    return [
        (t.repository, str(t.number), t.status, t.title, text(t.created_by))
        for t in registry.list_tickets()
        if t.repository.lower() in visible
        and (regex is None or regex.fullmatch(t.repository))
    ]
