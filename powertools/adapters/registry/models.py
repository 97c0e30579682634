"""
Data models for the repository registry.

Records and accounts are plain dataclasses with to_dict()/from_dict() for
YAML persistence. Enums are stored by member name and parsed back with
from_name(), which never fails: unmatched names yield the enum's default.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, TypeVar

__all__ = [
    # Enums
    "AccessRestriction",
    "AuthorizationControl",
    "CommitMessageRenderer",
    "FederationStrategy",
    "AccessPermission",
    "PermissionType",
    # Models
    "RepositoryRecord",
    "RegistrantAccessPermission",
    "UserAccount",
    "TeamAccount",
    "Ticket",
]

E = TypeVar("E", bound=Enum)


def _match_name(enum_cls: type[E], name: str | None, default: E) -> E:
    """Case-insensitive member lookup with fallback."""
    if name is None:
        return default
    if isinstance(name, enum_cls):
        return name
    wanted = str(name).strip().upper()
    for member in enum_cls:
        if member.name == wanted:
            return member
    return default


# =============================================================================
# Enums
# =============================================================================


class AccessRestriction(str, Enum):
    """What anonymous users are restricted from, weakest first."""

    NONE = "NONE"
    PUSH = "PUSH"
    CLONE = "CLONE"
    VIEW = "VIEW"

    @classmethod
    def from_name(cls, name: str | None) -> AccessRestriction:
        return _match_name(cls, name, cls.NONE)

    def at_least(self, other: AccessRestriction) -> bool:
        order = list(AccessRestriction)
        return order.index(self) >= order.index(other)


class AuthorizationControl(str, Enum):
    """How restricted access is granted."""

    AUTHENTICATED = "AUTHENTICATED"
    NAMED = "NAMED"

    @classmethod
    def from_name(cls, name: str | None) -> AuthorizationControl:
        return _match_name(cls, name, cls.NAMED)


class CommitMessageRenderer(str, Enum):
    PLAIN = "PLAIN"
    MARKDOWN = "MARKDOWN"

    @classmethod
    def from_name(cls, name: str | None) -> CommitMessageRenderer:
        return _match_name(cls, name, cls.PLAIN)


class FederationStrategy(str, Enum):
    EXCLUDE = "EXCLUDE"
    FEDERATE_THIS = "FEDERATE_THIS"
    FEDERATE_ORIGIN = "FEDERATE_ORIGIN"

    @classmethod
    def from_name(cls, name: str | None) -> FederationStrategy:
        return _match_name(cls, name, cls.FEDERATE_THIS)


_PERMISSION_CODES = {
    "NONE": "N",
    "EXCLUDE": "X",
    "VIEW": "V",
    "CLONE": "R",
    "PUSH": "RW",
    "CREATE": "RWC",
    "DELETE": "RWD",
    "REWIND": "RW+",
    "OWNER": "RW+",
}


class AccessPermission(str, Enum):
    """Repository permission levels, weakest first."""

    NONE = "NONE"
    EXCLUDE = "EXCLUDE"
    VIEW = "VIEW"
    CLONE = "CLONE"
    PUSH = "PUSH"
    CREATE = "CREATE"
    DELETE = "DELETE"
    REWIND = "REWIND"
    OWNER = "OWNER"

    @classmethod
    def from_name(cls, name: str | None) -> AccessPermission:
        if name is not None:
            for member, code in _PERMISSION_CODES.items():
                if str(name) == code and member != "OWNER":
                    return cls[member]
        return _match_name(cls, name, cls.NONE)

    @property
    def code(self) -> str:
        return _PERMISSION_CODES[self.name]

    def at_least(self, other: AccessPermission) -> bool:
        order = list(AccessPermission)
        return order.index(self) >= order.index(other)


class PermissionType(str, Enum):
    """Where a registrant's permission comes from."""

    EXPLICIT = "EXPLICIT"
    OWNER = "OWNER"
    ADMINISTRATOR = "ADMINISTRATOR"
    TEAM = "TEAM"
    REGEX = "REGEX"
    MISSING = "MISSING"

    @classmethod
    def from_name(cls, name: str | None) -> PermissionType:
        return _match_name(cls, name, cls.EXPLICIT)


# =============================================================================
# Repository Record
# =============================================================================

_ENUM_FIELDS: dict[str, type[Enum]] = {
    "access_restriction": AccessRestriction,
    "authorization_control": AuthorizationControl,
    "commit_message_renderer": CommitMessageRenderer,
    "federation_strategy": FederationStrategy,
}

# Filled from storage on read, never persisted
_VOLATILE_FIELDS = {"has_commits", "last_change", "size"}


@dataclass
class RepositoryRecord:
    """Persisted metadata describing one hosted repository."""

    name: str
    description: str = ""
    owners: list[str] = field(default_factory=list)
    origin: str | None = None
    head: str | None = None
    project_path: str = ""

    # Access
    access_restriction: AccessRestriction = AccessRestriction.NONE
    authorization_control: AuthorizationControl = AuthorizationControl.NAMED
    allow_authenticated: bool = False
    allow_forks: bool = True
    is_frozen: bool = False
    verify_committer: bool = False

    # Federation
    is_federated: bool = False
    federation_strategy: FederationStrategy = FederationStrategy.FEDERATE_THIS
    federation_sets: list[str] = field(default_factory=list)

    # Display and metrics
    show_remote_branches: bool = False
    skip_size_calculation: bool = False
    skip_summary_metrics: bool = False
    max_activity_commits: int = 0
    metric_author_exclusions: list[str] = field(default_factory=list)
    commit_message_renderer: CommitMessageRenderer = CommitMessageRenderer.PLAIN

    # Push handling
    use_incremental_push_tags: bool = False
    incremental_push_tag_prefix: str | None = None
    pre_receive_scripts: list[str] = field(default_factory=list)
    post_receive_scripts: list[str] = field(default_factory=list)
    mailing_lists: list[str] = field(default_factory=list)
    indexed_branches: list[str] = field(default_factory=list)

    # Housekeeping
    gc_period: int = 7
    gc_threshold: str | None = "500k"
    frequency: str | None = None

    # Tickets
    accept_new_tickets: bool = True
    accept_new_patchsets: bool = True
    require_approval: bool = False
    merge_to: str | None = None

    # Lineage
    is_mirror: bool = False
    origin_repository: str | None = None
    created_at: str | None = None

    # Volatile
    has_commits: bool = False
    last_change: datetime | None = None
    size: str | None = None

    def is_owner(self, username: str) -> bool:
        return username.lower() in (owner.lower() for owner in self.owners)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a YAML-safe dictionary."""
        data = {k: v for k, v in asdict(self).items() if k not in _VOLATILE_FIELDS}
        for key in _ENUM_FIELDS:
            data[key] = data[key].name
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RepositoryRecord:
        """Build a record from persisted data, ignoring unknown keys."""
        known = {f.name for f in fields(cls)} - _VOLATILE_FIELDS
        values = {k: v for k, v in data.items() if k in known}
        for key, enum_cls in _ENUM_FIELDS.items():
            if key in values:
                values[key] = enum_cls.from_name(values[key])  # type: ignore[attr-defined]
        for key in ("owners", "federation_sets", "metric_author_exclusions",
                    "pre_receive_scripts", "post_receive_scripts",
                    "mailing_lists", "indexed_branches"):
            if key in values and values[key] is None:
                values[key] = []
        return cls(**values)


@dataclass
class RegistrantAccessPermission:
    """A user's or team's permission on one repository."""

    registrant: str
    permission: AccessPermission
    permission_type: PermissionType = PermissionType.EXPLICIT
    source: str | None = None
    mutable: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "registrant": self.registrant,
            "permission": self.permission.name,
            "permission_type": self.permission_type.name,
            "source": self.source,
            "mutable": self.mutable,
        }


# =============================================================================
# Accounts
# =============================================================================


@dataclass
class UserAccount:
    """A registered account and the capabilities it holds."""

    username: str
    display_name: str | None = None
    email: str | None = None
    is_admin: bool = False
    create_allowed: bool = False
    fork_allowed: bool = True
    permissions: dict[str, AccessPermission] = field(default_factory=dict)
    teams: list[str] = field(default_factory=list)

    # Resolved by the registry from team memberships, never persisted
    team_permissions: dict[str, AccessPermission] = field(default_factory=dict)

    @property
    def personal_path(self) -> str:
        return f"~{self.username}"

    def is_my_personal_repository(self, name: str) -> bool:
        return name.lower().startswith(self.personal_path.lower() + "/")

    def permission_for(self, record: RepositoryRecord) -> AccessPermission:
        """Effective permission on a repository."""
        if self.is_admin or record.is_owner(self.username):
            return AccessPermission.OWNER
        if self.is_my_personal_repository(record.name):
            return AccessPermission.OWNER

        key = record.name.lower()
        explicit = self.permissions.get(key)
        team = self.team_permissions.get(key)
        granted = [p for p in (explicit, team) if p is not None]
        if granted:
            return max(granted, key=lambda p: list(AccessPermission).index(p))

        if record.authorization_control == AuthorizationControl.AUTHENTICATED:
            return AccessPermission.PUSH
        return {
            AccessRestriction.NONE: AccessPermission.PUSH,
            AccessRestriction.PUSH: AccessPermission.CLONE,
            AccessRestriction.CLONE: AccessPermission.VIEW,
            AccessRestriction.VIEW: AccessPermission.NONE,
        }[record.access_restriction]

    def can_view(self, record: RepositoryRecord) -> bool:
        return self.permission_for(record).at_least(AccessPermission.VIEW)

    def can_clone(self, record: RepositoryRecord) -> bool:
        return self.permission_for(record).at_least(AccessPermission.CLONE)

    def can_create(self, name: str) -> bool:
        """Admins create anywhere; others only inside their personal path."""
        if self.is_admin:
            return True
        if not self.create_allowed:
            return False
        return self.is_my_personal_repository(name)

    def can_admin(self, record: RepositoryRecord) -> bool:
        if self.is_admin:
            return True
        return record.is_owner(self.username) or self.is_my_personal_repository(record.name)

    def can_fork(self, record: RepositoryRecord) -> bool:
        if not (self.is_admin or self.fork_allowed):
            return False
        if not record.allow_forks:
            return False
        # a personal repository cannot be forked by its owner
        if self.is_my_personal_repository(record.name):
            return False
        return self.can_clone(record)

    def to_dict(self) -> dict[str, Any]:
        return {
            "display_name": self.display_name,
            "email": self.email,
            "is_admin": self.is_admin,
            "create_allowed": self.create_allowed,
            "fork_allowed": self.fork_allowed,
            "permissions": {k: v.name for k, v in self.permissions.items()},
            "teams": list(self.teams),
        }

    @classmethod
    def from_dict(cls, username: str, data: dict[str, Any]) -> UserAccount:
        return cls(
            username=username,
            display_name=data.get("display_name"),
            email=data.get("email"),
            is_admin=bool(data.get("is_admin", False)),
            create_allowed=bool(data.get("create_allowed", False)),
            fork_allowed=bool(data.get("fork_allowed", True)),
            permissions={
                k.lower(): AccessPermission.from_name(v)
                for k, v in (data.get("permissions") or {}).items()
            },
            teams=list(data.get("teams") or []),
        )


@dataclass
class TeamAccount:
    """A named group of users sharing repository permissions."""

    name: str
    users: list[str] = field(default_factory=list)
    permissions: dict[str, AccessPermission] = field(default_factory=dict)
    pre_receive_scripts: list[str] = field(default_factory=list)
    post_receive_scripts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "users": list(self.users),
            "permissions": {k: v.name for k, v in self.permissions.items()},
            "pre_receive_scripts": list(self.pre_receive_scripts),
            "post_receive_scripts": list(self.post_receive_scripts),
        }

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> TeamAccount:
        return cls(
            name=name,
            users=list(data.get("users") or []),
            permissions={
                k.lower(): AccessPermission.from_name(v)
                for k, v in (data.get("permissions") or {}).items()
            },
            pre_receive_scripts=list(data.get("pre_receive_scripts") or []),
            post_receive_scripts=list(data.get("post_receive_scripts") or []),
        )


@dataclass
class Ticket:
    """An issue or patchset proposal filed against a repository."""

    number: int
    repository: str
    title: str
    status: str = "New"
    created_by: str | None = None
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Ticket:
        return cls(
            number=int(data["number"]),
            repository=data["repository"],
            title=data.get("title", ""),
            status=data.get("status", "New"),
            created_by=data.get("created_by"),
            created_at=data.get("created_at"),
        )
