"""Registry Manager - YAML-backed store of repositories, accounts and settings.

The registry is the authoritative metadata manager: it owns repository
records, user and team accounts, tickets and server settings, and it keeps
repository storage in step with the records through a repository backend.

Usage:
    from powertools.adapters.registry import RegistryManager
    from powertools.adapters.repository import GitBackend

    registry = RegistryManager("./workspace", backend=GitBackend())

    record = registry.get_repository("team/app.git")
    registry.update_repository(record.name, record, is_create=False)
    for record in registry.list_repositories(registry.get_user("admin")):
        print(record.name)
"""

from __future__ import annotations

import copy
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from powertools.common.exceptions import BackendError, RegistryError

from .models import (
    AccessPermission,
    FederationStrategy,
    PermissionType,
    RegistrantAccessPermission,
    RepositoryRecord,
    TeamAccount,
    Ticket,
    UserAccount,
)

if TYPE_CHECKING:
    from powertools.common.types import CallerIdentity, RepositoryBackend

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: dict[str, str] = {
    "git.defaultAccessRestriction": "PUSH",
    "git.defaultAuthorizationControl": "NAMED",
    "groovy.preReceiveScripts": "",
    "groovy.postReceiveScripts": "",
}

DEFAULT_CLONE_URL = "ssh://{username}@localhost:29418/{repository}"


# =============================================================================
# State Manager (YAML persistence)
# =============================================================================


class _StateManager:
    """Manages registry state persistence in YAML format."""

    SECTIONS = ("settings", "users", "teams", "repositories", "tickets")

    def __init__(self, state_file: Path):
        self.state_file = Path(state_file)
        self._ensure_state_file()

    def _ensure_state_file(self) -> None:
        """Ensure the state file exists with proper structure."""
        if not self.state_file.exists():
            self.state_file.parent.mkdir(parents=True, exist_ok=True)
            self.write(self._default_state())

    def _default_state(self) -> dict[str, Any]:
        return {
            "version": "1.0",
            "created_at": datetime.now().isoformat(),
            "settings": dict(DEFAULT_SETTINGS),
            "users": {"admin": {"display_name": "Administrator", "is_admin": True}},
            "teams": {},
            "repositories": {},
            "tickets": [],
        }

    def read(self) -> dict[str, Any]:
        """Read the current state from the YAML file.

        Raises:
            RegistryError: If the file cannot be read or parsed
        """
        try:
            with open(self.state_file, encoding="utf-8") as f:
                state = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise RegistryError(f"Failed to read registry {self.state_file}: {e}") from e
        for section in self.SECTIONS:
            if state.get(section) is None:
                state[section] = [] if section == "tickets" else {}
        return state

    def write(self, state: dict[str, Any]) -> None:
        """Write state to the YAML file."""
        state["last_updated"] = datetime.now().isoformat()
        try:
            with open(self.state_file, "w", encoding="utf-8") as f:
                yaml.dump(state, f, default_flow_style=False, sort_keys=False)
        except OSError as e:
            raise RegistryError(f"Failed to write registry {self.state_file}: {e}") from e


def _find_key(mapping: dict[str, Any], name: str) -> str | None:
    """Case-insensitive key lookup."""
    if name in mapping:
        return name
    lowered = name.lower()
    for key in mapping:
        if key.lower() == lowered:
            return key
    return None


def _split_scripts(value: str | None) -> list[str]:
    return [s for s in (value or "").replace(",", " ").split() if s]


# =============================================================================
# Registry Manager
# =============================================================================


class RegistryManager:
    """Metadata manager backed by a single YAML file.

    Repository records are cached after the first read; reset_caches()
    drops the cache so that the next read reflects the file and storage.
    """

    def __init__(
        self,
        data_dir: str | Path,
        repositories_dir: str | Path | None = None,
        backend: RepositoryBackend | None = None,
        registry_file: str = "registry.yaml",
        clone_url: str = DEFAULT_CLONE_URL,
    ):
        """Initialize the registry.

        Args:
            data_dir: Directory holding the registry file.
            repositories_dir: Root folder of repository storage.
                              Defaults to <data_dir>/git.
            backend: Repository backend used for storage operations.
            registry_file: File name of the registry inside data_dir.
            clone_url: Template for clone URLs with {username} and
                       {repository} placeholders.
        """
        self.data_dir = Path(data_dir).resolve()
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._repositories_folder = (
            Path(repositories_dir).resolve() if repositories_dir else self.data_dir / "git"
        )
        self._repositories_folder.mkdir(parents=True, exist_ok=True)
        self.backend = backend
        self.clone_url = clone_url
        self._state = _StateManager(self.data_dir / registry_file)

        self._repository_cache: list[RepositoryRecord] | None = None
        self._ticket_cache: list[Ticket] | None = None

    @property
    def repositories_folder(self) -> Path:
        return self._repositories_folder

    def _storage_path(self, name: str) -> Path:
        return self._repositories_folder / name

    def _contained_storage_path(self, name: str) -> Path:
        """Storage path of name, which must lie inside the repositories folder.

        Raises:
            RegistryError: If name resolves to the folder itself or outside it
        """
        path = self._storage_path(name)
        root = self._repositories_folder.resolve()
        resolved = path.resolve()
        if resolved == root or root not in resolved.parents:
            raise RegistryError(f"Repository path '{name}' is outside {root}")
        return path

    # -------------------------------------------------------------------------
    # Caches
    # -------------------------------------------------------------------------

    def reset_caches(self) -> None:
        """Drop cached repository records and tickets."""
        self._repository_cache = None
        self._ticket_cache = None
        logger.info("Registry caches reset")

    def reset_repository_list_cache(self) -> None:
        self._repository_cache = None

    def reset_ticket_caches(self) -> None:
        self._ticket_cache = None

    def _load_record(self, data: dict[str, Any]) -> RepositoryRecord:
        record = RepositoryRecord.from_dict(data)
        path = self._storage_path(record.name)
        if self.backend is not None and path.exists():
            record.last_change = self.backend.last_change(path)
            record.has_commits = record.last_change is not None
            if not record.skip_size_calculation:
                record.size = self.backend.size(path)
        return record

    def _records(self) -> list[RepositoryRecord]:
        if self._repository_cache is None:
            state = self._state.read()
            records = [self._load_record(data) for data in state["repositories"].values()]
            records.sort(key=lambda r: r.name.lower())
            self._repository_cache = records
        return self._repository_cache

    # -------------------------------------------------------------------------
    # Repositories
    # -------------------------------------------------------------------------

    def get_repository(self, name: str) -> RepositoryRecord | None:
        """Return a copy of the named record (case-insensitive), or None."""
        lowered = name.lower()
        for record in self._records():
            if record.name.lower() == lowered:
                return copy.deepcopy(record)
        return None

    def has_repository(self, name: str) -> bool:
        return self.get_repository(name) is not None

    def list_repositories(self, user: CallerIdentity) -> list[RepositoryRecord]:
        """Records visible to user, ordered by name."""
        return [copy.deepcopy(r) for r in self._records() if user.can_view(r)]

    def update_repository(
        self, name: str, record: RepositoryRecord, is_create: bool
    ) -> None:
        """Persist record, previously stored under name.

        Creates bare storage when is_create is set. When record.name differs
        from name the storage directory is moved and every reference to the
        old name (permissions, forks, tickets) follows it.

        Raises:
            RegistryError: If the record cannot be created, renamed or saved
        """
        state = self._state.read()
        repositories = state["repositories"]
        old_key = _find_key(repositories, name)

        if is_create:
            if old_key is not None or self._contained_storage_path(record.name).exists():
                raise RegistryError(
                    f"Can not create repository '{record.name}' because it already exists."
                )
            if self.backend is None:
                raise RegistryError("No repository backend configured")
            try:
                self.backend.init_bare(self._storage_path(record.name))
            except BackendError as e:
                raise RegistryError(f"Failed to create repository '{record.name}': {e}") from e
            record.created_at = record.created_at or datetime.now().isoformat()
        elif old_key is None and not record.is_mirror:
            # first save of a record whose storage was made elsewhere (mirror, fork)
            if not self._storage_path(record.name).exists():
                raise RegistryError(f"Repository '{name}' does not exist")
        elif old_key is not None and old_key != record.name:
            self._move_repository(state, old_key, record.name)

        if old_key is not None:
            del repositories[old_key]
        repositories[record.name] = record.to_dict()
        self._state.write(state)
        self.reset_repository_list_cache()
        logger.info("Saved repository %s", record.name)

    def _move_repository(self, state: dict[str, Any], old_name: str, new_name: str) -> None:
        if old_name.lower() != new_name.lower() and _find_key(state["repositories"], new_name):
            raise RegistryError(
                f"Can not rename repository '{old_name}' to '{new_name}' because "
                f"'{new_name}' already exists."
            )
        source = self._storage_path(old_name)
        target = self._contained_storage_path(new_name)
        if target.exists() and old_name.lower() != new_name.lower():
            raise RegistryError(
                f"Can not rename repository '{old_name}' to '{new_name}' because "
                f"{target} already exists."
            )
        if source.exists():
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.move(str(source), str(target))
            except OSError as e:
                raise RegistryError(f"Failed to move {source} to {target}: {e}") from e

        old_key = old_name.lower()
        for section in ("users", "teams"):
            for account in state[section].values():
                permissions = (account or {}).get("permissions") or {}
                key = _find_key(permissions, old_key)
                if key is not None:
                    permissions[new_name.lower()] = permissions.pop(key)
        for data in state["repositories"].values():
            if (data.get("origin_repository") or "").lower() == old_key:
                data["origin_repository"] = new_name
        for ticket in state["tickets"]:
            if ticket.get("repository", "").lower() == old_key:
                ticket["repository"] = new_name
        self.reset_ticket_caches()
        logger.info("Moved repository %s to %s", old_name, new_name)

    def delete_repository(self, record: RepositoryRecord) -> bool:
        """Delete a repository's record and storage.

        Returns:
            True if the repository was deleted, False on any failure
        """
        try:
            state = self._state.read()
            key = _find_key(state["repositories"], record.name)
            if key is None:
                logger.warning("Repository %s not registered", record.name)
                return False
            if self.backend is not None:
                self.backend.delete(self._contained_storage_path(key))
            del state["repositories"][key]
            for section in ("users", "teams"):
                for account in state[section].values():
                    permissions = (account or {}).get("permissions") or {}
                    perm_key = _find_key(permissions, key)
                    if perm_key is not None:
                        del permissions[perm_key]
            state["tickets"] = [
                t for t in state["tickets"] if t.get("repository", "").lower() != key.lower()
            ]
            self._state.write(state)
        except (RegistryError, BackendError):
            logger.exception("Failed to delete repository %s", record.name)
            return False
        self.reset_caches()
        logger.info("Deleted repository %s", record.name)
        return True

    def fork(self, record: RepositoryRecord, user: CallerIdentity) -> RepositoryRecord | None:
        """Fork record into the user's personal path.

        Returns:
            The new record, or None if the storage clone failed

        Raises:
            RegistryError: If the user already has a fork of the repository
        """
        base = record.name.rsplit("/", 1)[-1]
        if base.lower().endswith(".git"):
            base = base[: -len(".git")]
        clone_name = f"{user.personal_path}/{base}.git"
        if self.has_repository(clone_name):
            raise RegistryError(
                f"Can not fork {record.name}. You already have a fork of it."
            )
        if self.backend is None:
            raise RegistryError("No repository backend configured")

        source_path = self._storage_path(record.name)
        try:
            self.backend.clone_bare(str(source_path), self._storage_path(clone_name))
        except BackendError:
            logger.exception("Failed to clone %s for fork", record.name)
            return None

        clone = copy.deepcopy(record)
        clone.name = clone_name
        clone.project_path = user.personal_path
        clone.owners = [user.username]
        clone.origin = str(source_path)
        clone.origin_repository = record.name
        clone.is_mirror = False
        clone.federation_strategy = FederationStrategy.EXCLUDE
        clone.created_at = datetime.now().isoformat()

        state = self._state.read()
        state["repositories"][clone_name] = clone.to_dict()
        source_key = record.name.lower()
        for section in ("users", "teams"):
            for account in state[section].values():
                permissions = (account or {}).get("permissions") or {}
                key = _find_key(permissions, source_key)
                if key is not None:
                    permissions[clone_name.lower()] = permissions[key]
        self._state.write(state)
        self.reset_repository_list_cache()
        logger.info("Forked %s to %s for %s", record.name, clone_name, user.username)
        return self.get_repository(clone_name)

    def get_repository_url(self, name: str, username: str) -> str:
        return self.clone_url.format(username=username, repository=name)

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def _team_permissions(self, state: dict[str, Any], username: str) -> dict[str, AccessPermission]:
        merged: dict[str, AccessPermission] = {}
        order = list(AccessPermission)
        for team_name, data in state["teams"].items():
            team = TeamAccount.from_dict(team_name, data or {})
            if username.lower() not in (u.lower() for u in team.users):
                continue
            for repo, permission in team.permissions.items():
                current = merged.get(repo)
                if current is None or order.index(permission) > order.index(current):
                    merged[repo] = permission
        return merged

    def get_user(self, username: str) -> UserAccount | None:
        state = self._state.read()
        key = _find_key(state["users"], username)
        if key is None:
            return None
        user = UserAccount.from_dict(key, state["users"][key] or {})
        user.team_permissions = self._team_permissions(state, key)
        return user

    def list_users(self) -> list[UserAccount]:
        state = self._state.read()
        users = [UserAccount.from_dict(name, data or {}) for name, data in state["users"].items()]
        return sorted(users, key=lambda u: u.username.lower())

    def update_user(self, user: UserAccount) -> None:
        state = self._state.read()
        key = _find_key(state["users"], user.username)
        if key is not None and key != user.username:
            del state["users"][key]
        state["users"][user.username] = user.to_dict()
        self._state.write(state)

    def get_team(self, name: str) -> TeamAccount | None:
        state = self._state.read()
        key = _find_key(state["teams"], name)
        if key is None:
            return None
        return TeamAccount.from_dict(key, state["teams"][key] or {})

    def list_teams(self) -> list[TeamAccount]:
        state = self._state.read()
        teams = [TeamAccount.from_dict(name, data or {}) for name, data in state["teams"].items()]
        return sorted(teams, key=lambda t: t.name.lower())

    def update_team(self, team: TeamAccount) -> None:
        state = self._state.read()
        state["teams"][team.name] = team.to_dict()
        self._state.write(state)

    def get_user_access_permissions(
        self, record: RepositoryRecord
    ) -> list[RegistrantAccessPermission]:
        """Users holding a permission on record, with its provenance."""
        state = self._state.read()
        key = record.name.lower()
        result: list[RegistrantAccessPermission] = []
        for user in self.list_users():
            if record.is_owner(user.username):
                result.append(RegistrantAccessPermission(
                    user.username, AccessPermission.OWNER, PermissionType.OWNER, None, False
                ))
            elif user.is_admin:
                result.append(RegistrantAccessPermission(
                    user.username, AccessPermission.REWIND, PermissionType.ADMINISTRATOR, None, False
                ))
            elif key in user.permissions:
                result.append(RegistrantAccessPermission(
                    user.username, user.permissions[key], PermissionType.EXPLICIT, None, True
                ))
            else:
                for team_name, data in state["teams"].items():
                    team = TeamAccount.from_dict(team_name, data or {})
                    if key in team.permissions and user.username.lower() in (
                        u.lower() for u in team.users
                    ):
                        result.append(RegistrantAccessPermission(
                            user.username, team.permissions[key], PermissionType.TEAM,
                            team.name, False,
                        ))
                        break
        return result

    def get_team_access_permissions(
        self, record: RepositoryRecord
    ) -> list[RegistrantAccessPermission]:
        key = record.name.lower()
        return [
            RegistrantAccessPermission(team.name, team.permissions[key], PermissionType.EXPLICIT, None, True)
            for team in self.list_teams()
            if key in team.permissions
        ]

    # -------------------------------------------------------------------------
    # Tickets
    # -------------------------------------------------------------------------

    def list_tickets(self) -> list[Ticket]:
        if self._ticket_cache is None:
            state = self._state.read()
            self._ticket_cache = sorted(
                (Ticket.from_dict(t) for t in state["tickets"]),
                key=lambda t: (t.repository.lower(), t.number),
            )
        return list(self._ticket_cache)

    def add_ticket(self, ticket: Ticket) -> None:
        state = self._state.read()
        state["tickets"].append(ticket.to_dict())
        self._state.write(state)
        self.reset_ticket_caches()

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def get_setting(self, key: str, default: str | None = None) -> str | None:
        value = self._state.read()["settings"].get(key)
        return default if value is None else str(value)

    def set_setting(self, key: str, value: str) -> None:
        state = self._state.read()
        state["settings"][key] = value
        self._state.write(state)
        logger.info("Setting %s updated", key)

    def list_settings(self) -> dict[str, str]:
        return {k: "" if v is None else str(v) for k, v in self._state.read()["settings"].items()}

    def _inherited_scripts(self, record: RepositoryRecord, setting: str, attribute: str) -> list[str]:
        own = {s.lower() for s in getattr(record, attribute)}
        scripts: list[str] = []
        candidates = _split_scripts(self.get_setting(setting))
        key = record.name.lower()
        for team in self.list_teams():
            if key in team.permissions:
                candidates.extend(getattr(team, attribute))
        for script in candidates:
            if script.lower() not in own and script not in scripts:
                scripts.append(script)
        return scripts

    def get_pre_receive_scripts_inherited(self, record: RepositoryRecord) -> list[str]:
        return self._inherited_scripts(record, "groovy.preReceiveScripts", "pre_receive_scripts")

    def get_post_receive_scripts_inherited(self, record: RepositoryRecord) -> list[str]:
        return self._inherited_scripts(record, "groovy.postReceiveScripts", "post_receive_scripts")
