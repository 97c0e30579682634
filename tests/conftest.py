"""
Shared pytest fixtures for powertools tests.

The registry fixtures use a temporary data directory and a fake backend
that creates plain directories instead of running git.
"""

from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path

import pytest

from powertools.adapters.registry import (
    AccessPermission,
    AccessRestriction,
    RegistryManager,
    RepositoryRecord,
    TeamAccount,
    Ticket,
    UserAccount,
)

# =============================================================================
# Backend Fixtures
# =============================================================================


class FakeBackend:
    """Repository backend that records calls and creates empty directories."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.last_changes: dict[str, datetime] = {}

    def init_bare(self, path):
        self.calls.append(("init_bare", Path(path)))
        Path(path).mkdir(parents=True)

    def clone_bare(self, url, path):
        self.calls.append(("clone_bare", url, Path(path)))
        Path(path).mkdir(parents=True)

    def set_config(self, path, key, value):
        self.calls.append(("set_config", Path(path), key, value))

    def fetch(self, path):
        self.calls.append(("fetch", Path(path)))

    def delete(self, path):
        self.calls.append(("delete", Path(path)))
        if Path(path).exists():
            shutil.rmtree(path)

    def last_change(self, path):
        return self.last_changes.get(Path(path).name)

    def size(self, path):
        return "1.0 KB"

    def called(self, operation: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == operation]


@pytest.fixture
def backend():
    """Fake repository backend."""
    return FakeBackend()


# =============================================================================
# Registry Fixtures
# =============================================================================


@pytest.fixture
def empty_registry(tmp_path, backend):
    """Registry with only the default admin account."""
    return RegistryManager(tmp_path / "data", backend=backend)


@pytest.fixture
def registry(empty_registry):
    """
    Registry with accounts, a team, repositories and tickets.

    Accounts:
        admin - administrator
        alice - may create repositories in her personal namespace
        bob   - plain user, member of team "devs"
    Repositories:
        team/app.git, team/lib.git, tools.git (public)
        secret.git (VIEW restricted, owned by alice)
    """
    registry = empty_registry
    registry.update_user(UserAccount("alice", display_name="Alice Doe", create_allowed=True))
    registry.update_user(UserAccount("bob", display_name="Bob Roe"))
    registry.update_team(
        TeamAccount("devs", users=["bob"], permissions={"team/app.git": AccessPermission.PUSH})
    )

    for name in ("team/app.git", "team/lib.git", "tools.git"):
        record = RepositoryRecord(name=name, project_path=name.split("/")[0] if "/" in name else "")
        registry.update_repository(name, record, True)

    secret = RepositoryRecord(
        name="secret.git", owners=["alice"], access_restriction=AccessRestriction.VIEW
    )
    registry.update_repository("secret.git", secret, True)

    registry.add_ticket(Ticket(1, "team/app.git", "Crash on start", created_by="bob"))
    registry.add_ticket(Ticket(2, "secret.git", "Leak", created_by="alice"))
    return registry


@pytest.fixture
def admin(registry):
    return registry.get_user("admin")


@pytest.fixture
def alice(registry):
    return registry.get_user("alice")


@pytest.fixture
def bob(registry):
    return registry.get_user("bob")
