"""Tests for modules.lifecycle.reports module."""

from __future__ import annotations

from datetime import datetime

import pytest

from powertools.adapters.registry import AccessRestriction, RepositoryRecord
from powertools.common.exceptions import InvalidValueError, NotFoundError, PermissionDeniedError
from powertools.modules.lifecycle.reports import (
    EMPTY,
    flag,
    format_date,
    joined,
    list_projects,
    repository_rows,
    show_repository,
    team_rows,
    text,
    ticket_rows,
    user_rows,
)


class TestFormatting:
    """Tests for the value formatters."""

    def test_flag(self):
        assert flag(True) == "Y"
        assert flag(False) == ""

    def test_text(self):
        """Should show enums by name and None as blank."""
        assert text(AccessRestriction.VIEW) == "VIEW"
        assert text(None) == ""
        assert text(7) == "7"

    def test_joined_and_date(self):
        assert joined(["a", "b"]) == "a, b"
        assert joined([]) == ""
        assert format_date(datetime(2024, 5, 1, 9, 5)) == "2024-05-01 09:05"
        assert format_date(None) == ""


class TestShowRepository:
    """Tests for show_repository."""

    def test_report_contents(self, registry, admin):
        """Should report fields, owners and permissions."""
        report = show_repository(registry, admin, "secret.git")
        fields = dict(pair for section in report.sections for pair in section if pair[0] != "inherited")

        assert report.title == "secret.git"
        assert fields["Access Restriction"] == "VIEW"
        assert fields["GC Period"] == "7"
        assert fields["Allow Forks"] == "Y"
        assert fields["Is Frozen"] == ""
        assert report.owners == [("alice", "Alice Doe")]
        assert ("alice", "Alice Doe", "RW+", "OWNER", "", "") in report.user_permissions

    def test_team_permissions(self, registry, admin):
        """Should list team grants with their codes."""
        report = show_repository(registry, admin, "team/app.git")
        assert report.team_permissions == [("devs", "RW", "EXPLICIT")]
        assert ("bob", "Bob Roe", "RW", "TEAM", "devs", "") in report.user_permissions

    def test_unknown_owner_has_blank_name(self, registry, admin):
        """Should show owners without an account with a blank name."""
        record = registry.get_repository("tools.git")
        record.owners = ["ghost"]
        registry.update_repository(record.name, record, False)
        assert show_repository(registry, admin, "tools.git").owners == [("ghost", "")]

    def test_requires_admin_rights(self, registry, bob):
        """Should refuse callers who do not administer the repository."""
        with pytest.raises(
            PermissionDeniedError,
            match="Sorry, you do not have permission to see the tools.git settings.",
        ):
            show_repository(registry, bob, "tools.git")

    def test_missing(self, registry, admin):
        with pytest.raises(NotFoundError):
            show_repository(registry, admin, "ghost.git")


class TestRepositoryRows:
    """Tests for repository_rows."""

    def test_empty_repository(self):
        """Should show no date and (empty) without commits."""
        rows = repository_rows([RepositoryRecord(name="a.git", size="1.0 KB")])
        assert rows == [{"name": "a.git", "last_modified": "", "size": EMPTY}]

    def test_verbose(self):
        """Should add description and owners."""
        record = RepositoryRecord(
            name="a.git",
            description="App",
            owners=["alice", "bob"],
            has_commits=True,
            last_change=datetime(2024, 1, 2, 3, 4),
            size="2.0 MB",
        )
        assert repository_rows([record], verbose=True) == [
            {
                "name": "a.git",
                "last_modified": "2024-01-02 03:04",
                "size": "2.0 MB",
                "description": "App",
                "owners": "alice,bob",
            }
        ]


class TestListings:
    """Tests for project, user, team and ticket listings."""

    def test_projects(self, registry, admin):
        """Should group visible repositories by project, root first."""
        projects = list_projects(registry, admin)
        assert [(p.name, p.repositories) for p in projects] == [("/", 2), ("team", 2)]

    def test_projects_filter(self, registry, admin):
        assert [p.name for p in list_projects(registry, admin, "te.*")] == ["team"]

    def test_users(self, registry):
        """Should list accounts with their role."""
        rows = user_rows(registry)
        assert rows[0] == ("admin", "Administrator", "", "admin")
        assert [r[0] for r in user_rows(registry, "a.*")] == ["admin", "alice"]

    def test_teams(self, registry):
        assert team_rows(registry) == [("devs", "1", "1")]

    def test_tickets_respect_visibility(self, registry, alice, bob):
        """Should hide tickets of repositories the caller cannot see."""
        assert ticket_rows(registry, bob) == [("team/app.git", "1", "New", "Crash on start", "bob")]
        assert len(ticket_rows(registry, alice)) == 2

    def test_invalid_filter(self, registry):
        with pytest.raises(InvalidValueError):
            user_rows(registry, "(")
