"""Tests for cli.cli module (typer-based)."""

from __future__ import annotations

import pytest
from typer.testing import CliRunner

from powertools import __version__
from powertools.adapters.registry import AccessRestriction, RegistryManager, RepositoryRecord, UserAccount
from powertools.cli.cli import app, main
from powertools.common.logging import read_command_logs
from powertools.services.config import get_settings

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch, backend):
    """
    Data directory wired into the CLI through the environment.

    The session's git backend is replaced by the fake backend.
    """
    monkeypatch.setenv("POWERTOOLS_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("POWERTOOLS_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("POWERTOOLS_USER", raising=False)
    monkeypatch.delenv("POWERTOOLS_DEFAULT_USER", raising=False)
    monkeypatch.delenv("POWERTOOLS_REPOSITORIES_DIR", raising=False)
    monkeypatch.setattr("powertools.services.session.GitBackend", lambda: backend)
    get_settings.cache_clear()

    registry = RegistryManager(tmp_path / "data", backend=backend)
    registry.update_user(UserAccount("alice", display_name="Alice Doe", create_allowed=True))
    registry.update_user(UserAccount("bob", display_name="Bob Roe"))
    for name in ("team/app.git", "team/lib.git", "tools.git"):
        registry.update_repository(name, RepositoryRecord(name=name), True)
    yield tmp_path
    get_settings.cache_clear()


def _registry(workspace) -> RegistryManager:
    return RegistryManager(workspace / "data")


class TestCLIBasics:
    """Tests for the root command."""

    def test_help(self):
        """Should show the root help."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "--user" in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_command_prints_usage(self, workspace):
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "gitblit" in result.output

    def test_unknown_user(self, workspace):
        """Should refuse unknown accounts."""
        result = runner.invoke(app, ["-u", "mallory", "gb", "repos", "ls"])
        assert result.exit_code == 1
        assert "fatal: Unknown account mallory" in result.output

    def test_user_from_environment(self, workspace, monkeypatch):
        monkeypatch.setenv("POWERTOOLS_USER", "bob")
        result = runner.invoke(app, ["gb", "repos", "ls", "-t"])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["team/app.git", "team/lib.git", "tools.git"]

    def test_unknown_command(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gb", "repos", "clone"])
        assert result.exit_code == 1
        assert "fatal: repositories: clone: not found" in result.output

    def test_main_returns_exit_code(self, workspace, monkeypatch):
        """main() should return the exit code instead of exiting."""
        monkeypatch.setattr("sys.argv", ["powertools", "-u", "admin", "gb", "reset"])
        assert main() == 0


class TestRepositoryCommands:
    """End-to-end tests of the repositories group."""

    def test_new(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gitblit", "repositories", "new", "team/svc"])
        assert result.exit_code == 0
        assert result.output.strip() == "'team/svc.git' created."
        assert _registry(workspace).get_repository("team/svc.git") is not None

    def test_new_existing(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gb", "repos", "add", "tools"])
        assert result.exit_code == 1
        assert "fatal: Repository tools.git already exists!" in result.output

    def test_new_mirror(self, workspace, backend):
        url = "https://example.com/lib.git"
        result = runner.invoke(app, ["-u", "admin", "gb", "repos", "new", "mirrors/lib", "--mirror", url])
        assert result.exit_code == 0
        assert f"created as mirror of {url}" in result.output
        assert backend.called("fetch")

    def test_new_personal_namespace(self, workspace):
        result = runner.invoke(app, ["-u", "alice", "gb", "repos", "new", "scratch"])
        assert result.exit_code == 0
        assert "'~alice/scratch.git' created." in result.output

    def test_rename(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gb", "repos", "mv", "tools.git", "utils.git"])
        assert result.exit_code == 0
        assert "Renamed repository tools.git to utils.git." in result.output

    def test_rename_same_name(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gb", "repos", "rename", "tools.git", "Tools.git"])
        assert result.exit_code == 1
        assert "Repository names are identical" in result.output

    def test_remove_denied(self, workspace):
        result = runner.invoke(app, ["-u", "bob", "gb", "repos", "rm", "tools.git"])
        assert result.exit_code == 1
        assert "Sorry, you do not have permission to delete tools.git" in result.output
        assert _registry(workspace).get_repository("tools.git") is not None

    def test_remove(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gb", "repos", "remove", "tools.git"])
        assert result.exit_code == 0
        assert "tools.git has been deleted." in result.output

    def test_fork(self, workspace):
        result = runner.invoke(app, ["-u", "bob", "gb", "repos", "fork", "team/app.git"])
        assert result.exit_code == 0
        assert "team/app.git has been forked." in result.output
        assert "   git clone ssh://bob@localhost:29418/~bob/app.git" in result.output

    def test_set_field(self, workspace):
        result = runner.invoke(
            app, ["-u", "admin", "gb", "repos", "set", "team/app.git", "accessRestriction", "VIEW"]
        )
        assert result.exit_code == 0
        assert "Set team/app.git.accessRestriction = VIEW" in result.output
        record = _registry(workspace).get_repository("team/app.git")
        assert record.access_restriction is AccessRestriction.VIEW

    def test_set_multi_word_value(self, workspace):
        result = runner.invoke(
            app, ["-u", "admin", "gb", "repos", "set", "tools.git", "description", "Build", "tools"]
        )
        assert result.exit_code == 0
        assert _registry(workspace).get_repository("tools.git").description == "Build tools"

    def test_set_unknown_field(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gb", "repos", "set", "tools.git", "colour", "red"])
        assert result.exit_code == 1
        assert "Unknown field colour" in result.output
        assert "Valid fields are:" in result.output

    def test_show(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gb", "repos", "show", "team/app.git"])
        assert result.exit_code == 0
        for heading in ("FIELDS", "OWNERS", "TEAM PERMISSIONS", "USER PERMISSIONS"):
            assert heading in result.output

    def test_list_filter(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gb", "repos", "ls", "^team/.*", "-t"])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["team/app.git", "team/lib.git"]

    def test_list_verbose_tabbed(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gb", "ls", "repos", "tools.git", "-v", "-t"])
        assert result.exit_code == 0
        assert result.output.splitlines() == ["tools.git\t\t\t\t(empty)"]

    def test_missing_argument(self, workspace):
        """Leaf usage errors should exit with click's code."""
        result = runner.invoke(app, ["-u", "admin", "gb", "repos", "rename", "tools.git"])
        assert result.exit_code == 2
        entries = read_command_logs(workspace / "logs")
        assert [e["status"] for e in entries] == ["started", "error"]

    def test_rename_onto_project_folder(self, workspace):
        """Should refuse to move a repository onto a project folder."""
        result = runner.invoke(app, ["-u", "admin", "gb", "repos", "mv", "tools.git", "team"])
        assert result.exit_code == 1
        assert "Failed to rename repository from tools.git to team" in result.output
        assert (workspace / "data" / "git" / "team" / "app.git").is_dir()

    def test_audit_log(self, workspace):
        runner.invoke(app, ["-u", "admin", "gb", "repos", "new", "audited"])
        entries = read_command_logs(workspace / "logs")
        assert [e["status"] for e in entries] == ["started", "completed"]
        assert entries[0]["command"] == "gitblit repositories new"


class TestServerCommands:
    """End-to-end tests of admin commands and listings."""

    def test_config_requires_admin(self, workspace):
        result = runner.invoke(app, ["-u", "bob", "gb", "config"])
        assert result.exit_code == 1
        assert "Sorry, you must be an administrator to run 'gitblit config'" in result.output

    def test_config_set_and_get(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gb", "config", "web.siteName", "My", "Forge"])
        assert result.exit_code == 0
        assert result.output.strip() == "web.siteName = My Forge"

        result = runner.invoke(app, ["-u", "admin", "gb", "config", "web.siteName"])
        assert result.output.strip() == "web.siteName = My Forge"

    def test_config_undefined_key(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gb", "config", "web.nothing"])
        assert result.exit_code == 1
        assert "Setting web.nothing is not defined" in result.output

    def test_reset(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gb", "reset"])
        assert result.exit_code == 0
        assert result.output == ""

    def test_list_users_tabbed(self, workspace):
        result = runner.invoke(app, ["-u", "admin", "gb", "users", "ls", "-t"])
        assert result.exit_code == 0
        assert result.output.splitlines()[1] == "alice\tAlice Doe\t\t"

    def test_list_users_denied(self, workspace):
        result = runner.invoke(app, ["-u", "bob", "gb", "list", "users"])
        assert result.exit_code == 1

    def test_list_projects(self, workspace):
        result = runner.invoke(app, ["-u", "bob", "gb", "projects", "list", "-t"])
        assert result.exit_code == 0
        assert [line.split("\t")[:2] for line in result.output.splitlines()] == [
            ["/", "1"],
            ["team", "2"],
        ]
