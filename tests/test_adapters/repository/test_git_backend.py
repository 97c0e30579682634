"""Tests for adapters.repository.manager module (GitBackend)."""

from __future__ import annotations

import shutil
import subprocess
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

from powertools.adapters.repository import GitBackend
from powertools.adapters.repository.manager import _format_size, _get_directory_size
from powertools.common.exceptions import BackendError, CloneError


def _completed(stdout: str = "") -> MagicMock:
    result = MagicMock()
    result.stdout = stdout
    return result


class TestGitCommands:
    """Tests for the git invocations."""

    def test_init_bare(self, tmp_path):
        """Should run git init --bare on the target path."""
        with patch("powertools.adapters.repository.manager.subprocess.run") as mock_run:
            GitBackend().init_bare(tmp_path / "team" / "app.git")

        args = mock_run.call_args[0][0]
        assert args == ["git", "init", "--bare", "--quiet", str(tmp_path / "team" / "app.git")]
        assert (tmp_path / "team").is_dir()

    def test_clone_bare_failure_raises_clone_error(self, tmp_path):
        """Should raise CloneError with git's stderr."""
        error = subprocess.CalledProcessError(128, ["git"], stderr="fatal: not found")
        with patch("powertools.adapters.repository.manager.subprocess.run", side_effect=error):
            with pytest.raises(CloneError) as exc_info:
                GitBackend().clone_bare("https://example.com/x.git", tmp_path / "x.git")

        assert "fatal: not found" in str(exc_info.value)
        assert exc_info.value.stderr == "fatal: not found"

    def test_git_not_installed(self, tmp_path):
        """Should explain a missing git executable."""
        with patch(
            "powertools.adapters.repository.manager.subprocess.run", side_effect=FileNotFoundError
        ):
            with pytest.raises(BackendError, match="Git is not installed"):
                GitBackend().init_bare(tmp_path / "a.git")

    def test_set_config_boolean(self, tmp_path):
        """Should write booleans with --bool."""
        with patch("powertools.adapters.repository.manager.subprocess.run") as mock_run:
            GitBackend().set_config(tmp_path, "remote.origin.mirror", True)

        assert mock_run.call_args[0][0] == [
            "git", "-C", str(tmp_path), "config", "--bool", "remote.origin.mirror", "true"
        ]

    def test_set_config_string(self, tmp_path):
        """Should write strings as given."""
        with patch("powertools.adapters.repository.manager.subprocess.run") as mock_run:
            GitBackend().set_config(tmp_path, "remote.origin.fetch", "+refs/*:refs/*")

        assert mock_run.call_args[0][0][-2:] == ["remote.origin.fetch", "+refs/*:refs/*"]

    def test_fetch_failure_raises_clone_error(self, tmp_path):
        """Should raise CloneError when fetch fails."""
        error = subprocess.CalledProcessError(1, ["git"], stderr="could not read")
        with patch("powertools.adapters.repository.manager.subprocess.run", side_effect=error):
            with pytest.raises(CloneError):
                GitBackend().fetch(tmp_path)


class TestStorage:
    """Tests for storage inspection and removal."""

    def test_delete_removes_directory(self, tmp_path):
        """Should remove the repository directory."""
        repo = tmp_path / "a.git"
        (repo / "objects").mkdir(parents=True)
        (repo / "HEAD").write_text("ref: refs/heads/main\n")
        GitBackend().delete(repo)
        assert not repo.exists()

    def test_delete_missing_is_ignored(self, tmp_path):
        """Should ignore a path that does not exist."""
        GitBackend().delete(tmp_path / "missing.git")

    def test_last_change_parses_commit_date(self, tmp_path):
        """Should parse the ISO commit date."""
        with patch(
            "powertools.adapters.repository.manager.subprocess.run",
            return_value=_completed("2024-05-01T12:30:00+02:00\n"),
        ):
            value = GitBackend().last_change(tmp_path)

        assert value == datetime(2024, 5, 1, 12, 30, tzinfo=timezone(timedelta(hours=2)))

    def test_last_change_empty_repository(self, tmp_path):
        """Should return None without commits."""
        error = subprocess.CalledProcessError(128, ["git"], stderr="does not have any commits")
        with patch("powertools.adapters.repository.manager.subprocess.run", side_effect=error):
            assert GitBackend().last_change(tmp_path) is None
        with patch(
            "powertools.adapters.repository.manager.subprocess.run", return_value=_completed("")
        ):
            assert GitBackend().last_change(tmp_path) is None

    def test_size(self, tmp_path):
        """Should sum file sizes."""
        (tmp_path / "pack").write_bytes(b"x" * 2048)
        assert _get_directory_size(tmp_path) == 2048
        assert GitBackend().size(tmp_path) == "2.0 KB"


class TestFormatSize:
    """Tests for _format_size."""

    @pytest.mark.parametrize(
        "size,expected",
        [
            (0, "0 bytes"),
            (512, "512 bytes"),
            (1536, "1.5 KB"),
            (5 * 1024 * 1024, "5.0 MB"),
        ],
    )
    def test_format(self, size, expected):
        """Should pick the largest fitting unit."""
        assert _format_size(size) == expected


@pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")
class TestGitIntegration:
    """Tests against the real git executable."""

    def test_init_and_inspect_empty_repository(self, tmp_path):
        """Should create a bare repository without commits."""
        backend = GitBackend()
        repo = tmp_path / "team" / "app.git"
        backend.init_bare(repo)

        assert (repo / "HEAD").is_file()
        assert backend.last_change(repo) is None
        assert backend.size(repo).endswith(("bytes", "KB"))

    def test_mirror_configuration(self, tmp_path):
        """Should clone a local repository and write the mirror settings."""
        backend = GitBackend()
        source = tmp_path / "source.git"
        target = tmp_path / "mirror.git"
        backend.init_bare(source)
        backend.clone_bare(str(source), target)
        backend.set_config(target, "remote.origin.fetch", "+refs/*:refs/*")
        backend.set_config(target, "remote.origin.mirror", True)

        config = (target / "config").read_text()
        assert "+refs/*:refs/*" in config
        assert "mirror = true" in config
