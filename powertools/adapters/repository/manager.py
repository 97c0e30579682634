"""Git Backend - storage operations on bare repositories.

This module drives the git executable to create, mirror, fetch and remove
bare repositories, and reads the volatile facts (last change, size) the
registry shows in listings.

Usage:
    from powertools.adapters.repository import GitBackend

    backend = GitBackend()

    # Mirror a remote
    backend.clone_bare("https://example.com/team/app.git", path)
    backend.set_config(path, "remote.origin.fetch", "+refs/*:refs/*")
    backend.set_config(path, "remote.origin.mirror", True)
    backend.fetch(path)

    # Inspect
    backend.last_change(path)
    backend.size(path)
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import subprocess
import time
from datetime import datetime
from pathlib import Path

from powertools.common.exceptions import BackendError, CloneError, DeleteError

logger = logging.getLogger(__name__)


# =============================================================================
# Helper Functions
# =============================================================================


def _handle_remove_readonly(func, path, exc):
    """Error handler for Windows readonly files."""
    os.chmod(path, stat.S_IWRITE)
    func(path)


def _force_remove_directory(path: Path, max_retries: int = 3) -> None:
    """Forcefully remove a directory, handling Windows file locks."""
    for attempt in range(max_retries):
        try:
            if os.name == "nt":
                shutil.rmtree(path, onerror=_handle_remove_readonly)
            else:
                shutil.rmtree(path)
            return
        except PermissionError as e:
            if attempt < max_retries - 1:
                time.sleep(0.5)
                continue
            raise DeleteError(
                f"Failed to delete directory after {max_retries} attempts. "
                f"Some files may be locked by another process: {e}"
            ) from e
        except OSError as e:
            raise DeleteError(f"Failed to delete directory: {e}") from e


def _get_directory_size(path: Path) -> int:
    """Calculate total size of directory in bytes."""
    total_size = 0
    try:
        for dirpath, _dirnames, filenames in os.walk(path):
            for filename in filenames:
                filepath = os.path.join(dirpath, filename)
                try:
                    total_size += os.path.getsize(filepath)
                except OSError:
                    pass
    except OSError as e:
        logger.debug("Error calculating directory size for %s: %s", path, e)
    return total_size


def _format_size(size_bytes: int) -> str:
    """Render a byte count the way listings show it (e.g. "1.5 MB")."""
    size = float(size_bytes)
    for unit in ("bytes", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            if unit == "bytes":
                return f"{int(size)} bytes"
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def _run_git(args: list[str], error_cls: type[BackendError] = BackendError) -> str:
    """Run a git command and return its stdout.

    Raises:
        error_cls: If git exits non-zero or is not installed.
    """
    cmd = ["git", *args]
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd, capture_output=True, encoding="utf-8", errors="replace", check=True
        )
    except subprocess.CalledProcessError as e:
        detail = (e.stderr or e.stdout or str(e)).strip()
        raise error_cls(f"git {args[0]} failed: {detail}", stderr=e.stderr) from e
    except FileNotFoundError as e:
        raise error_cls(
            "Git is not installed or not in PATH. "
            "Please install Git to manage repositories."
        ) from e
    return result.stdout


# =============================================================================
# Git Backend
# =============================================================================


class GitBackend:
    """Repository backend for bare git repositories on local disk."""

    def init_bare(self, path: Path) -> None:
        """Create an empty bare repository at path."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        _run_git(["init", "--bare", "--quiet", str(path)])
        logger.info("Initialized bare repository %s", path)

    def clone_bare(self, url: str, path: Path) -> None:
        """Bare clone url into path with all of its branches.

        Raises:
            CloneError: If cloning fails
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        _run_git(["clone", "--bare", "--quiet", url, str(path)], CloneError)
        logger.info("Cloned %s into %s", url, path)

    def set_config(self, path: Path, key: str, value: str | bool) -> None:
        """Set a repository config key; booleans are written as git booleans."""
        if isinstance(value, bool):
            _run_git(["-C", str(path), "config", "--bool", key, "true" if value else "false"])
        else:
            _run_git(["-C", str(path), "config", key, value])

    def fetch(self, path: Path) -> None:
        """Fetch from origin using the configured refspecs.

        Raises:
            CloneError: If the fetch fails
        """
        _run_git(["-C", str(path), "fetch", "--quiet", "origin"], CloneError)

    def delete(self, path: Path) -> None:
        """Remove repository storage. Missing paths are ignored."""
        path = Path(path)
        if path.exists():
            _force_remove_directory(path)
            logger.info("Deleted repository storage %s", path)

    def last_change(self, path: Path) -> datetime | None:
        """Commit date of the newest commit on any ref, None when empty."""
        try:
            output = _run_git(["-C", str(path), "log", "-1", "--all", "--format=%cI"])
        except BackendError as e:
            logger.debug("No commits readable in %s: %s", path, e)
            return None
        output = output.strip()
        if not output:
            return None
        try:
            return datetime.fromisoformat(output)
        except ValueError:
            logger.warning("Unparseable commit date %r in %s", output, path)
            return None

    def size(self, path: Path) -> str:
        """Human readable size of the repository storage."""
        return _format_size(_get_directory_size(Path(path)))
