"""Tests for common.exceptions module."""

from __future__ import annotations

import pytest

from powertools.common.exceptions import (
    AlreadyExistsError,
    BackendError,
    CloneError,
    NotFoundError,
    PowertoolsError,
    UnknownCommandError,
    UnknownFieldError,
)


class TestPowertoolsError:
    """Tests for the base error."""

    def test_message_and_default_exit_code(self):
        """Should carry its message and exit with 1."""
        error = NotFoundError("Repository x does not exist!")
        assert str(error) == "Repository x does not exist!"
        assert error.message == "Repository x does not exist!"
        assert error.exit_code == 1

    def test_custom_exit_code(self):
        """Should accept a custom exit code."""
        assert AlreadyExistsError("taken", exit_code=3).exit_code == 3

    def test_all_errors_share_base(self):
        """Should be catchable as PowertoolsError."""
        with pytest.raises(PowertoolsError):
            raise CloneError("clone failed")


class TestUnknownFieldError:
    """Tests for UnknownFieldError."""

    def test_lists_valid_fields(self):
        """Should name the field and list the valid ones."""
        error = UnknownFieldError("colour", ["description", "owners"])
        assert error.field == "colour"
        assert str(error) == "Unknown field colour\nValid fields are:\n   description, owners"


class TestUnknownCommandError:
    """Tests for UnknownCommandError."""

    def test_appends_available_commands(self):
        """Should append the available commands when given."""
        error = UnknownCommandError("gitblit: foo: not found", ["list", "repositories"])
        assert str(error).endswith("Available commands: list, repositories")
        assert error.available == ["list", "repositories"]

    def test_without_available_commands(self):
        """Should keep the plain message without commands."""
        assert str(UnknownCommandError("no command specified")) == "no command specified"


class TestBackendError:
    """Tests for BackendError."""

    def test_keeps_stderr(self):
        """Should keep the captured stderr."""
        error = CloneError("git clone failed", stderr="fatal: repository not found")
        assert isinstance(error, BackendError)
        assert error.stderr == "fatal: repository not found"
