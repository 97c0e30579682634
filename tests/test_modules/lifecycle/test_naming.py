"""Tests for modules.lifecycle.naming module."""

from __future__ import annotations

import pytest

from powertools.adapters.registry import UserAccount
from powertools.common.exceptions import IllegalPathError
from powertools.modules.lifecycle.naming import (
    apply_personal_namespace,
    ensure_git_suffix,
    first_path_element,
    last_path_element,
    sanitize,
    strip_git_suffix,
)


class TestSanitize:
    """Tests for sanitize."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("foo", "foo"),
            ("foo\\bar", "foo/bar"),
            ("foo//bar", "foo/bar"),
            ("foo/bar/", "foo/bar"),
            ("team\\app.git\\", "team/app.git"),
            ("a/..b/c", "a/..b/c"),
        ],
    )
    def test_normalizes(self, raw, expected):
        """Should normalize separators and trailing slashes."""
        assert sanitize(raw) == expected

    @pytest.mark.parametrize("raw", ["/foo", "\\foo", "//foo"])
    def test_leading_slash(self, raw):
        """Should reject absolute paths."""
        with pytest.raises(IllegalPathError, match="Illegal leading slash"):
            sanitize(raw)

    @pytest.mark.parametrize("raw", ["../foo", "foo/../bar", "a\\..\\b"])
    def test_relative_segment(self, raw):
        """Should reject relative segments."""
        with pytest.raises(IllegalPathError, match="Illegal relative slash"):
            sanitize(raw)


class TestPathElements:
    """Tests for the path helpers."""

    def test_first_path_element(self):
        """Should return the leading folder or an empty string."""
        assert first_path_element("team/sub/app.git") == "team"
        assert first_path_element("app.git") == ""

    def test_last_path_element(self):
        """Should return the final segment."""
        assert last_path_element("team/sub/app.git") == "app.git"

    def test_git_suffix(self):
        """Should add and strip .git once."""
        assert ensure_git_suffix("app") == "app.git"
        assert ensure_git_suffix("app.git") == "app.git"
        assert strip_git_suffix("app.git") == "app"
        assert strip_git_suffix("app") == "app"


class TestPersonalNamespace:
    """Tests for apply_personal_namespace."""

    def test_rewrites_top_level_name(self):
        """Should move top-level names into ~user."""
        alice = UserAccount("alice", create_allowed=True)
        assert apply_personal_namespace("app.git", alice) == "~alice/app.git"

    def test_keeps_folder_names(self):
        """Should leave names with a folder to the permission check."""
        alice = UserAccount("alice", create_allowed=True)
        assert apply_personal_namespace("team/app.git", alice) == "team/app.git"

    def test_admin_unchanged(self):
        """Should not rewrite names an admin may create."""
        assert apply_personal_namespace("app.git", UserAccount("root", is_admin=True)) == "app.git"
