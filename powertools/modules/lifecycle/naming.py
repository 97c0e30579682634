"""
Repository name handling.

Turns user supplied repository paths into canonical relative names and
applies the personal-namespace fallback used by create and rename.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from powertools.common.exceptions import IllegalPathError

if TYPE_CHECKING:
    from powertools.common.types import CallerIdentity

GIT_SUFFIX = ".git"


def sanitize(raw: str) -> str:
    """
    Normalize a repository path.

    Backslashes become forward slashes, doubled slashes are collapsed once,
    and one trailing slash is removed.

    Args:
        raw: Path as typed by the user

    Returns:
        Canonical relative repository path

    Raises:
        IllegalPathError: On a leading slash or a relative ("..") segment

    Examples:
        >>> sanitize("foo\\\\bar//baz/")
        'foo/bar/baz'
    """
    name = raw.replace("\\", "/").replace("//", "/")
    if name.startswith("/"):
        raise IllegalPathError("Illegal leading slash")
    if name.startswith("../") or "/../" in name:
        raise IllegalPathError("Illegal relative slash")
    if name.endswith("/"):
        name = name[:-1]
    return name


def first_path_element(name: str) -> str:
    """Leading folder of a path, empty when the path has no folder."""
    if "/" not in name:
        return ""
    return name.split("/", 1)[0]


def last_path_element(name: str) -> str:
    return name.rsplit("/", 1)[-1]


def ensure_git_suffix(name: str) -> str:
    if name.endswith(GIT_SUFFIX):
        return name
    return name + GIT_SUFFIX


def strip_git_suffix(name: str) -> str:
    if name.endswith(GIT_SUFFIX):
        return name[: -len(GIT_SUFFIX)]
    return name


def apply_personal_namespace(name: str, user: CallerIdentity) -> str:
    """
    Move a top-level name into the caller's personal namespace.

    Only a name the caller may not create and that sits at the top level is
    rewritten; everything else comes back unchanged and is left to the
    permission check.
    """
    if not user.can_create(name) and first_path_element(name) == "":
        return f"{user.personal_path}/{name}"
    return name
