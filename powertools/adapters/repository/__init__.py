"""Git Backend - storage operations on bare repositories.

This package wraps the git executable for the registry and for mirror
creation.
"""

from __future__ import annotations

from powertools.common.exceptions import BackendError, CloneError, DeleteError

from .manager import GitBackend

__all__ = [
    "GitBackend",
    # Exceptions
    "BackendError",
    "CloneError",
    "DeleteError",
]

__version__ = "1.0.0"
