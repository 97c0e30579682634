"""Tests for common.types module."""

from __future__ import annotations

from powertools.adapters.registry import UserAccount
from powertools.adapters.repository import GitBackend
from powertools.common.types import CallerIdentity, MetadataManager, RepositoryBackend


class TestProtocols:
    """The concrete collaborators should satisfy their protocols."""

    def test_user_account_is_caller_identity(self):
        assert isinstance(UserAccount("alice"), CallerIdentity)

    def test_git_backend_is_repository_backend(self):
        assert isinstance(GitBackend(), RepositoryBackend)

    def test_registry_is_metadata_manager(self, empty_registry):
        assert isinstance(empty_registry, MetadataManager)

    def test_fake_backend_is_repository_backend(self, backend):
        assert isinstance(backend, RepositoryBackend)
