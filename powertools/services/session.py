"""
PowertoolsSession - collaborators for one command invocation.

The session owns the registry, the git backend and the audit logger, and
resolves the caller's account. Commands receive it through the dispatcher
context rather than constructing managers themselves.

Usage:
    with PowertoolsSession() as session:
        user = session.resolve_user("admin")
        create_repository(session.registry, session.backend, user, "team/app")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from powertools.adapters.registry import RegistryManager, UserAccount
from powertools.adapters.repository import GitBackend
from powertools.common.exceptions import PermissionDeniedError
from powertools.common.logging import (
    CommandLogger,
    CommandLoggerHandler,
    setup_logging_bridge,
    teardown_logging_bridge,
)

from .config import get_settings

if TYPE_CHECKING:
    from .config_models import PowertoolsSettings

logger = logging.getLogger(__name__)


class PowertoolsSession:
    """Unified session for CLI commands.

    Manages the lifecycle of:
    - the registry (metadata manager)
    - the git backend
    - the JSONL command audit log and its standard logging bridge
    """

    def __init__(
        self,
        settings: PowertoolsSettings | None = None,
        auto_connect: bool = False,
    ):
        """Initialize session.

        Args:
            settings: Process settings (default: get_settings())
            auto_connect: If True, connect immediately
        """
        self.settings = settings or get_settings()

        self._registry: RegistryManager | None = None
        self._backend: GitBackend | None = None
        self._command_logger: CommandLogger | None = None
        self._bridge: CommandLoggerHandler | None = None
        self._connected = False

        if auto_connect:
            self.connect()

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def connect(self) -> None:
        """Open the registry and the audit log."""
        if self._connected:
            return

        self._backend = GitBackend()
        self._registry = RegistryManager(
            self.settings.data_dir,
            repositories_dir=self.settings.repositories_path,
            backend=self._backend,
            registry_file=self.settings.registry_file,
            clone_url=self.settings.clone_url,
        )

        log_settings = self.settings.logging
        if log_settings.audit:
            self._command_logger = CommandLogger(log_settings.dir)
            self._bridge = setup_logging_bridge(self._command_logger)

        self._connected = True
        logger.debug("Session connected to %s", self._registry.data_dir)

    def disconnect(self) -> None:
        """Release the audit log bridge."""
        if not self._connected:
            return
        if self._bridge is not None:
            teardown_logging_bridge(self._bridge)
            self._bridge = None
        self._command_logger = None
        self._registry = None
        self._backend = None
        self._connected = False

    def __enter__(self) -> PowertoolsSession:
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise RuntimeError("Session not connected. Call connect() first.")

    @property
    def is_connected(self) -> bool:
        return self._connected

    # =========================================================================
    # COLLABORATORS
    # =========================================================================

    @property
    def registry(self) -> RegistryManager:
        self._ensure_connected()
        assert self._registry is not None
        return self._registry

    @property
    def backend(self) -> GitBackend:
        self._ensure_connected()
        assert self._backend is not None
        return self._backend

    @property
    def command_logger(self) -> CommandLogger | None:
        return self._command_logger

    def resolve_user(self, username: str | None) -> UserAccount:
        """
        Account of the caller.

        Raises:
            PermissionDeniedError: If no username is given or it is unknown
        """
        self._ensure_connected()
        name = username or self.settings.default_user
        if not name:
            raise PermissionDeniedError("No user specified. Use --user or POWERTOOLS_DEFAULT_USER.")
        user = self.registry.get_user(name)
        if user is None:
            raise PermissionDeniedError(f"Unknown account {name}")
        return user
