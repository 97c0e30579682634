"""
Configuration service for powertools.

Two layers of configuration:
    - Process settings (PowertoolsSettings): where the registry and the
      repositories live, logging, clone URL template. Read from the
      environment and .env via pydantic-settings.
    - Server settings: hosting-service keys such as
      git.defaultAccessRestriction, stored in the registry and managed by
      the config command.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import TYPE_CHECKING

from pydantic import ValidationError

from powertools.common.exceptions import InvalidValueError, NotFoundError

from .config_models import PowertoolsSettings, ServerSettingModel

if TYPE_CHECKING:
    from powertools.adapters.registry import RegistryManager

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> PowertoolsSettings:
    """Process settings, loaded once."""
    return PowertoolsSettings()


# =============================================================================
# Server Settings
# =============================================================================


def get_setting(registry: RegistryManager, key: str) -> str:
    """
    Get a server setting by key.

    Raises:
        NotFoundError: If the key is not set
    """
    value = registry.get_setting(key)
    if value is None:
        raise NotFoundError(f"Setting {key} is not defined")
    return value


def set_setting(registry: RegistryManager, key: str, value: str) -> ServerSettingModel:
    """
    Set a server setting (upsert).

    Raises:
        InvalidValueError: If the key is empty or contains whitespace
    """
    try:
        setting = ServerSettingModel(key=key, value=value)
    except ValidationError as e:
        raise InvalidValueError(f"Invalid setting {key!r}: {e.errors()[0]['msg']}") from e
    registry.set_setting(setting.key, setting.value)
    logger.info("Server setting %s = %s", setting.key, setting.value)
    return setting


def list_settings(registry: RegistryManager, prefix: str | None = None) -> dict[str, str]:
    """All server settings, optionally limited to keys starting with prefix."""
    settings = registry.list_settings()
    if prefix:
        settings = {k: v for k, v in settings.items() if k.startswith(prefix)}
    return dict(sorted(settings.items()))
