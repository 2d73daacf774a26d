"""Host-facing wiring between the registry and its two stores."""

from __future__ import annotations

import logging

from .config import PersistedState, SettingsStore, TomlSettingsStore
from .credentials import CredentialStore, KeyringCredentialStore
from .registry import ConfigurationRegistry

LOG = logging.getLogger(__name__)


class ClusterConfigurationService:
    """Owns the session's registry and drives load/save against the stores."""

    def __init__(
        self,
        settings_store: SettingsStore | None = None,
        credential_store: CredentialStore | None = None,
        *,
        forget_removed_credentials: bool = False,
    ) -> None:
        self._settings_store = settings_store or TomlSettingsStore()
        self._credential_store = credential_store or KeyringCredentialStore()
        self._registry = ConfigurationRegistry(
            self._credential_store,
            forget_removed_credentials=forget_removed_credentials,
        )

    @property
    def registry(self) -> ConfigurationRegistry:
        """The live registry for this session."""

        return self._registry

    def load(self) -> ConfigurationRegistry:
        """Restore the registry from the settings store; missing settings mean defaults."""

        document = self._settings_store.read()
        self._registry.restore(document)
        LOG.debug("Loaded cluster configuration", extra={"profiles": len(self._registry)})
        return self._registry

    def save(self) -> PersistedState:
        """Snapshot the registry and hand the document to the settings store."""

        state = self._registry.snapshot()
        self._settings_store.write(state)
        LOG.debug("Saved cluster configuration", extra={"profiles": len(state.profiles)})
        return state


__all__ = ["ClusterConfigurationService"]
