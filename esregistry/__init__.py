"""Cluster configuration registry with split secret/non-secret persistence."""

from __future__ import annotations

__version__ = "0.1.0"

from .config import (
    InMemorySettingsStore,
    MalformedPersistedEntry,
    PersistedClusterEntry,
    PersistedState,
    SettingsStore,
    TomlSettingsStore,
)
from .credentials import (
    CredentialStore,
    CredentialStoreUnavailable,
    InMemoryCredentialStore,
    KeyringCredentialStore,
    derive_key,
)
from .models import AutoRefreshOptions, ClusterProfile, Credentials, ViewMode
from .registry import ConfigurationRegistry
from .service import ClusterConfigurationService

__all__ = [
    "AutoRefreshOptions",
    "ClusterConfigurationService",
    "ClusterProfile",
    "ConfigurationRegistry",
    "CredentialStore",
    "CredentialStoreUnavailable",
    "Credentials",
    "InMemoryCredentialStore",
    "InMemorySettingsStore",
    "KeyringCredentialStore",
    "MalformedPersistedEntry",
    "PersistedClusterEntry",
    "PersistedState",
    "SettingsStore",
    "TomlSettingsStore",
    "ViewMode",
    "derive_key",
    "__version__",
]
