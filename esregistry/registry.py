"""In-memory registry of configured clusters with split persistence.

Non-secret fields (label, url, preferences) are projected into a
``PersistedState`` document for plain settings storage. Credentials go to a
``CredentialStore`` under a key derived from the cluster label and are merged
back in on restore.
"""

from __future__ import annotations

import logging
import threading
from typing import Mapping

from .config import PersistedClusterEntry, PersistedState, load_state
from .credentials import CredentialStore, CredentialStoreUnavailable, derive_key
from .models import AutoRefreshOptions, ClusterProfile, Credentials, ViewMode

LOG = logging.getLogger(__name__)


class ConfigurationRegistry:
    """Label-keyed cluster profiles plus global display/refresh preferences."""

    def __init__(
        self,
        credential_store: CredentialStore,
        *,
        auto_refresh: AutoRefreshOptions = AutoRefreshOptions.DISABLED,
        view_mode: ViewMode = ViewMode.TEXT,
        forget_removed_credentials: bool = False,
    ) -> None:
        self._credential_store = credential_store
        self._profiles: dict[str, ClusterProfile] = {}
        self._stale_labels: set[str] = set()
        self._lock = threading.RLock()
        self._forget_removed_credentials = forget_removed_credentials
        self.auto_refresh = auto_refresh
        self.view_mode = view_mode

    def put(self, profile: ClusterProfile) -> None:
        """Insert or replace the profile stored under ``profile.label``."""

        with self._lock:
            previous = self._profiles.get(profile.label)
            self._profiles[profile.label] = profile
            if profile.credentials is not None:
                self._stale_labels.discard(profile.label)
            elif previous is not None and previous.credentials is not None:
                self._stale_labels.add(profile.label)

    def remove(self, label: str) -> None:
        """Drop the profile if present; unknown labels are ignored."""

        with self._lock:
            if self._profiles.pop(label, None) is not None:
                self._stale_labels.add(label)

    def rename(self, old_label: str, new_label: str) -> ClusterProfile:
        """Move a profile to a new label, keeping its url and credentials."""

        with self._lock:
            current = self._profiles.get(old_label)
            if current is None:
                raise KeyError(old_label)
            renamed = ClusterProfile(label=new_label, url=current.url, credentials=current.credentials)
            if old_label != new_label:
                self.remove(old_label)
            self.put(renamed)
            return renamed

    def has(self, label: str) -> bool:
        with self._lock:
            return label in self._profiles

    def get(self, label: str) -> ClusterProfile | None:
        with self._lock:
            return self._profiles.get(label)

    def list_profiles(self) -> list[ClusterProfile]:
        """Profiles ordered by label."""

        with self._lock:
            profiles = list(self._profiles.values())
        return sorted(profiles, key=lambda profile: profile.label)

    def labels(self) -> list[str]:
        with self._lock:
            return sorted(self._profiles)

    def __len__(self) -> int:
        with self._lock:
            return len(self._profiles)

    def __contains__(self, label: object) -> bool:
        with self._lock:
            return label in self._profiles

    def snapshot(self) -> PersistedState:
        """Return the non-secret document and push credentials to the secret store.

        Credentials are written for every credentialed profile on every call.
        A failed credential write is logged and skipped so the remaining
        profiles still make it into the document.
        """

        with self._lock:
            profiles = dict(self._profiles)
            stale = set(self._stale_labels)

        entries: dict[str, PersistedClusterEntry] = {}
        for label, profile in profiles.items():
            if profile.credentials is not None:
                self._store_credentials(label, profile.credentials)
            entries[label] = PersistedClusterEntry(label=profile.label, url=profile.url)

        if self._forget_removed_credentials:
            self._forget_credentials(stale - {key for key, profile in profiles.items() if profile.has_credentials})

        return PersistedState(profiles=entries, auto_refresh=self.auto_refresh, view_mode=self.view_mode)

    def restore(self, document: PersistedState | Mapping[str, object] | None) -> None:
        """Rebuild the registry from a settings document and the secret store.

        Malformed entries are dropped and unreadable credentials leave the
        profile without credentials; neither aborts the restore.
        """

        state = load_state(document)
        profiles: dict[str, ClusterProfile] = {}
        for key, entry in state.profiles.items():
            profile = ClusterProfile(label=entry.label, url=entry.url, credentials=self._read_credentials(key))
            profiles[profile.label] = profile

        with self._lock:
            self.auto_refresh = state.auto_refresh
            self.view_mode = state.view_mode
            self._profiles = profiles
            self._stale_labels.clear()

    def _read_credentials(self, label: str) -> Credentials | None:
        try:
            stored = self._credential_store.get(derive_key(label))
        except CredentialStoreUnavailable as exc:
            LOG.warning("Credential store unavailable, loading profile without credentials", extra={"label": label})
            LOG.debug(str(exc))
            return None
        if stored is None:
            return None
        user, password = stored
        if not user or not password:
            return None
        return Credentials(user=user, password=password)

    def _store_credentials(self, label: str, credentials: Credentials) -> None:
        try:
            self._credential_store.put(derive_key(label), credentials.user, credentials.password)
        except CredentialStoreUnavailable as exc:
            LOG.warning("Skipping credential write for profile", extra={"label": label})
            LOG.debug(str(exc))

    def _forget_credentials(self, labels: set[str]) -> None:
        for label in sorted(labels):
            with self._lock:
                current = self._profiles.get(label)
                if current is not None and current.has_credentials:
                    continue
            try:
                self._credential_store.delete(derive_key(label))
            except CredentialStoreUnavailable as exc:
                LOG.warning("Failed to forget credentials for removed profile", extra={"label": label})
                LOG.debug(str(exc))
                continue
            with self._lock:
                self._stale_labels.discard(label)


__all__ = ["ConfigurationRegistry"]
