"""Credential store adapters keyed by cluster label."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Protocol, runtime_checkable

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

LOG = logging.getLogger(__name__)

SERVICE_NAMESPACE = "esregistry ElasticsearchPlugin"
KEYRING_ACCOUNT = "credentials"


class CredentialStoreUnavailable(RuntimeError):
    """Raised when the secret store cannot complete a read, write or delete."""


def derive_key(label: str, namespace: str = SERVICE_NAMESPACE) -> str:
    """Return the credential store key for a cluster label.

    The namespace prefix keeps our entries apart from anything else living in
    the user's keychain; for a fixed namespace distinct labels give distinct
    keys.
    """

    return f"{namespace} - {label}"


@runtime_checkable
class CredentialStore(Protocol):
    """Protocol implemented by secret stores."""

    def get(self, key: str) -> tuple[str, str] | None:
        """Return ``(username, secret)`` stored under ``key``, if any."""

    def put(self, key: str, username: str, secret: str) -> None:
        """Store the pair under ``key``, overwriting any previous value."""

    def delete(self, key: str) -> None:
        """Forget ``key``; absent keys are ignored."""


class KeyringCredentialStore:
    """Credential store backed by the system keyring."""

    def __init__(self, backend: Any | None = None, *, account: str = KEYRING_ACCOUNT) -> None:
        self._backend = backend
        self._account = account

    def get(self, key: str) -> tuple[str, str] | None:
        try:
            payload = self._keyring().get_password(key, self._account)
        except KeyringError as exc:
            raise CredentialStoreUnavailable(f"Failed to read credentials for '{key}': {exc}") from exc
        if payload is None:
            return None
        return self._decode(key, payload)

    def put(self, key: str, username: str, secret: str) -> None:
        payload = json.dumps({"user": username, "password": secret})
        try:
            self._keyring().set_password(key, self._account, payload)
        except KeyringError as exc:
            raise CredentialStoreUnavailable(f"Failed to store credentials for '{key}': {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._keyring().delete_password(key, self._account)
        except PasswordDeleteError:
            return
        except KeyringError as exc:
            raise CredentialStoreUnavailable(f"Failed to delete credentials for '{key}': {exc}") from exc

    def _keyring(self) -> Any:
        if self._backend is None:
            try:
                self._backend = keyring.get_keyring()
            except KeyringError as exc:  # pragma: no cover - depends on host keyring setup
                raise CredentialStoreUnavailable(f"No usable keyring backend: {exc}") from exc
        return self._backend

    @staticmethod
    def _decode(key: str, payload: str) -> tuple[str, str] | None:
        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            LOG.warning("Ignoring unreadable keyring entry", extra={"key": key})
            return None
        if not isinstance(data, dict):
            return None
        user = data.get("user")
        password = data.get("password")
        if not isinstance(user, str) or not isinstance(password, str):
            return None
        return user, password


class InMemoryCredentialStore:
    """Process-local credential store (tests and keyring-less hosts)."""

    def __init__(self, entries: dict[str, tuple[str, str]] | None = None) -> None:
        self._entries: dict[str, tuple[str, str]] = dict(entries or {})
        self._lock = threading.Lock()
        self.unavailable = False

    def get(self, key: str) -> tuple[str, str] | None:
        self._check_available(key)
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, username: str, secret: str) -> None:
        self._check_available(key)
        with self._lock:
            self._entries[key] = (username, secret)

    def delete(self, key: str) -> None:
        self._check_available(key)
        with self._lock:
            self._entries.pop(key, None)

    def keys(self) -> tuple[str, ...]:
        """Stored keys, sorted (testing helper)."""

        with self._lock:
            return tuple(sorted(self._entries))

    def _check_available(self, key: str) -> None:
        if self.unavailable:
            raise CredentialStoreUnavailable(f"Credential store offline while accessing '{key}'")


__all__ = [
    "CredentialStore",
    "CredentialStoreUnavailable",
    "InMemoryCredentialStore",
    "KeyringCredentialStore",
    "SERVICE_NAMESPACE",
    "derive_key",
]
