"""Persisted (non-secret) settings document and its storage adapters."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Protocol, runtime_checkable

import tomllib
from pydantic import BaseModel, ConfigDict, Field

from .models import AutoRefreshOptions, ViewMode

LOG = logging.getLogger(__name__)

SETTINGS_ENV_VAR = "ESREGISTRY_SETTINGS"


def default_settings_path() -> Path:
    """Settings file location, honouring the ``ESREGISTRY_SETTINGS`` override."""

    override = os.environ.get(SETTINGS_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".config" / "esregistry" / "settings.toml"


SETTINGS_FILE = default_settings_path()


class MalformedPersistedEntry(ValueError):
    """Raised when a persisted cluster entry is missing required fields."""


class PersistedClusterEntry(BaseModel):
    """Non-secret projection of a cluster profile."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    label: str
    url: str


class PersistedState(BaseModel):
    """Shape of the settings document handed to the settings store."""

    model_config = ConfigDict(populate_by_name=True)

    profiles: dict[str, PersistedClusterEntry] = Field(default_factory=dict)
    auto_refresh: AutoRefreshOptions = Field(default=AutoRefreshOptions.DISABLED, alias="refreshMode")
    view_mode: ViewMode = Field(default=ViewMode.TEXT, alias="viewMode")

    def to_document(self) -> dict[str, Any]:
        """Plain mapping using the persisted field names."""

        return self.model_dump(mode="json", by_alias=True)


def parse_cluster_entry(key: str, raw: object) -> PersistedClusterEntry:
    """Validate one ``profiles`` entry read from settings storage."""

    if isinstance(raw, PersistedClusterEntry):
        return raw
    if not isinstance(raw, Mapping):
        raise MalformedPersistedEntry(f"Entry '{key}' is not a table")
    label = raw.get("label")
    url = raw.get("url")
    if not isinstance(label, str):
        raise MalformedPersistedEntry(f"Entry '{key}' has no label")
    if not isinstance(url, str):
        raise MalformedPersistedEntry(f"Entry '{key}' has no url")
    return PersistedClusterEntry(label=label, url=url)


def load_state(raw: PersistedState | Mapping[str, object] | None) -> PersistedState:
    """Build a ``PersistedState`` from a raw document, skipping bad entries."""

    if isinstance(raw, PersistedState):
        return raw
    if not isinstance(raw, Mapping):
        if raw is not None:
            LOG.warning("Ignoring settings document of unexpected type", extra={"type": type(raw).__name__})
        return PersistedState()

    profiles: dict[str, PersistedClusterEntry] = {}
    entries = raw.get("profiles")
    if isinstance(entries, Mapping):
        for key, entry in entries.items():
            try:
                profiles[str(key)] = parse_cluster_entry(str(key), entry)
            except MalformedPersistedEntry as exc:
                LOG.debug("Skipping malformed cluster entry", extra={"entry": str(key)})
                LOG.debug(str(exc))
                continue

    return PersistedState(
        profiles=profiles,
        auto_refresh=_parse_enum(AutoRefreshOptions, raw.get("refreshMode"), AutoRefreshOptions.DISABLED),
        view_mode=_parse_enum(ViewMode, raw.get("viewMode"), ViewMode.TEXT),
    )


def _parse_enum(enum_type: Any, value: object, default: Any) -> Any:
    if value is None:
        return default
    if isinstance(value, enum_type):
        return value
    if isinstance(value, str) and value in enum_type.__members__:
        return enum_type[value]
    LOG.warning("Unknown preference value, using default", extra={"value": repr(value), "default": default.name})
    return default


@runtime_checkable
class SettingsStore(Protocol):
    """Protocol implemented by plain settings persistence."""

    def read(self) -> Mapping[str, object] | None:
        """Return the stored document, or ``None`` when nothing was saved."""

    def write(self, document: PersistedState) -> None:
        """Persist the document, replacing what was stored."""


class TomlSettingsStore:
    """Settings store writing the document to a TOML file."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path or SETTINGS_FILE

    def read(self) -> Mapping[str, object] | None:
        try:
            with self.path.open("rb") as handle:
                return tomllib.load(handle)
        except FileNotFoundError:
            return None
        except (tomllib.TOMLDecodeError, OSError) as exc:
            LOG.warning("Failed to read settings file", extra={"path": str(self.path)})
            LOG.debug(str(exc))
            return None

    def write(self, document: PersistedState) -> None:
        data = document.to_document()
        lines: list[str] = [
            f"refreshMode = {_toml_string(data['refreshMode'])}",
            f"viewMode = {_toml_string(data['viewMode'])}",
        ]
        for key in sorted(data["profiles"]):
            entry = data["profiles"][key]
            lines.append("")
            lines.append(f"[profiles.{_toml_string(key)}]")
            lines.append(f"label = {_toml_string(entry['label'])}")
            lines.append(f"url = {_toml_string(entry['url'])}")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("\n".join(lines) + "\n", encoding="utf-8")


class InMemorySettingsStore:
    """Settings store keeping the last written document in memory."""

    def __init__(self, document: Mapping[str, object] | None = None) -> None:
        self.document: dict[str, Any] | None = dict(document) if document is not None else None

    def read(self) -> Mapping[str, object] | None:
        return self.document

    def write(self, document: PersistedState) -> None:
        self.document = document.to_document()


_TOML_ESCAPES = {'"': '\\"', "\\": "\\\\", "\b": "\\b", "\t": "\\t", "\n": "\\n", "\f": "\\f", "\r": "\\r"}


def _toml_string(value: str) -> str:
    chunks: list[str] = []
    for char in value:
        if char in _TOML_ESCAPES:
            chunks.append(_TOML_ESCAPES[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            chunks.append(f"\\u{ord(char):04x}")
        else:
            chunks.append(char)
    return '"' + "".join(chunks) + '"'


__all__ = [
    "InMemorySettingsStore",
    "MalformedPersistedEntry",
    "PersistedClusterEntry",
    "PersistedState",
    "SETTINGS_FILE",
    "SettingsStore",
    "TomlSettingsStore",
    "default_settings_path",
    "load_state",
    "parse_cluster_entry",
]
