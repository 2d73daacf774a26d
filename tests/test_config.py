"""Tests for the persisted settings document and settings stores."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from esregistry import config as config_module
from esregistry.config import (
    InMemorySettingsStore,
    MalformedPersistedEntry,
    PersistedClusterEntry,
    PersistedState,
    TomlSettingsStore,
    default_settings_path,
    load_state,
    parse_cluster_entry,
)
from esregistry.models import AutoRefreshOptions, ViewMode


def _state() -> PersistedState:
    return PersistedState(
        profiles={
            "prod": PersistedClusterEntry(label="prod", url="https://es-prod:9200"),
            "dev box": PersistedClusterEntry(label="dev box", url='http://dev:9200/"quoted"'),
        },
        auto_refresh=AutoRefreshOptions.MIN_1,
        view_mode=ViewMode.TABLE,
    )


def test_document_uses_persisted_field_names() -> None:
    document = PersistedState().to_document()

    assert document == {"profiles": {}, "refreshMode": "DISABLED", "viewMode": "TEXT"}


def test_persisted_entry_rejects_credential_fields() -> None:
    with pytest.raises(ValidationError):
        PersistedClusterEntry.model_validate({"label": "prod", "url": "http://x", "password": "s3cr3t"})


def test_parse_cluster_entry_requires_label_and_url() -> None:
    assert parse_cluster_entry("ok", {"label": "ok", "url": ""}) == PersistedClusterEntry(label="ok", url="")

    with pytest.raises(MalformedPersistedEntry):
        parse_cluster_entry("missing-url", {"label": "missing-url"})
    with pytest.raises(MalformedPersistedEntry):
        parse_cluster_entry("no-label", {"url": "http://x"})
    with pytest.raises(MalformedPersistedEntry):
        parse_cluster_entry("list", ["label", "url"])


def test_parse_cluster_entry_ignores_extra_keys() -> None:
    entry = parse_cluster_entry("prod", {"label": "prod", "url": "http://x", "legacy": True})

    assert entry == PersistedClusterEntry(label="prod", url="http://x")


def test_load_state_falls_back_on_unknown_preferences() -> None:
    state = load_state({"refreshMode": "SOMETIMES", "viewMode": 3})

    assert state.auto_refresh is AutoRefreshOptions.DISABLED
    assert state.view_mode is ViewMode.TEXT


def test_load_state_treats_non_mapping_as_defaults() -> None:
    assert load_state(["not", "a", "document"]) == PersistedState()  # type: ignore[arg-type]
    assert load_state(None) == PersistedState()


def test_load_state_ignores_non_mapping_profiles() -> None:
    state = load_state({"profiles": ["prod"], "viewMode": "TABLE"})

    assert state.profiles == {}
    assert state.view_mode is ViewMode.TABLE


def test_toml_store_returns_none_when_missing(tmp_path: Path) -> None:
    store = TomlSettingsStore(tmp_path / "settings.toml")

    assert store.read() is None


def test_toml_store_round_trips_document(tmp_path: Path) -> None:
    store = TomlSettingsStore(tmp_path / "nested" / "settings.toml")

    store.write(_state())

    assert load_state(store.read()) == _state()


def test_toml_store_writes_readable_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"

    TomlSettingsStore(path).write(_state())

    content = path.read_text(encoding="utf-8")
    assert 'refreshMode = "MIN_1"' in content
    assert 'viewMode = "TABLE"' in content
    assert '[profiles."prod"]' in content
    assert '[profiles."dev box"]' in content
    assert 'url = "http://dev:9200/\\"quoted\\""' in content


def test_toml_store_handles_decode_errors(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"
    path.write_text("viewMode = [unterminated")

    assert TomlSettingsStore(path).read() is None


def test_toml_store_defaults_to_module_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config_module, "SETTINGS_FILE", tmp_path / "settings.toml")
    store = TomlSettingsStore()

    store.write(PersistedState())

    assert store.path == tmp_path / "settings.toml"
    assert (tmp_path / "settings.toml").exists()


def test_default_settings_path_honours_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ESREGISTRY_SETTINGS", str(tmp_path / "custom.toml"))

    assert default_settings_path() == tmp_path / "custom.toml"


def test_default_settings_path_without_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("ESREGISTRY_SETTINGS", raising=False)

    assert default_settings_path() == Path.home() / ".config" / "esregistry" / "settings.toml"


def test_in_memory_store_keeps_last_document() -> None:
    store = InMemorySettingsStore()
    assert store.read() is None

    store.write(_state())

    assert store.read() == _state().to_document()


def test_parse_cluster_entry_accepts_empty_label() -> None:
    assert parse_cluster_entry("", {"label": "", "url": "http://x"}) == PersistedClusterEntry(label="", url="http://x")
