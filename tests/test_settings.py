from __future__ import annotations

import pytest

from frametree.core.settings import RETENTION_ENV, SettingsStore, TransformSettings, parse_retention


def test_parse_retention_accepts_numbers_and_disabled_values() -> None:
    assert parse_retention(None) is None
    assert parse_retention("") is None
    assert parse_retention(" off ") is None
    assert parse_retention("None") is None
    assert parse_retention("2.5") == 2.5
    assert parse_retention(0) == 0.0

    for bad in ("-1", "abc", float("inf"), float("nan"), [1.0]):
        with pytest.raises(ValueError):
            parse_retention(bad)


def test_settings_read_retention_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(RETENTION_ENV, "30")
    assert TransformSettings.from_env().retention_s == 30.0
    assert SettingsStore().get().retention_s == 30.0

    monkeypatch.delenv(RETENTION_ENV)
    assert TransformSettings.from_env().retention_s is None


def test_settings_store_updates_retention() -> None:
    store = SettingsStore(TransformSettings())
    assert store.set_retention("12").retention_s == 12.0
    assert store.get().retention_s == 12.0

    with pytest.raises(ValueError):
        store.set_retention(-3)
    assert store.get().retention_s == 12.0

    assert store.set_retention(None).retention_s is None
