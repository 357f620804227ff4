from __future__ import annotations

import json
from pathlib import Path

from attendance_sheet.config.user_settings_store import MIN_AUTOSAVE_DELAY_MS, UserSettingsStore


def _store(tmp_path: Path) -> UserSettingsStore:
    return UserSettingsStore(config_dir=tmp_path / "config")


def test_defaults_fill_missing_values(tmp_path):
    store = _store(tmp_path)

    assert store.get("autosave_delay_ms") == 1000
    assert store.get("teacher_id") is None
    assert store.get("last_month", "2025-01") == "2025-01"
    assert store.settings_file == tmp_path / "config" / "user_settings.json"


def test_update_persists_values_across_reloads(tmp_path):
    store = _store(tmp_path)
    store.update(teacher_id="T-1", autosave_delay_ms=1500, last_month="2025-03", unknown="ignored")

    reloaded = _store(tmp_path)

    assert reloaded.get("teacher_id") == "T-1"
    assert reloaded.get("autosave_delay_ms") == 1500
    assert reloaded.get("last_month") == "2025-03"
    assert "unknown" not in reloaded.data


def test_app_data_dir_is_a_plain_value(tmp_path):
    store = _store(tmp_path)
    store.update(app_data_dir=str(tmp_path / "data"), teacher_id="T-2")

    reloaded = _store(tmp_path)

    assert reloaded.app_data_dir == tmp_path / "data"
    assert reloaded.settings_file.parent == tmp_path / "config"
    assert not (tmp_path / "data" / "user_settings.json").exists()


def test_bad_values_fall_back_to_defaults(tmp_path):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "user_settings.json").write_text(
        json.dumps({"autosave_delay_ms": "soon", "teacher_id": "T-3"}), encoding="utf-8"
    )

    store = _store(tmp_path)
    assert store.get("autosave_delay_ms") == 1000
    assert store.get("teacher_id") == "T-3"

    store.update(autosave_delay_ms=5)
    assert store.get("autosave_delay_ms") == MIN_AUTOSAVE_DELAY_MS


def test_unreadable_settings_file_falls_back_to_defaults(tmp_path):
    store = _store(tmp_path)
    store.settings_file.write_text("{not json", encoding="utf-8")

    store.reload()

    assert store.get("autosave_delay_ms") == 1000
