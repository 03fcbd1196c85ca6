from __future__ import annotations

import json

import pytest

from opsec_plugin import preferences
from opsec_plugin.config_reader import read_effective_fix_setting
from opsec_plugin.preferences import Preferences


def test_defaults_when_file_missing(tmp_path):
    prefs = Preferences(tmp_path / "opsec.json")

    assert prefs.translation_protection_enabled is True
    assert prefs.foreign_override_fix_enabled is True
    assert prefs.check_for_updates is True
    assert prefs.effective_fix_enabled is True


def test_loads_stored_values(write_config):
    path = write_config(
        {
            "settings": {
                "translationProtectionEnabled": False,
                "foreignOverrideFixEnabled": False,
                "checkForUpdates": False,
            }
        }
    )

    prefs = Preferences(path)

    assert prefs.translation_protection_enabled is False
    assert prefs.foreign_override_fix_enabled is False
    assert prefs.check_for_updates is False
    assert prefs.effective_fix_enabled is False


def test_invalid_json_falls_back_to_defaults(write_config):
    prefs = Preferences(write_config("{broken", raw=True))

    assert prefs.translation_protection_enabled is True
    assert prefs.foreign_override_fix_enabled is True


def test_wrong_types_match_startup_reader(write_config):
    path = write_config({"settings": {"translationProtectionEnabled": "no", "foreignOverrideFixEnabled": False}})

    prefs = Preferences(path)

    assert prefs.translation_protection_enabled is True
    assert prefs.foreign_override_fix_enabled is True
    assert prefs.effective_fix_enabled is read_effective_fix_setting(path) is True


def test_wrong_typed_fix_field_matches_startup_reader(write_config):
    path = write_config({"settings": {"foreignOverrideFixEnabled": "off", "checkForUpdates": False}})

    prefs = Preferences(path)

    assert prefs.effective_fix_enabled is read_effective_fix_setting(path) is True
    assert prefs.check_for_updates is False


def test_deeply_nested_config_falls_back_to_defaults(write_config):
    path = write_config("[" * 100000, raw=True)

    prefs = Preferences(path)

    assert prefs.translation_protection_enabled is True
    assert prefs.foreign_override_fix_enabled is True
    assert prefs.check_for_updates is True


def test_save_round_trips_through_early_reader(tmp_path):
    path = tmp_path / "nested" / "opsec.json"
    prefs = Preferences(path)
    prefs.foreign_override_fix_enabled = False
    prefs.save()

    assert read_effective_fix_setting(path) is False
    assert not (path.parent / "opsec.json.tmp").exists()
    assert Preferences(path).foreign_override_fix_enabled is False


def test_save_keeps_fix_value_while_master_switch_is_off(tmp_path):
    path = tmp_path / "opsec.json"
    prefs = Preferences(path)
    prefs.translation_protection_enabled = False
    prefs.foreign_override_fix_enabled = False
    prefs.save()

    reloaded = Preferences(path)
    reloaded.translation_protection_enabled = True
    reloaded.save()

    assert read_effective_fix_setting(path) is False


def test_save_preserves_unknown_settings(write_config):
    path = write_config({"settings": {"buttonX": 40, "signingMode": "ON_DEMAND", "foreignOverrideFixEnabled": True}})

    prefs = Preferences(path)
    prefs.foreign_override_fix_enabled = False
    prefs.save()

    stored = json.loads(path.read_text(encoding="utf-8"))["settings"]
    assert stored["buttonX"] == 40
    assert stored["signingMode"] == "ON_DEMAND"
    assert stored["foreignOverrideFixEnabled"] is False
    assert stored["translationProtectionEnabled"] is True


def test_failed_save_removes_temp_file(monkeypatch, write_config):
    path = write_config({"settings": {"foreignOverrideFixEnabled": True}})
    prefs = Preferences(path)
    prefs.foreign_override_fix_enabled = False

    def fail_replace(_src, _dst):
        raise OSError("disk full")

    monkeypatch.setattr(preferences.os, "replace", fail_replace)

    with pytest.raises(OSError):
        prefs.save()

    assert not (path.parent / "opsec.json.tmp").exists()
    assert read_effective_fix_setting(path) is True
