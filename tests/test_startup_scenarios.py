"""End-to-end startup flows: settings file + host registry -> frozen decision -> queries."""
from __future__ import annotations

import logging

import pytest

from opsec_plugin import decision
from opsec_plugin.arbitration import ArbitrationGate, DriftChecker
from opsec_plugin.config_reader import read_effective_fix_setting
from opsec_plugin.constants import FOREIGN_COMPONENT_ID, TARGET_OVERRIDE_ID


@pytest.fixture(autouse=True)
def fresh_holder(monkeypatch):
    monkeypatch.setattr(decision, "_HOLDER", decision.DecisionHolder(logging.getLogger("test-scenarios")))


def _present(identifier: str) -> bool:
    return identifier == FOREIGN_COMPONENT_ID


def _absent(_identifier: str) -> bool:
    return False


def test_config_absent_and_component_absent(tmp_path):
    snapshot = decision.initialise(tmp_path / "opsec.json", registry=_absent)
    drift = DriftChecker(snapshot)

    assert snapshot.applied_suppression is False
    assert drift.needs_restart(True) is False
    assert drift.needs_restart(False) is False
    assert ArbitrationGate(snapshot).should_suppress([], TARGET_OVERRIDE_ID) is False


def test_fix_applied_then_disabled_requires_restart(write_config):
    path = write_config({"settings": {"translationProtectionEnabled": True, "foreignOverrideFixEnabled": True}})
    snapshot = decision.initialise(path, registry=_present)

    assert snapshot.applied_suppression is True
    assert ArbitrationGate(snapshot).should_suppress(["hud.SignEditScreen"], TARGET_OVERRIDE_ID) is True

    write_config({"settings": {"translationProtectionEnabled": True, "foreignOverrideFixEnabled": False}})
    current = read_effective_fix_setting(path)

    assert current is False
    assert DriftChecker(snapshot).needs_restart(current) is True
    # The live decision is unchanged until restart.
    assert decision.current_snapshot().applied_suppression is True


def test_master_switch_off_with_component_present(write_config):
    path = write_config({"settings": {"translationProtectionEnabled": False}})
    snapshot = decision.initialise(path, registry=_present)

    assert snapshot.fix_requested_at_startup is False
    assert snapshot.applied_suppression is False
    assert ArbitrationGate(snapshot).should_suppress([], TARGET_OVERRIDE_ID) is False
    assert DriftChecker(snapshot).needs_restart(read_effective_fix_setting(path)) is False


def test_malformed_config_defaults_to_fix_enabled(write_config):
    path = write_config('{"settings": {"translationProtectionEnabled": tru', raw=True)

    snapshot = decision.initialise(path, registry=_present)

    assert snapshot.fix_requested_at_startup is True
    assert snapshot.applied_suppression is True
