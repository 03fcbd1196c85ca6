from __future__ import annotations

import pytest

from opsec_plugin import override_hooks
from opsec_plugin.arbitration import ArbitrationGate
from opsec_plugin.constants import TARGET_OVERRIDE_ID
from opsec_plugin.decision import DecisionSnapshot


@pytest.fixture(autouse=True)
def isolated_cancellers(monkeypatch):
    monkeypatch.setattr(override_hooks, "_cancellers", [])


def test_override_installs_without_cancellers():
    installed = []

    assert override_hooks.apply_override(["target"], "some.override", lambda: installed.append(1)) is True
    assert installed == [1]


def test_cancelled_override_is_never_installed():
    installed = []
    gate = ArbitrationGate(DecisionSnapshot(foreign_component_present=True, fix_requested_at_startup=True))
    override_hooks.register_canceller(gate)

    assert override_hooks.apply_override(["target"], TARGET_OVERRIDE_ID, lambda: installed.append(1)) is False
    assert override_hooks.apply_override(["target"], "unrelated.override", lambda: installed.append(2)) is True
    assert installed == [2]


def test_canceller_receives_targets_and_identifier():
    seen = []
    override_hooks.register_canceller(lambda targets, override_id: seen.append((targets, override_id)) or False)

    override_hooks.apply_override(iter(["a", "b"]), "x.override", lambda: None)

    assert seen == [(("a", "b"), "x.override")]


def test_raising_canceller_is_treated_as_allow(plugin_log):
    def broken(_targets, _override_id):
        raise ValueError("boom")

    override_hooks.register_canceller(broken)
    installed = []

    assert override_hooks.apply_override([], "x.override", lambda: installed.append(1)) is True
    assert installed == [1]
    assert any("boom" in record.getMessage() for record in plugin_log.records)


def test_register_is_deduplicated_and_unregister_is_safe():
    def canceller(_targets, _override_id):
        return True

    override_hooks.register_canceller(canceller)
    override_hooks.register_canceller(canceller)
    assert override_hooks.is_cancelled([], "x") is True

    override_hooks.unregister_canceller(canceller)
    override_hooks.unregister_canceller(canceller)
    assert override_hooks.is_cancelled([], "x") is False
