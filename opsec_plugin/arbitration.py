"""Read-only queries over the frozen startup decision."""
from __future__ import annotations

from typing import Iterable

from .constants import TARGET_OVERRIDE_ID
from .decision import DecisionSnapshot
from .logging_utils import get_logger

LOGGER = get_logger("Arbitration")


class ArbitrationGate:
    """Canceller consulted by the override boundary before a foreign override installs."""

    def __init__(self, snapshot: DecisionSnapshot) -> None:
        self._snapshot = snapshot

    def should_suppress(self, target_identifiers: Iterable[str], candidate_identifier: str) -> bool:
        # target_identifiers is part of the boundary calling convention only.
        if self._snapshot.applied_suppression and candidate_identifier == TARGET_OVERRIDE_ID:
            LOGGER.debug("Cancelling foreign override: %s", candidate_identifier)
            return True
        return False

    __call__ = should_suppress


class DriftChecker:
    """Tells the preferences pane whether a live edit needs a restart to apply."""

    def __init__(self, snapshot: DecisionSnapshot) -> None:
        self._snapshot = snapshot

    def was_applied_at_startup(self) -> bool:
        return self._snapshot.applied_suppression

    def needs_restart(self, current_effective_setting: bool) -> bool:
        if not self._snapshot.foreign_component_present:
            return False
        return bool(current_effective_setting) != self._snapshot.fix_requested_at_startup
