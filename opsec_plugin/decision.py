"""Process-wide, write-once decision about suppressing the foreign override.

The decision is taken while ``load.py`` is imported and is never recomputed;
changing the underlying setting only takes effect after an EDMC restart.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from .config_reader import read_effective_fix_setting
from .constants import FOREIGN_COMPONENT_ID
from .logging_utils import get_logger
from .presence_probe import ModuleRegistry, is_foreign_component_loaded

LOGGER = get_logger("Arbitration")


@dataclass(frozen=True)
class DecisionSnapshot:
    """What was decided at startup."""

    foreign_component_present: bool
    fix_requested_at_startup: bool

    @property
    def applied_suppression(self) -> bool:
        return self.foreign_component_present and self.fix_requested_at_startup


def log_decision(snapshot: DecisionSnapshot, logger: logging.Logger) -> None:
    if snapshot.applied_suppression:
        logger.info(
            "%s detected - foreign override fix enabled, its translation override will be suppressed",
            FOREIGN_COMPONENT_ID,
        )
    elif snapshot.foreign_component_present:
        logger.warning(
            "%s detected - foreign override fix is DISABLED. Its translation override may expose "
            "your installed plugins to remote detection",
            FOREIGN_COMPONENT_ID,
        )
    else:
        logger.debug("%s not loaded; no foreign override to arbitrate", FOREIGN_COMPONENT_ID)


class DecisionHolder:
    """Builds the snapshot on first use and hands out the same instance afterwards."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or LOGGER
        self._lock = threading.Lock()
        self._snapshot: Optional[DecisionSnapshot] = None

    def initialise(self, probe: Callable[[str], bool], reader: Callable[[], bool]) -> DecisionSnapshot:
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot
        with self._lock:
            if self._snapshot is None:
                present = bool(probe(FOREIGN_COMPONENT_ID))
                fix_enabled = bool(reader())
                snapshot = DecisionSnapshot(
                    foreign_component_present=present,
                    fix_requested_at_startup=fix_enabled,
                )
                log_decision(snapshot, self._logger)
                self._snapshot = snapshot
            return self._snapshot

    @property
    def snapshot(self) -> DecisionSnapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise RuntimeError("Foreign override decision queried before initialisation")
        return snapshot


_HOLDER = DecisionHolder()


def initialise(
    config_path: Union[str, Path],
    registry: Optional[ModuleRegistry] = None,
) -> DecisionSnapshot:
    """Take the startup decision for this process; later calls return the first result."""
    return _HOLDER.initialise(
        probe=lambda identifier: is_foreign_component_loaded(identifier, registry),
        reader=lambda: read_effective_fix_setting(config_path),
    )


def current_snapshot() -> DecisionSnapshot:
    return _HOLDER.snapshot
