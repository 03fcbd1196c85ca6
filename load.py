"""Primary entry point for the EDMC-OpSec plugin.

The foreign override decision is taken while this module is imported, before
EDMC calls any hook and before other plugins get the chance to install their
overrides through :mod:`opsec_plugin.override_hooks`.
"""
from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any, Optional

if __package__:
    from .version import __version__ as OPSEC_VERSION
    from .opsec_plugin import decision, override_hooks
    from .opsec_plugin.arbitration import ArbitrationGate, DriftChecker
    from .opsec_plugin.config_reader import read_effective_fix_setting
    from .opsec_plugin.constants import CONFIG_FILENAME, CONFIG_PATH_ENV, PLUGIN_NAME
    from .opsec_plugin.logging_utils import configure_plugin_logger
    from .opsec_plugin.preferences import Preferences, PreferencesPanel
    from .opsec_plugin.version_helper import VersionStatus, evaluate_version_status
else:  # pragma: no cover - EDMC loads as top-level module
    from version import __version__ as OPSEC_VERSION
    from opsec_plugin import decision, override_hooks
    from opsec_plugin.arbitration import ArbitrationGate, DriftChecker
    from opsec_plugin.config_reader import read_effective_fix_setting
    from opsec_plugin.constants import CONFIG_FILENAME, CONFIG_PATH_ENV, PLUGIN_NAME
    from opsec_plugin.logging_utils import configure_plugin_logger
    from opsec_plugin.preferences import Preferences, PreferencesPanel
    from opsec_plugin.version_helper import VersionStatus, evaluate_version_status

PLUGIN_VERSION = OPSEC_VERSION
PLUGIN_DIR = Path(__file__).resolve().parent

LOGGER = configure_plugin_logger()


def resolve_config_path(plugin_dir: Path = PLUGIN_DIR) -> Path:
    override = os.environ.get(CONFIG_PATH_ENV, "").strip()
    if override:
        return Path(override).expanduser()
    return Path(plugin_dir) / CONFIG_FILENAME


CONFIG_PATH = resolve_config_path()

# Frozen for the lifetime of the EDMC process.
DECISION = decision.initialise(CONFIG_PATH)
GATE = ArbitrationGate(DECISION)
DRIFT = DriftChecker(DECISION)
override_hooks.register_canceller(GATE)


def was_applied_at_startup() -> bool:
    """Whether the foreign override was suppressed for this session."""
    return DRIFT.was_applied_at_startup()


def needs_restart(current_setting: bool) -> bool:
    return DRIFT.needs_restart(current_setting)


def restart_required() -> bool:
    """Re-read the settings file and report whether it drifted from the startup decision."""
    return DRIFT.needs_restart(read_effective_fix_setting(CONFIG_PATH))


class _PluginRuntime:
    """Encapsulates plugin state so EDMC globals stay tidy."""

    def __init__(self, plugin_dir: str, preferences: Preferences) -> None:
        self.plugin_dir = Path(plugin_dir)
        self._preferences = preferences
        self._lock = threading.Lock()
        self._running = False
        self._version_thread: Optional[threading.Thread] = None
        self.version_status: Optional[VersionStatus] = None

    # Lifecycle ------------------------------------------------------------

    def start(self) -> str:
        with self._lock:
            if self._running:
                return PLUGIN_NAME
            self._running = True
        if self._preferences.check_for_updates:
            self._start_version_check()
        LOGGER.info(
            "Plugin started (foreign override suppressed this session: %s)",
            was_applied_at_startup(),
        )
        return PLUGIN_NAME

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
        LOGGER.info("Plugin stopping")
        thread = self._version_thread
        if thread is not None:
            thread.join(timeout=2.0)
            if thread.is_alive():
                LOGGER.warning("Thread %s did not exit cleanly within %.1fs", thread.name, 2.0)
        self._version_thread = None

    def _start_version_check(self) -> None:
        def _run() -> None:
            self.version_status = evaluate_version_status(PLUGIN_VERSION)

        thread = threading.Thread(target=_run, name="OpSec-VersionCheck", daemon=True)
        self._version_thread = thread
        thread.start()

    @property
    def update_available(self) -> bool:
        status = self.version_status
        return bool(status and status.update_available)


# EDMC hook functions ------------------------------------------------------

_plugin: Optional[_PluginRuntime] = None
_preferences: Optional[Preferences] = None
_prefs_panel: Optional[PreferencesPanel] = None


def plugin_start3(plugin_dir: str) -> str:
    LOGGER.info("Initialising OpSec plugin from %s", plugin_dir)
    global _plugin, _preferences
    if _plugin is not None:
        return _plugin.start()
    _preferences = Preferences(CONFIG_PATH)
    _plugin = _PluginRuntime(plugin_dir, _preferences)
    return _plugin.start()


def plugin_stop() -> None:
    global _prefs_panel, _plugin, _preferences
    if _plugin:
        try:
            _plugin.stop()
        finally:
            _plugin = None
    _prefs_panel = None
    _preferences = None


def plugin_app(parent) -> Optional[Any]:  # pragma: no cover - EDMC Tk frame hook
    return None


def plugin_prefs(parent, cmdr: str, is_beta: bool):  # pragma: no cover - optional settings pane
    LOGGER.debug("plugin_prefs invoked: parent=%r cmdr=%r is_beta=%s", parent, cmdr, is_beta)
    if _preferences is None:
        LOGGER.debug("Preferences not initialised; returning no UI")
        return None
    try:
        panel = PreferencesPanel(
            parent,
            _preferences,
            restart_pending_callback=restart_required,
            foreign_component_present=decision.current_snapshot().foreign_component_present,
            plugin_version=PLUGIN_VERSION,
            version_update_available=bool(_plugin and _plugin.update_available),
        )
    except Exception as exc:
        LOGGER.exception("Failed to build preferences panel: %s", exc)
        return None
    global _prefs_panel
    _prefs_panel = panel
    return panel.frame


def plugin_prefs_save(cmdr: str, is_beta: bool) -> None:
    LOGGER.debug("plugin_prefs_save invoked: cmdr=%r is_beta=%s", cmdr, is_beta)
    if _prefs_panel is None:
        LOGGER.debug("No preferences panel to save")
        return
    try:
        _prefs_panel.apply()
    except Exception as exc:
        LOGGER.exception("Failed to save preferences: %s", exc)
        return
    if restart_required():
        LOGGER.warning("Foreign override fix setting changed; restart EDMC for it to take effect")


# Metadata expected by some plugin loaders
name = PLUGIN_NAME
version = PLUGIN_VERSION
plugin_name = PLUGIN_NAME
