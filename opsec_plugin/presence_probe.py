"""Detect whether a foreign plugin is loaded in the EDMC host."""
from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Callable, Optional

from .logging_utils import get_logger

LOGGER = get_logger("Probe")

ModuleRegistry = Callable[[str], bool]


def _plugin_matches(plugin: Any, identifier: str) -> bool:
    if getattr(plugin, "module", None) is None:
        # Disabled or failed-to-load plugins keep an entry without a module.
        return False
    return identifier in (getattr(plugin, "folder", None), getattr(plugin, "name", None))


def _edmc_plugin_dir() -> Optional[Path]:
    try:
        config_module = importlib.import_module("config")
    except Exception:
        return None
    raw = getattr(getattr(config_module, "config", None), "plugin_dir_path", None)
    if not raw:
        return None
    try:
        return Path(raw)
    except TypeError:
        LOGGER.debug("Ignoring unusable EDMC plugin directory %r", raw)
        return None


def edmc_plugin_registry() -> Optional[ModuleRegistry]:
    """Return a registry query backed by EDMC's ``plug.PLUGINS``, if running inside EDMC.

    EDMC imports plugins in folder order, so a plugin sorting after this one is
    not in ``PLUGINS`` yet when the decision is taken. An enabled folder of that
    name in EDMC's plugin directory therefore counts as loaded as well.
    """
    try:
        plug = importlib.import_module("plug")
    except Exception:
        return None
    plugins = getattr(plug, "PLUGINS", None)
    if plugins is None:
        return None
    plugin_dir = _edmc_plugin_dir()

    def _is_module_loaded(identifier: str) -> bool:
        if any(_plugin_matches(plugin, identifier) for plugin in list(plugins)):
            return True
        return plugin_dir is not None and (plugin_dir / identifier / "load.py").is_file()

    return _is_module_loaded


def is_foreign_component_loaded(identifier: str, registry: Optional[ModuleRegistry] = None) -> bool:
    """Return True when ``identifier`` is loaded; an unavailable registry counts as absent."""
    try:
        query = registry if registry is not None else edmc_plugin_registry()
        if query is None:
            LOGGER.debug("Host plugin registry unavailable; treating %s as not loaded", identifier)
            return False
        return bool(query(identifier))
    except Exception as exc:
        LOGGER.debug("Host plugin registry query for %s failed: %s", identifier, exc)
        return False
