"""Preferences management and Tk UI for the OpSec plugin."""
from __future__ import annotations

import json
import os
import webbrowser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .config_reader import read_persisted_settings
from .constants import (
    CHECK_FOR_UPDATES_KEY,
    FOREIGN_COMPONENT_ID,
    FOREIGN_OVERRIDE_FIX_KEY,
    SETTINGS_SECTION,
    TRANSLATION_PROTECTION_KEY,
)
from .logging_utils import get_logger

LOGGER = get_logger("Preferences")

LATEST_RELEASE_URL = "https://github.com/aurickk/EDMC-OpSec/releases/latest"
RESTART_WARNING = "⚠ Requires an EDMC restart to take effect"


def _coerce_bool(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


@dataclass
class Preferences:
    """JSON-backed store for the user-editable OpSec settings."""

    config_path: Path
    translation_protection_enabled: bool = True
    foreign_override_fix_enabled: bool = True
    check_for_updates: bool = True
    _extra_settings: Dict[str, Any] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        self.config_path = Path(self.config_path)
        self._load()

    @property
    def effective_fix_enabled(self) -> bool:
        return self.translation_protection_enabled and self.foreign_override_fix_enabled

    # Persistence ---------------------------------------------------------

    def _load(self) -> None:
        try:
            data = json.loads(self.config_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, ValueError, RecursionError) as exc:
            LOGGER.warning("Failed to load preferences from %s, using defaults: %s", self.config_path, exc)
            return
        section = data.get(SETTINGS_SECTION) if isinstance(data, dict) else None
        if not isinstance(section, dict):
            return
        self._extra_settings = {
            key: value
            for key, value in section.items()
            if key not in (TRANSLATION_PROTECTION_KEY, FOREIGN_OVERRIDE_FIX_KEY, CHECK_FOR_UPDATES_KEY)
        }
        # The arbitration flags must match what the startup decision read.
        persisted = read_persisted_settings(self.config_path)
        self.translation_protection_enabled = persisted.translation_protection_enabled
        if persisted.translation_protection_enabled:
            self.foreign_override_fix_enabled = persisted.foreign_override_fix_enabled
        else:
            # Not inspected while the master switch is off; keep the stored choice for the next save.
            self.foreign_override_fix_enabled = _coerce_bool(section.get(FOREIGN_OVERRIDE_FIX_KEY), True)
        self.check_for_updates = _coerce_bool(section.get(CHECK_FOR_UPDATES_KEY), True)

    def save(self) -> None:
        settings: Dict[str, Any] = dict(self._extra_settings)
        settings.update(
            {
                TRANSLATION_PROTECTION_KEY: bool(self.translation_protection_enabled),
                FOREIGN_OVERRIDE_FIX_KEY: bool(self.foreign_override_fix_enabled),
                CHECK_FOR_UPDATES_KEY: bool(self.check_for_updates),
            }
        )
        payload = {SETTINGS_SECTION: settings}
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.config_path.with_name(self.config_path.name + ".tmp")
        try:
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.config_path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise


class PreferencesPanel:
    """Builds a Tkinter frame that edits OpSec preferences."""

    def __init__(
        self,
        parent,
        preferences: Preferences,
        restart_pending_callback: Optional[Callable[[], bool]] = None,
        foreign_component_present: bool = False,
        plugin_version: Optional[str] = None,
        version_update_available: bool = False,
    ) -> None:
        import tkinter as tk
        import myNotebook as nb

        self._preferences = preferences
        self._restart_pending = restart_pending_callback
        self._var_protection = tk.BooleanVar(value=preferences.translation_protection_enabled)
        self._var_fix = tk.BooleanVar(value=preferences.foreign_override_fix_enabled)
        self._var_updates = tk.BooleanVar(value=preferences.check_for_updates)
        self._restart_var = tk.StringVar(value="")
        self._status_var = tk.StringVar(value="")
        self._plugin_version = (plugin_version or "").strip()

        frame = nb.Frame(parent)
        row = 0

        if self._plugin_version:
            version_label = nb.Label(
                frame,
                text=f"Version {self._plugin_version}",
                cursor="hand2",
                foreground="#1a73e8",
            )
            version_label.grid(row=row, column=0, sticky="e")
            version_label.bind("<Button-1>", self._open_release_link)
            row += 1
            if version_update_available:
                nb.Label(frame, text="A newer version is available", foreground="#c62828").grid(
                    row=row, column=0, sticky="e", pady=(2, 0)
                )
                row += 1

        protection_checkbox = nb.Checkbutton(
            frame,
            text="Enable translation key protection",
            variable=self._var_protection,
            onvalue=True,
            offvalue=False,
            command=self._on_protection_toggle,
        )
        protection_checkbox.grid(row=row, column=0, sticky="w", pady=(8, 0))
        row += 1

        fix_text = f"Suppress {FOREIGN_COMPONENT_ID}'s translation override"
        if not foreign_component_present:
            fix_text += f" ({FOREIGN_COMPONENT_ID} not installed)"
        self._fix_checkbox = nb.Checkbutton(
            frame,
            text=fix_text,
            variable=self._var_fix,
            onvalue=True,
            offvalue=False,
            command=self._on_fix_toggle,
        )
        self._fix_checkbox.grid(row=row, column=0, sticky="w", padx=(16, 0), pady=(4, 0))
        row += 1

        restart_label = nb.Label(frame, textvariable=self._restart_var, foreground="#c77700")
        restart_label.grid(row=row, column=0, sticky="w", padx=(16, 0))
        row += 1

        updates_checkbox = nb.Checkbutton(
            frame,
            text="Check for plugin updates on startup",
            variable=self._var_updates,
            onvalue=True,
            offvalue=False,
            command=self._on_updates_toggle,
        )
        updates_checkbox.grid(row=row, column=0, sticky="w", pady=(8, 0))
        row += 1

        status_label = nb.Label(frame, textvariable=self._status_var, wraplength=400, justify="left")
        status_label.grid(row=row, column=0, sticky="w", pady=(10, 0))
        frame.columnconfigure(0, weight=1)

        self._frame = frame
        self._refresh_fix_state()

    @property
    def frame(self):  # pragma: no cover - Tk integration
        return self._frame

    def apply(self) -> None:
        self._preferences.save()

    def _save(self) -> None:
        try:
            self._preferences.save()
        except OSError as exc:
            self._status_var.set(f"Failed to save preferences: {exc}")
            return
        self._status_var.set("")

    def _refresh_fix_state(self) -> None:
        self._fix_checkbox.configure(state="normal" if self._preferences.translation_protection_enabled else "disabled")
        pending = False
        if self._restart_pending is not None:
            pending = bool(self._restart_pending())
        self._restart_var.set(RESTART_WARNING if pending else "")

    def _on_protection_toggle(self) -> None:
        self._preferences.translation_protection_enabled = bool(self._var_protection.get())
        self._save()
        self._refresh_fix_state()

    def _on_fix_toggle(self) -> None:
        self._preferences.foreign_override_fix_enabled = bool(self._var_fix.get())
        self._save()
        self._refresh_fix_state()

    def _on_updates_toggle(self) -> None:
        self._preferences.check_for_updates = bool(self._var_updates.get())
        self._save()

    def _open_release_link(self, _event=None) -> None:
        try:
            webbrowser.open_new(LATEST_RELEASE_URL)
        except Exception as exc:
            self._status_var.set(f"Failed to open release notes: {exc}")
