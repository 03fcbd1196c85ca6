"""Early, defensive reader for the persisted OpSec settings.

This runs while ``load.py`` is still being imported, before the preferences
layer exists, so it reads the JSON document directly. Every failure resolves
to the documented defaults and is reported through the log only.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Union

from .constants import (
    FOREIGN_OVERRIDE_FIX_KEY,
    SETTINGS_SECTION,
    TRANSLATION_PROTECTION_KEY,
)
from .logging_utils import get_logger

LOGGER = get_logger("Config")

PathLike = Union[str, Path]


@dataclass(frozen=True)
class PersistedSettings:
    """Subset of the settings document relevant to override arbitration."""

    translation_protection_enabled: bool = True
    foreign_override_fix_enabled: bool = True

    @property
    def effective_fix_enabled(self) -> bool:
        # Translation protection is the master switch for the fix.
        return self.translation_protection_enabled and self.foreign_override_fix_enabled


class _MalformedSettings(ValueError):
    """Raised internally when the document has the wrong shape."""


def _optional_bool(section: Mapping[str, Any], key: str) -> bool:
    if key not in section:
        return True
    value = section[key]
    if not isinstance(value, bool):
        raise _MalformedSettings(f"{key!r} must be a boolean, got {type(value).__name__}")
    return value


def _settings_section(document: Any) -> Mapping[str, Any]:
    if not isinstance(document, dict):
        raise _MalformedSettings(f"top-level value must be an object, got {type(document).__name__}")
    section = document.get(SETTINGS_SECTION, {})
    if not isinstance(section, dict):
        raise _MalformedSettings(f"{SETTINGS_SECTION!r} must be an object, got {type(section).__name__}")
    return section


def _parse(content: str) -> PersistedSettings:
    section = _settings_section(json.loads(content))
    protection = _optional_bool(section, TRANSLATION_PROTECTION_KEY)
    if not protection:
        LOGGER.info("Translation protection is disabled; foreign override fix will not apply")
        return PersistedSettings(translation_protection_enabled=False)
    return PersistedSettings(
        translation_protection_enabled=True,
        foreign_override_fix_enabled=_optional_bool(section, FOREIGN_OVERRIDE_FIX_KEY),
    )


def read_persisted_settings(path: PathLike) -> PersistedSettings:
    """Return the typed settings view, or defaults when the file is unusable."""
    config_path = Path(path)
    try:
        content = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        LOGGER.warning("Config %s not found; foreign override fix defaults to enabled", config_path)
        return PersistedSettings()
    except (OSError, UnicodeDecodeError) as exc:
        LOGGER.warning("Could not read config %s, defaulting to enabled: %s", config_path, exc)
        return PersistedSettings()

    if not content.strip():
        LOGGER.warning("Config %s is empty; foreign override fix defaults to enabled", config_path)
        return PersistedSettings()

    try:
        return _parse(content)
    except _MalformedSettings as exc:
        LOGGER.warning("Config %s is malformed, defaulting to enabled: %s", config_path, exc)
    except (ValueError, RecursionError) as exc:
        LOGGER.warning("Config %s is not valid JSON, defaulting to enabled: %s", config_path, exc)
    return PersistedSettings()


def read_effective_fix_setting(path: PathLike) -> bool:
    """Effective foreign override fix flag after applying the master switch."""
    return read_persisted_settings(path).effective_fix_enabled
