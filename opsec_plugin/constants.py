"""Identifiers shared by the arbitration components."""
from __future__ import annotations

PLUGIN_NAME = "EDMC-OpSec"

CONFIG_FILENAME = "opsec.json"
CONFIG_PATH_ENV = "EDMC_OPSEC_CONFIG"

SETTINGS_SECTION = "settings"
TRANSLATION_PROTECTION_KEY = "translationProtectionEnabled"
FOREIGN_OVERRIDE_FIX_KEY = "foreignOverrideFixEnabled"
CHECK_FOR_UPDATES_KEY = "checkForUpdates"

# Folder name the host registers the foreign plugin under.
FOREIGN_COMPONENT_ID = "meteor-client"
# The single foreign override that is cancelled when the fix is applied.
TARGET_OVERRIDE_ID = "meteor_client.overrides.sign_edit_translation"
