"""
Settings store for plugin configuration blobs.

Three keys are administered for the users-permissions plugin: email
templates, advanced settings and the OAuth grant (provider) configuration.
"""

from tollgate.config import settings
from tollgate.store.protocol import SettingsScope, SettingsStore
from tollgate.store.sql import SQLSettingsStore

EMAIL_KEY = "email"
ADVANCED_KEY = "advanced"
GRANT_KEY = "grant"


def plugin_scope(key: str, plugin_name: str | None = None) -> SettingsScope:
    """Scope of a plugin-level settings key."""
    return SettingsScope(name=plugin_name or settings.plugin_name, key=key)


__all__ = [
    "ADVANCED_KEY",
    "EMAIL_KEY",
    "GRANT_KEY",
    "SQLSettingsStore",
    "SettingsScope",
    "SettingsStore",
    "plugin_scope",
]
