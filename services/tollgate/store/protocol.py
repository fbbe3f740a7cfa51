"""
Settings store protocol and types.

A settings store maps a scope to one opaque JSON value. Stores are pure
pass-through: every call site validates the shape of the value it owns.
"""

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class SettingsScope:
    """Address of a settings record."""

    name: str
    key: str
    type: str = "plugin"
    environment: str = ""

    @property
    def store_key(self) -> str:
        """Row key, e.g. 'plugin_users-permissions_email'."""
        return f"{self.type}_{self.name}_{self.key}"


@runtime_checkable
class SettingsStore(Protocol):
    """Protocol defining the settings store interface."""

    async def get(self, scope: SettingsScope) -> Any | None:
        """Return the stored value, or None if the scope has never been set."""
        ...

    async def set(self, scope: SettingsScope, value: Any) -> None:
        """Replace the stored value. No merging with the previous value."""
        ...
