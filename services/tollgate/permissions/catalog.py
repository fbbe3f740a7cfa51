"""
Permission catalog: the registry of grantable actions, policies and routes.

Plugins register their controllers, policies and routes on a CatalogBuilder
during startup. build() freezes the registrations into a PermissionCatalog
that is shared read-only by every request.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

# Name of the built-in gate that enforces role permissions. It guards every
# route and is never offered as a selectable policy.
PERMISSIONS_GATE = "permissions"

DEFAULT_LANG = "en"


@dataclass(frozen=True)
class RouteSpec:
    """A route exposed by a plugin and the action it dispatches to."""

    method: str
    path: str
    handler: str  # "<controller>.<action>"
    policies: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "path": self.path,
            "handler": self.handler,
            "config": {"policies": list(self.policies)},
        }


@dataclass(frozen=True)
class PluginRegistration:
    """Everything a plugin contributes to the catalog."""

    name: str
    display_name: str
    controllers: Mapping[str, tuple[str, ...]]
    routes: tuple[RouteSpec, ...] = ()
    descriptions: Mapping[str, str] = field(default_factory=dict)


class PermissionCatalog:
    """Immutable view of every registered plugin action and policy."""

    def __init__(
        self,
        plugins: Mapping[str, PluginRegistration],
        policies: Iterable[str],
    ) -> None:
        self._plugins = MappingProxyType(dict(plugins))
        self._policies = frozenset(policies)

    @property
    def plugin_names(self) -> list[str]:
        return sorted(self._plugins)

    def list_actions(self) -> dict[str, dict[str, list[str]]]:
        """Return {plugin: {controller: [action, ...]}}, sorted for stable output."""
        return {
            name: {
                controller: sorted(actions)
                for controller, actions in sorted(plugin.controllers.items())
            }
            for name, plugin in sorted(self._plugins.items())
        }

    def list_policy_names(self) -> set[str]:
        """All selectable policy names (the built-in permissions gate excluded)."""
        return set(self._policies - {PERMISSIONS_GATE})

    def list_routes(self) -> dict[str, list[dict[str, Any]]]:
        return {
            name: [route.to_dict() for route in plugin.routes]
            for name, plugin in sorted(self._plugins.items())
        }

    def has_action(self, plugin: str, controller: str, action: str) -> bool:
        registration = self._plugins.get(plugin)
        if registration is None:
            return False
        return action in registration.controllers.get(controller, ())

    def is_selectable_policy(self, name: str) -> bool:
        return name != PERMISSIONS_GATE and name in self._policies

    def permission_tree(self) -> dict[str, dict[str, Any]]:
        """Every catalog action as a disabled grant.

        Shape: {plugin: {"controllers": {controller: {action: {"enabled", "policy"}}}}}.
        A fresh structure is returned on each call so callers may mutate it.
        """
        return {
            plugin: {
                "controllers": {
                    controller: {action: {"enabled": False, "policy": ""} for action in actions}
                    for controller, actions in controllers.items()
                }
            }
            for plugin, controllers in self.list_actions().items()
        }

    def plugins(self, lang: str | None = None) -> dict[str, dict[str, str]]:
        """Plugin display metadata, with descriptions in `lang` (falls back to English)."""
        lang = (lang or DEFAULT_LANG).lower()
        return {
            name: {
                "name": plugin.display_name,
                "description": plugin.descriptions.get(
                    lang, plugin.descriptions.get(DEFAULT_LANG, "")
                ),
            }
            for name, plugin in sorted(self._plugins.items())
        }


class CatalogBuilder:
    """Collects plugin registrations during startup."""

    def __init__(self) -> None:
        self._plugins: dict[str, PluginRegistration] = {}
        self._policies: set[str] = {PERMISSIONS_GATE}

    def register_plugin(
        self,
        name: str,
        controllers: Mapping[str, Iterable[str]],
        *,
        routes: Iterable[RouteSpec] = (),
        descriptions: Mapping[str, str] | None = None,
        display_name: str | None = None,
    ) -> "CatalogBuilder":
        if name in self._plugins:
            raise ValueError(f"Plugin '{name}' is already registered")
        routes = tuple(routes)
        frozen_controllers = {
            controller: tuple(dict.fromkeys(actions)) for controller, actions in controllers.items()
        }
        for route in routes:
            controller, _, action = route.handler.partition(".")
            if action not in frozen_controllers.get(controller, ()):
                raise ValueError(
                    f"Route {route.method} {route.path} targets unknown action {route.handler}"
                )
        self._plugins[name] = PluginRegistration(
            name=name,
            display_name=display_name or name,
            controllers=MappingProxyType(frozen_controllers),
            routes=routes,
            descriptions=MappingProxyType(dict(descriptions or {})),
        )
        return self

    def register_policy(self, name: str) -> "CatalogBuilder":
        self._policies.add(name)
        return self

    def build(self) -> PermissionCatalog:
        return PermissionCatalog(self._plugins, self._policies)
