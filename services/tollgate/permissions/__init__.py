"""
Permission catalog lifecycle.

Provides init_catalog() for app lifespan and get_catalog() as a FastAPI
dependency. The catalog is built once and never mutated afterwards.
"""

from __future__ import annotations

from collections.abc import Callable

from tollgate.logging_config import get_logger
from tollgate.permissions.builtin import register_users_permissions
from tollgate.permissions.catalog import CatalogBuilder, PermissionCatalog

logger = get_logger(__name__)

Registrar = Callable[[CatalogBuilder], object]

# Module-level catalog instance
_catalog: PermissionCatalog | None = None


def build_catalog(extra_registrars: list[Registrar] | None = None) -> PermissionCatalog:
    """Run every plugin registrar against a fresh builder and freeze the result."""
    builder = CatalogBuilder()
    register_users_permissions(builder)
    for registrar in extra_registrars or []:
        registrar(builder)
    return builder.build()


def init_catalog(extra_registrars: list[Registrar] | None = None) -> PermissionCatalog:
    """Build the process-wide catalog. Called during app startup (lifespan)."""
    global _catalog  # noqa: PLW0603
    _catalog = build_catalog(extra_registrars)
    logger.info(
        "Permission catalog built",
        plugins=_catalog.plugin_names,
        policies=sorted(_catalog.list_policy_names()),
    )
    return _catalog


def get_catalog() -> PermissionCatalog:
    """FastAPI dependency that returns the permission catalog.

    Raises RuntimeError if the catalog has not been built.
    """
    if _catalog is None:
        raise RuntimeError("Permission catalog not initialized — call init_catalog() first")
    return _catalog
