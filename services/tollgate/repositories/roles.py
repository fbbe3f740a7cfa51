"""Role repository: persistence of roles, their grants and user reassignment.

Grants are stored one row per enabled (plugin, controller, action). The
permission tree presented to admins is the full catalog tree with those rows
overlaid, so disabled actions never need a row.
"""

import re
import unicodedata
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tollgate.db.models import PUBLIC_ROLE_TYPE, Permission, Role, User
from tollgate.errors import ForbiddenError, InvalidInputError, NotFoundError
from tollgate.logging_config import get_logger
from tollgate.permissions.catalog import PermissionCatalog

logger = get_logger(__name__)


@dataclass(frozen=True)
class Grant:
    """One enabled action parsed from a submitted permission tree."""

    plugin: str
    controller: str
    action: str
    policy: str = ""

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.plugin, self.controller, self.action)


def role_type_from_name(name: str) -> str:
    """Derive the role discriminator: ASCII-folded, lower-cased snake_case."""
    folded = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "_", folded.lower()).strip("_")


def parse_role_id(role_id: Any) -> int | None:
    """Role ids are integers; anything else cannot resolve to a role."""
    if isinstance(role_id, bool):
        return None
    if isinstance(role_id, int):
        return role_id
    if isinstance(role_id, str):
        digits = role_id.strip()
        if digits.isascii() and digits.isdigit():
            return int(digits)
    return None


def parse_grants(tree: Any, catalog: PermissionCatalog) -> list[Grant]:
    """Validate a submitted permission tree and return its enabled grants.

    Every action must exist in the catalog and every policy must be selectable.
    Raises InvalidInputError before anything is written.
    """
    if tree is None:
        return []
    if not isinstance(tree, dict):
        raise InvalidInputError("permissions must be an object")

    grants: list[Grant] = []
    for plugin, plugin_tree in tree.items():
        controllers = plugin_tree.get("controllers") if isinstance(plugin_tree, dict) else None
        if not isinstance(controllers, dict):
            raise InvalidInputError(f"permissions.{plugin}.controllers must be an object")
        for controller, actions in controllers.items():
            if not isinstance(actions, dict):
                raise InvalidInputError(f"permissions.{plugin}.{controller} must be an object")
            for action, grant in actions.items():
                if not catalog.has_action(plugin, controller, action):
                    raise InvalidInputError(f"Unknown action {plugin}.{controller}.{action}")
                if not isinstance(grant, dict):
                    raise InvalidInputError(f"Invalid grant for {plugin}.{controller}.{action}")
                policy = grant.get("policy") or ""
                if policy and not catalog.is_selectable_policy(policy):
                    raise InvalidInputError(f"Unknown policy '{policy}'")
                if grant.get("enabled"):
                    grants.append(Grant(plugin, controller, action, policy))
    return grants


class RoleRepository:
    """SQLAlchemy-backed role persistence bound to one request session."""

    def __init__(self, db: AsyncSession, catalog: PermissionCatalog) -> None:
        self._db = db
        self._catalog = catalog

    async def find_public_role(self) -> Role:
        result = await self._db.execute(select(Role).where(Role.type == PUBLIC_ROLE_TYPE))
        role = result.scalar_one_or_none()
        if role is None:
            raise NotFoundError("Public role not found")
        return role

    async def _load(self, role_id: Any) -> Role | None:
        parsed = parse_role_id(role_id)
        if parsed is None:
            return None
        result = await self._db.execute(select(Role).where(Role.id == parsed))
        return result.scalar_one_or_none()

    async def get_role(self, role_id: Any, plugins: dict[str, dict[str, str]]) -> dict | None:
        """Return the role with its full permission tree, or None if it does not exist."""
        role = await self._load(role_id)
        if role is None:
            return None

        tree = self._catalog.permission_tree()
        for permission in role.permissions:
            controllers = tree.setdefault(permission.type, {"controllers": {}})["controllers"]
            controllers.setdefault(permission.controller, {})[permission.action] = {
                "enabled": permission.enabled,
                "policy": permission.policy,
            }
        for plugin, plugin_tree in tree.items():
            plugin_tree["information"] = plugins.get(plugin, {})

        return {
            "id": role.id,
            "name": role.name,
            "description": role.description or "",
            "type": role.type,
            "permissions": tree,
        }

    async def list_roles(self) -> list[dict]:
        roles = (await self._db.execute(select(Role).order_by(Role.id))).scalars().all()
        counts = dict(
            (
                await self._db.execute(
                    select(User.role_id, func.count(User.id)).group_by(User.role_id)
                )
            ).all()
        )
        return [
            {
                "id": role.id,
                "name": role.name,
                "description": role.description or "",
                "type": role.type,
                "nb_users": counts.get(role.id, 0),
            }
            for role in roles
        ]

    async def create_role(self, payload: dict) -> Role:
        if not payload:
            raise InvalidInputError("Cannot be empty")
        name = payload.get("name")
        if not isinstance(name, str) or not name.strip():
            raise InvalidInputError("Role name is required")
        role_type = role_type_from_name(name)
        if not role_type:
            raise InvalidInputError(f"Cannot derive a role type from '{name}'")
        grants = parse_grants(payload.get("permissions"), self._catalog)

        role = Role(
            name=name.strip(),
            description=payload.get("description") or "",
            type=role_type,
            permissions=[
                Permission(
                    type=g.plugin,
                    controller=g.controller,
                    action=g.action,
                    enabled=True,
                    policy=g.policy,
                )
                for g in grants
            ],
        )
        self._db.add(role)
        await self._db.flush()

        logger.info("Role created", role_id=role.id, role_type=role.type, grants=len(grants))
        return role

    async def update_role(self, role_id: Any, payload: dict) -> Role:
        if not payload:
            raise InvalidInputError("Cannot be empty")
        grants = parse_grants(payload.get("permissions"), self._catalog)

        role = await self._load(role_id)
        if role is None:
            raise NotFoundError("Role not found")

        if "name" in payload:
            name = payload["name"]
            if not isinstance(name, str) or not name.strip():
                raise InvalidInputError("Role name cannot be empty")
            role.name = name.strip()
        if "description" in payload:
            role.description = payload["description"] or ""

        if "permissions" in payload:
            desired = {g.key: g for g in grants}
            kept: list[Permission] = []
            for permission in role.permissions:
                key = (permission.type, permission.controller, permission.action)
                grant = desired.pop(key, None)
                if grant is None:
                    continue
                permission.enabled = True
                permission.policy = grant.policy
                kept.append(permission)
            for grant in desired.values():
                kept.append(
                    Permission(
                        type=grant.plugin,
                        controller=grant.controller,
                        action=grant.action,
                        enabled=True,
                        policy=grant.policy,
                    )
                )
            # delete-orphan cascade removes rows dropped from the collection
            role.permissions = kept

        await self._db.flush()
        logger.info("Role updated", role_id=role.id, fields=sorted(payload))
        return role

    async def delete_role(self, role_id: Any, public_role_id: Any) -> None:
        """Delete a role, moving its users to the public role first."""
        parsed = parse_role_id(role_id)
        if parsed is None:
            raise InvalidInputError("Bad request")
        if parsed == parse_role_id(public_role_id):
            raise ForbiddenError("Unauthorized")

        role = await self._load(parsed)
        if role is None:
            raise NotFoundError("Role not found")

        moved = await self._db.execute(
            update(User).where(User.role_id == role.id).values(role_id=public_role_id)
        )
        await self._db.delete(role)
        await self._db.flush()

        logger.info("Role deleted", role_id=role.id, users_moved=moved.rowcount)
