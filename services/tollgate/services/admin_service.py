"""Administration service for roles, permissions and plugin settings.

Request payloads are validated here, before any repository or store call.
Repository failures during role mutations are logged with their cause and
reported to the caller only as OperationFailedError.
"""

import copy
from collections.abc import Callable
from typing import Any

from tollgate.errors import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    OperationFailedError,
)
from tollgate.logging_config import get_logger
from tollgate.permissions.catalog import PermissionCatalog
from tollgate.repositories.roles import RoleRepository, parse_role_id
from tollgate.services.email_templates import is_valid_email_template
from tollgate.services.providers import EMAIL_PROVIDER, ProviderURLBuilder
from tollgate.store import (
    ADVANCED_KEY,
    EMAIL_KEY,
    GRANT_KEY,
    SettingsScope,
    SettingsStore,
    plugin_scope,
)

logger = get_logger(__name__)

TemplateValidator = Callable[[object], bool]


def _require_body(body: Any, message: str = "Cannot be empty") -> dict:
    if not body or not isinstance(body, dict):
        raise InvalidInputError(message)
    return body


class AdminService:
    """
    Orchestrates role and settings administration.

    Handles:
    - Role CRUD with public-role protection
    - Email template, advanced settings and provider configuration
    """

    def __init__(
        self,
        roles: RoleRepository,
        store: SettingsStore,
        catalog: PermissionCatalog,
        template_validator: TemplateValidator = is_valid_email_template,
        url_builder: ProviderURLBuilder | None = None,
        plugin_name: str | None = None,
    ) -> None:
        self.roles = roles
        self.store = store
        self.catalog = catalog
        self.template_validator = template_validator
        self.url_builder = url_builder or ProviderURLBuilder()
        self._plugin_name = plugin_name

    def _scope(self, key: str) -> SettingsScope:
        return plugin_scope(key, self._plugin_name)

    # =========================================================================
    # Roles
    # =========================================================================

    async def create_role(self, body: Any) -> None:
        body = _require_body(body)
        try:
            await self.roles.create_role(body)
        except InvalidInputError:
            raise
        except Exception as e:
            logger.error("Role creation failed", exc_info=e)
            raise OperationFailedError() from None

    async def update_role(self, role_id: Any, body: Any) -> None:
        body = _require_body(body, "Bad request")
        try:
            await self.roles.update_role(role_id, body)
        except InvalidInputError:
            raise
        except Exception as e:
            logger.error("Role update failed", role_id=role_id, exc_info=e)
            raise OperationFailedError() from None

    async def delete_role(self, role_id: Any) -> None:
        """Delete a role unless it is the public role.

        The public role is resolved on every call; a re-seeded public role
        must be protected immediately.
        """
        public_role = await self.roles.find_public_role()

        parsed = parse_role_id(role_id)
        if parsed is None:
            raise InvalidInputError("Bad request")
        if parsed == public_role.id:
            logger.warning("Refused to delete the public role", role_id=role_id)
            raise ForbiddenError("Unauthorized")

        try:
            await self.roles.delete_role(parsed, public_role.id)
        except Exception as e:
            logger.error("Role deletion failed", role_id=role_id, exc_info=e)
            raise OperationFailedError("Bad request") from None

    async def get_role(self, role_id: Any, lang: str | None = None) -> dict:
        plugins = self.catalog.plugins(lang)
        role = await self.roles.get_role(role_id, plugins)
        if not role:
            raise NotFoundError("Role does not exist")
        return role

    async def list_roles(self) -> list[dict]:
        try:
            return await self.roles.list_roles()
        except Exception as e:
            logger.error("Role listing failed", exc_info=e)
            raise OperationFailedError("Not found") from None

    # =========================================================================
    # Permission catalog
    # =========================================================================

    def list_permissions(self) -> dict[str, dict[str, list[str]]]:
        return self.catalog.list_actions()

    def list_policies(self) -> list[str]:
        return sorted(self.catalog.list_policy_names())

    def list_routes(self) -> dict[str, list[dict[str, Any]]]:
        return self.catalog.list_routes()

    # =========================================================================
    # Email templates
    # =========================================================================

    async def get_email_templates(self) -> Any:
        return await self.store.get(self._scope(EMAIL_KEY))

    async def update_email_templates(self, body: Any) -> None:
        """Validate every template, then store the batch in one write.

        A single invalid template rejects the whole batch.
        """
        body = _require_body(body)
        templates = body.get("email-templates")
        if not templates or not isinstance(templates, dict):
            raise InvalidInputError("Cannot be empty")

        for name, template in templates.items():
            options = template.get("options") if isinstance(template, dict) else None
            message = options.get("message") if isinstance(options, dict) else None
            if not self.template_validator(message):
                logger.info("Rejected email template batch", template=name)
                raise InvalidInputError("Invalid template")

        await self.store.set(self._scope(EMAIL_KEY), templates)
        logger.info("Email templates updated", templates=sorted(templates))

    # =========================================================================
    # Advanced settings
    # =========================================================================

    async def get_advanced_settings(self) -> dict:
        return {
            "settings": await self.store.get(self._scope(ADVANCED_KEY)),
            "roles": await self.list_roles(),
        }

    async def update_advanced_settings(self, body: Any) -> None:
        body = _require_body(body)
        await self.store.set(self._scope(ADVANCED_KEY), body)
        logger.info("Advanced settings updated", keys=sorted(body))

    # =========================================================================
    # Providers
    # =========================================================================

    async def get_providers(self) -> dict:
        """Provider config with a derived redirectUri on every OAuth provider.

        Works on a copy; the enrichment is never written back.
        """
        providers = copy.deepcopy(await self.store.get(self._scope(GRANT_KEY))) or {}
        if not isinstance(providers, dict):
            logger.warning("Ignoring malformed provider settings", kind=type(providers).__name__)
            return {}
        for name, config in providers.items():
            if name != EMAIL_PROVIDER and isinstance(config, dict):
                config["redirectUri"] = self.url_builder.build_redirect_uri(name)
        return providers

    async def update_providers(self, body: Any) -> None:
        body = _require_body(body)
        providers = body.get("providers")
        if not providers or not isinstance(providers, dict):
            raise InvalidInputError("Cannot be empty")
        await self.store.set(self._scope(GRANT_KEY), providers)
        logger.info("Providers updated", providers=sorted(providers))
