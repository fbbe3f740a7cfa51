"""
Bootstrap script for seeding the users-permissions plugin.

Idempotent: skips anything that already exists.
Run via: python -m tollgate.cli.bootstrap

Seeds:
  - the 'public' and 'authenticated' roles
  - default provider (grant), email template and advanced settings

Reads configuration from environment variables:
  DATABASE_URL           - PostgreSQL connection URL (falls back to TOLLGATE_DATABASE_URL)
  TOLLGATE_PLUGIN_NAME   - Plugin whose settings are seeded (default: users-permissions)
"""

import asyncio
import logging
import os
import sys
from typing import Any

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from tollgate.db.models import PUBLIC_ROLE_TYPE, Role
from tollgate.services.email_templates import DEFAULT_EMAIL_TEMPLATES
from tollgate.services.providers import default_grant_config
from tollgate.store import ADVANCED_KEY, EMAIL_KEY, GRANT_KEY, SQLSettingsStore, plugin_scope

# Use stdlib logging, structlog isn't configured yet during bootstrap
logger = logging.getLogger("tollgate.bootstrap")

AUTHENTICATED_ROLE_TYPE = "authenticated"

DEFAULT_ROLES = (
    {
        "name": "Public",
        "description": "Default role given to unauthenticated user.",
        "type": PUBLIC_ROLE_TYPE,
    },
    {
        "name": "Authenticated",
        "description": "Default role given to authenticated user.",
        "type": AUTHENTICATED_ROLE_TYPE,
    },
)


def default_advanced_settings() -> dict[str, Any]:
    return {
        "unique_email": True,
        "allow_register": True,
        "email_confirmation": False,
        "email_reset_password": None,
        "email_confirmation_redirection": None,
        "default_role": AUTHENTICATED_ROLE_TYPE,
    }


async def seed(session: AsyncSession, plugin_name: str | None = None) -> None:
    """Create missing default roles and settings in the given session."""
    for spec in DEFAULT_ROLES:
        result = await session.execute(select(Role).where(Role.type == spec["type"]))
        if result.scalar_one_or_none():
            logger.info("Role %s already exists, skipping", spec["type"])
            continue
        session.add(Role(**spec))
        logger.info("Created role: %s", spec["type"])
    await session.flush()

    store = SQLSettingsStore(session)
    defaults = {
        GRANT_KEY: default_grant_config(),
        EMAIL_KEY: DEFAULT_EMAIL_TEMPLATES,
        ADVANCED_KEY: default_advanced_settings(),
    }
    for key, value in defaults.items():
        scope = plugin_scope(key, plugin_name)
        if await store.get(scope) is not None:
            logger.info("Settings %s already exist, skipping", scope.store_key)
            continue
        await store.set(scope, value)
        logger.info("Seeded settings: %s", scope.store_key)


async def bootstrap() -> None:
    database_url = (
        os.environ.get("DATABASE_URL", "").strip()
        or os.environ.get("TOLLGATE_DATABASE_URL", "").strip()
    )
    plugin_name = os.environ.get("TOLLGATE_PLUGIN_NAME", "").strip() or None

    if not database_url:
        logger.error("DATABASE_URL is required")
        sys.exit(1)

    # Ensure async driver
    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = create_async_engine(database_url, echo=False)

    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        logger.info("Connected to database")

    async with AsyncSession(engine, expire_on_commit=False) as session:
        async with session.begin():
            await seed(session, plugin_name)

    await engine.dispose()
    logger.info("Bootstrap complete")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    asyncio.run(bootstrap())
