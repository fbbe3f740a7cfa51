"""FastAPI dependencies for admin authentication and service wiring.

Every admin route requires the static admin bearer token configured in
settings.admin_token. Token issuance is owned by the deployment, not by
this service.
"""

import hmac

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tollgate.config import settings
from tollgate.db.session import get_db
from tollgate.logging_config import get_logger
from tollgate.permissions import get_catalog
from tollgate.permissions.catalog import PermissionCatalog
from tollgate.repositories.roles import RoleRepository
from tollgate.services.admin_service import AdminService
from tollgate.store import SQLSettingsStore

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)


async def require_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> None:
    """Reject requests that do not carry the admin token."""
    expected = settings.admin_token
    if not expected:
        logger.warning("Admin request rejected: no admin token configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API disabled",
        )
    if credentials is None or not hmac.compare_digest(
        credentials.credentials.encode(), expected.encode()
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token",
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_admin_service(
    db: AsyncSession = Depends(get_db),
    catalog: PermissionCatalog = Depends(get_catalog),
) -> AdminService:
    """Build a request-scoped AdminService over the request's session."""
    return AdminService(
        roles=RoleRepository(db, catalog),
        store=SQLSettingsStore(db),
        catalog=catalog,
        plugin_name=settings.plugin_name,
    )
