"""Permission catalog endpoints.

Endpoints:
    GET /permissions  — grantable actions per plugin and controller
    GET /policies     — selectable policy names
    GET /routes       — routes registered by each plugin
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from tollgate.api.dependencies import get_admin_service, require_admin
from tollgate.services.admin_service import AdminService

router = APIRouter(tags=["permissions"], dependencies=[Depends(require_admin)])


@router.get("/permissions")
async def list_permissions(service: AdminService = Depends(get_admin_service)) -> JSONResponse:
    return JSONResponse(content={"permissions": service.list_permissions()})


@router.get("/policies")
async def list_policies(service: AdminService = Depends(get_admin_service)) -> JSONResponse:
    return JSONResponse(content={"policies": service.list_policies()})


@router.get("/routes")
async def list_routes(service: AdminService = Depends(get_admin_service)) -> JSONResponse:
    return JSONResponse(content={"routes": service.list_routes()})
