"""Role administration endpoints.

Endpoints:
    GET    /roles               — list roles with user counts
    POST   /roles               — create role
    GET    /roles/{role_id}     — show role with its full permission tree
    PUT    /roles/{role_id}     — update role
    DELETE /roles/{role_id}     — delete role (never the public role)
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Path, Query
from fastapi.responses import JSONResponse

from tollgate.api.dependencies import get_admin_service, require_admin
from tollgate.services.admin_service import AdminService

router = APIRouter(tags=["roles"], dependencies=[Depends(require_admin)])


@router.get("/roles")
async def list_roles(service: AdminService = Depends(get_admin_service)) -> JSONResponse:
    """List all roles."""
    return JSONResponse(content={"roles": await service.list_roles()})


@router.post("/roles")
async def create_role(
    body: Any = Body(None),
    service: AdminService = Depends(get_admin_service),
) -> JSONResponse:
    await service.create_role(body)
    return JSONResponse(content={"ok": True})


@router.get("/roles/{role_id}")
async def show_role(
    role_id: str = Path(...),
    lang: str | None = Query(None),
    service: AdminService = Depends(get_admin_service),
) -> JSONResponse:
    """Show a role; `lang` localizes plugin descriptions."""
    return JSONResponse(content={"role": await service.get_role(role_id, lang)})


@router.put("/roles/{role_id}")
async def update_role(
    role_id: str = Path(...),
    body: Any = Body(None),
    service: AdminService = Depends(get_admin_service),
) -> JSONResponse:
    await service.update_role(role_id, body)
    return JSONResponse(content={"ok": True})


@router.delete("/roles/{role_id}")
async def delete_role(
    role_id: str = Path(...),
    service: AdminService = Depends(get_admin_service),
) -> JSONResponse:
    """Delete a role; its users move to the public role."""
    await service.delete_role(role_id)
    return JSONResponse(content={"ok": True})
