"""Plugin settings endpoints.

Endpoints:
    GET /email-templates  — stored email templates
    PUT /email-templates  — replace all templates (validated as one batch)
    GET /advanced         — advanced settings and the roles they may reference
    PUT /advanced         — replace advanced settings
    GET /providers        — provider config with derived redirect URIs
    PUT /providers        — replace provider config
"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from tollgate.api.dependencies import get_admin_service, require_admin
from tollgate.services.admin_service import AdminService

router = APIRouter(tags=["settings"], dependencies=[Depends(require_admin)])


@router.get("/email-templates")
async def get_email_templates(service: AdminService = Depends(get_admin_service)) -> JSONResponse:
    return JSONResponse(content=await service.get_email_templates())


@router.put("/email-templates")
async def update_email_templates(
    body: Any = Body(None),
    service: AdminService = Depends(get_admin_service),
) -> JSONResponse:
    await service.update_email_templates(body)
    return JSONResponse(content={"ok": True})


@router.get("/advanced")
async def get_advanced_settings(
    service: AdminService = Depends(get_admin_service),
) -> JSONResponse:
    return JSONResponse(content=await service.get_advanced_settings())


@router.put("/advanced")
async def update_advanced_settings(
    body: Any = Body(None),
    service: AdminService = Depends(get_admin_service),
) -> JSONResponse:
    await service.update_advanced_settings(body)
    return JSONResponse(content={"ok": True})


@router.get("/providers")
async def get_providers(service: AdminService = Depends(get_admin_service)) -> JSONResponse:
    return JSONResponse(content=await service.get_providers())


@router.put("/providers")
async def update_providers(
    body: Any = Body(None),
    service: AdminService = Depends(get_admin_service),
) -> JSONResponse:
    await service.update_providers(body)
    return JSONResponse(content={"ok": True})
