"""User search endpoint.

Endpoints:
    GET /search/{term} — users whose username or email contains `term`
"""

from fastapi import APIRouter, Depends, Path
from fastapi.responses import JSONResponse

from tollgate.api.dependencies import require_admin
from tollgate.search import QueryDispatcher, get_search_dispatcher

router = APIRouter(tags=["users"], dependencies=[Depends(require_admin)])


@router.get("/search/{term}")
async def search_users(
    term: str = Path(...),
    dispatcher: QueryDispatcher = Depends(get_search_dispatcher),
) -> JSONResponse:
    users = await dispatcher.search(term)
    return JSONResponse(content=[user.to_dict() for user in users])
