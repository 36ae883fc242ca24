"""
Scope API Endpoints.

Turns the context of the page hosting the drawer into a note scope.
"""

from fastapi import APIRouter

from notebook.backend.core.dependencies import CallerId
from notebook.backend.schemas.base import ApiResponse
from notebook.backend.schemas.scope import PageContext, Scope
from notebook.backend.services.scope import resolve_scope

router = APIRouter()


@router.post(
    "/resolve",
    response_model=ApiResponse[Scope],
    summary="Resolve page scope",
    description="Derive the (user, course, module) scope of the page the drawer is opened on.",
)
async def resolve(
    page: PageContext,
    caller_id: CallerId,
) -> ApiResponse[Scope]:
    """Resolve the scope of a page for the calling user."""
    if not page.actor_id:
        page = page.model_copy(update={"actor_id": caller_id})
    return ApiResponse(data=resolve_scope(page))
