"""
API Version 1 Router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from notebook.backend.api.v1.endpoints import notes, scope

router = APIRouter()

router.include_router(notes.router, prefix="/notes", tags=["notes"])
router.include_router(scope.router, prefix="/scope", tags=["scope"])
