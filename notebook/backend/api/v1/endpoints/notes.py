"""
Notes API Endpoints.

REST API endpoints for the note lifecycle. The acting user comes from
the X-User-ID header and is passed to every service call.
Endpoints that queue note events commit through NoteService.commit
before responding, so events only describe committed rows.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from notebook.backend.core.dependencies import CallerId, DbSession, RequestId
from notebook.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)
from notebook.backend.schemas.base import ApiResponse
from notebook.backend.schemas.note import (
    NoteCreate,
    NoteCreated,
    NoteDeleteBatch,
    NoteDetail,
    NoteSubject,
    NoteUpdate,
)
from notebook.backend.services.note import NoteService

router = APIRouter()

ScopeId = Annotated[int, Query(ge=0, description="Scope id, 0 for none")]


@router.get(
    "",
    summary="List notes (paginated)",
    description="List the caller's notes, most relevant to the given scope first.",
)
async def list_notes(
    db: DbSession,
    request_id: RequestId,
    caller_id: CallerId,
    pagination: PaginationParams = Depends(get_pagination_params),
    user_id: ScopeId = 0,
    course_id: ScopeId = 0,
    module_id: ScopeId = 0,
) -> dict[str, Any]:
    """List notes ranked by scope relevance, then recency."""
    service = NoteService(db, correlation_id=request_id)
    notes = await service.list_notes(caller_id, user_id, course_id, module_id)

    return create_paginated_response(
        items=notes,
        item_schema=NoteDetail,
        page=pagination,
        request_id=request_id,
    )


@router.post(
    "",
    response_model=ApiResponse[NoteCreated],
    status_code=201,
    summary="Create a note",
    description="Create a note on the site, a course, a course module or a user profile.",
)
async def create_note(
    data: NoteCreate,
    db: DbSession,
    request_id: RequestId,
    caller_id: CallerId,
) -> ApiResponse[NoteCreated]:
    """Create a new note."""
    service = NoteService(db, correlation_id=request_id)
    note_id = await service.create_note(
        caller_id,
        body=data.body,
        subject=data.subject,
        user_id=data.user_id,
        course_id=data.course_id,
        module_id=data.module_id,
        attachment_area_id=data.attachment_area_id,
    )
    await service.commit()
    return ApiResponse(data=NoteCreated(id=note_id))


@router.get(
    "/subject",
    response_model=ApiResponse[NoteSubject],
    summary="Default subject line",
    description="Suggested subject for the caller's next note in a scope.",
)
async def form_subject(
    db: DbSession,
    request_id: RequestId,
    caller_id: CallerId,
    user_id: ScopeId = 0,
    course_id: ScopeId = 0,
    module_id: ScopeId = 0,
) -> ApiResponse[NoteSubject]:
    """Get the default subject line for a new note."""
    service = NoteService(db, correlation_id=request_id)
    subject = await service.form_subject(caller_id, user_id, course_id, module_id)
    return ApiResponse(data=NoteSubject(subject=subject))


@router.post(
    "/delete",
    response_model=ApiResponse[bool],
    summary="Delete several notes",
    description="Delete notes all or nothing. Any missing or foreign id aborts the call.",
)
async def delete_notes(
    data: NoteDeleteBatch,
    db: DbSession,
    request_id: RequestId,
    caller_id: CallerId,
) -> ApiResponse[bool]:
    """Delete a batch of notes."""
    service = NoteService(db, correlation_id=request_id)
    deleted = await service.delete_notes(caller_id, data.note_ids)
    await service.commit()
    return ApiResponse(data=deleted)


@router.get(
    "/{note_id}",
    response_model=ApiResponse[NoteDetail],
    summary="Read a note",
    description="Get one of the caller's notes with its scope tags.",
)
async def read_note(
    note_id: int,
    db: DbSession,
    request_id: RequestId,
    caller_id: CallerId,
) -> ApiResponse[NoteDetail]:
    """Read a note by ID."""
    service = NoteService(db, correlation_id=request_id)
    note = await service.read_note(caller_id, note_id)
    await service.commit()
    return ApiResponse(data=note)


@router.put(
    "/{note_id}",
    response_model=ApiResponse[bool],
    summary="Update a note",
    description="Replace the subject and body of a note. The scope is immutable.",
)
async def update_note(
    note_id: int,
    data: NoteUpdate,
    db: DbSession,
    request_id: RequestId,
    caller_id: CallerId,
) -> ApiResponse[bool]:
    """Update a note."""
    service = NoteService(db, correlation_id=request_id)
    updated = await service.update_note(
        caller_id,
        note_id,
        body=data.body,
        subject=data.subject,
        attachment_area_id=data.attachment_area_id,
    )
    await service.commit()
    return ApiResponse(data=updated)


@router.post(
    "/{note_id}/viewed",
    response_model=ApiResponse[bool],
    summary="Record a view",
    description="Audit signal that the author viewed a note.",
)
async def note_viewed(
    note_id: int,
    db: DbSession,
    request_id: RequestId,
    caller_id: CallerId,
) -> ApiResponse[bool]:
    """Record that a note was viewed."""
    service = NoteService(db, correlation_id=request_id)
    viewed = await service.note_viewed(caller_id, note_id)
    await service.commit()
    return ApiResponse(data=viewed)


@router.delete(
    "/{note_id}",
    response_model=ApiResponse[bool],
    summary="Delete a note",
    description="Permanently delete one of the caller's notes.",
)
async def delete_note(
    note_id: int,
    db: DbSession,
    request_id: RequestId,
    caller_id: CallerId,
) -> ApiResponse[bool]:
    """Delete a note."""
    service = NoteService(db, correlation_id=request_id)
    deleted = await service.delete_note(caller_id, note_id)
    await service.commit()
    return ApiResponse(data=deleted)
