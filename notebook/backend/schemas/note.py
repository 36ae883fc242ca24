"""
Note Schemas.

Pydantic schemas for note API request/response validation.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ContextName = Literal["Site", "Course", "Activity", "Profile"]
TagKind = Literal["course", "module", "user"]


class NoteCreate(BaseModel):
    """Schema for creating a new note."""

    subject: str = Field(
        ...,
        max_length=255,
        description="Note subject line",
        examples=["Note 1 of the course PHY101"],
    )
    body: str = Field(
        ...,
        description="Note body (HTML)",
        examples=["<p>Revise chapter 3 before the quiz.</p>"],
    )
    user_id: int = Field(default=0, ge=0, description="Related user, 0 for none")
    course_id: int = Field(default=0, ge=0, description="Course, 0 for none")
    module_id: int = Field(default=0, ge=0, description="Course module, 0 for none")
    attachment_area_id: int = Field(default=0, ge=0, description="Editor draft area id")


class NoteUpdate(BaseModel):
    """Schema for updating an existing note. Scope fields are immutable."""

    subject: str = Field(..., max_length=255, description="Note subject line")
    body: str = Field(..., description="Note body (HTML)")
    attachment_area_id: int = Field(default=0, ge=0, description="Editor draft area id")


class NoteDeleteBatch(BaseModel):
    """Schema for deleting several notes at once."""

    note_ids: list[int] = Field(..., min_length=1, description="Ids of the notes to delete")


class NoteCreated(BaseModel):
    """Response body for a created note."""

    id: int = Field(description="Id of the new note")


class NoteTag(BaseModel):
    """A scope badge shown next to a note."""

    kind: TagKind
    title: str
    url: str | None = None
    tooltip: str


class NoteDetail(BaseModel):
    """Schema for a note in API responses."""

    id: int = Field(description="Note unique identifier")
    subject: str = Field(description="Note subject line")
    body: str = Field(description="Note body (HTML)")
    user_id: int
    course_id: int
    module_id: int
    course_name: str
    module_name: str
    attachment_area_id: int = 0
    created_at: datetime = Field(description="Creation timestamp")
    last_modified_at: datetime = Field(description="Last modification timestamp")
    context_name: ContextName = Field(default="Site", description="Most specific scope label")
    tags: list[NoteTag] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class NoteSubject(BaseModel):
    """Default subject line for a new note."""

    subject: str
