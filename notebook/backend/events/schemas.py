"""
Event Schemas.

Standardized event envelope and domain-specific event types.
All events published or consumed through the event bus use the
EventEnvelope base.

Naming convention for event_type: domain.entity.action (dot notation)
Stream naming convention: {domain}:{event-type} (colon-separated)

Usage:
    from notebook.backend.events.schemas import NoteCreated

    event = NoteCreated(
        source="notebook-service",
        correlation_id=request_id,
        payload={"note_id": note.id, "author_id": note.author_id},
    )
"""

from uuid import uuid4

from pydantic import BaseModel, Field

from notebook.backend.core.utils import utc_now


class EventEnvelope(BaseModel):
    """Base event envelope; all events inherit from this.

    Fields:
        event_id: Unique event identifier (auto-generated UUID)
        event_type: Domain event type in dot notation (e.g. notebook.note.created)
        event_version: Schema version for forward compatibility
        timestamp: ISO 8601 UTC timestamp
        source: Service/module that published the event
        correlation_id: Request/session ID for tracing across services
        trace_id: Upstream trace ID, when the publisher has one
        payload: Event-specific data
    """

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: str
    event_version: int = 1
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    source: str
    correlation_id: str
    trace_id: str | None = None
    payload: dict


# Published by the notebook


class NoteCreated(EventEnvelope):
    """Published when a new note is created."""

    event_type: str = "notebook.note.created"


class NoteViewed(EventEnvelope):
    """Published when the author reads a note."""

    event_type: str = "notebook.note.viewed"


class NoteUpdated(EventEnvelope):
    """Published when a note is updated."""

    event_type: str = "notebook.note.updated"


class NoteDeleted(EventEnvelope):
    """Published once per deleted note."""

    event_type: str = "notebook.note.deleted"


# Consumed from the host platform


class CourseChangePayload(BaseModel):
    """Payload of platform course events."""

    course_id: int
    short_name: str = ""


class ModuleChangePayload(BaseModel):
    """Payload of platform course module events."""

    module_id: int
    name: str = ""
