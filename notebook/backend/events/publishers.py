"""
Event Publishers.

Domain-specific event publishers. Each publisher wraps the broker's
publish() method with the correct stream name and event schema.

Publishers check the events_publish_enabled feature flag before publishing.
When disabled, events are silently skipped (no error, no log noise).

Usage:
    from notebook.backend.events.publishers import NoteEventPublisher

    publisher = NoteEventPublisher()
    await publisher.note_created(note, correlation_id=request_id)
"""

from notebook.backend.core.logging import get_logger
from notebook.backend.events.schemas import (
    EventEnvelope,
    NoteCreated,
    NoteDeleted,
    NoteUpdated,
    NoteViewed,
)
from notebook.backend.models.note import Note

logger = get_logger(__name__)

SOURCE = "notebook-service"


def _scope_payload(note: Note) -> dict:
    # course_id is never published.
    return {
        "note_id": note.id,
        "author_id": note.author_id,
        "related_user_id": note.user_id,
        "module_id": note.module_id,
    }


class NoteEventPublisher:
    """Publishes note domain events to Redis Streams."""

    STREAM_CREATED = "notebook:note-created"
    STREAM_VIEWED = "notebook:note-viewed"
    STREAM_UPDATED = "notebook:note-updated"
    STREAM_DELETED = "notebook:note-deleted"

    async def note_created(self, note: Note, correlation_id: str) -> None:
        """Publish a notebook.note.created event."""
        await self._publish(
            self.STREAM_CREATED,
            NoteCreated(
                source=SOURCE,
                correlation_id=correlation_id,
                payload=_scope_payload(note),
            ),
        )

    async def note_viewed(self, note_id: int, author_id: int, correlation_id: str) -> None:
        """Publish a notebook.note.viewed event."""
        await self._publish(
            self.STREAM_VIEWED,
            NoteViewed(
                source=SOURCE,
                correlation_id=correlation_id,
                payload={"note_id": note_id, "author_id": author_id},
            ),
        )

    async def note_updated(self, note: Note, correlation_id: str) -> None:
        """Publish a notebook.note.updated event."""
        await self._publish(
            self.STREAM_UPDATED,
            NoteUpdated(
                source=SOURCE,
                correlation_id=correlation_id,
                payload=_scope_payload(note),
            ),
        )

    async def note_deleted(self, note_id: int, author_id: int, correlation_id: str) -> None:
        """Publish a notebook.note.deleted event."""
        await self._publish(
            self.STREAM_DELETED,
            NoteDeleted(
                source=SOURCE,
                correlation_id=correlation_id,
                payload={"note_id": note_id, "author_id": author_id},
            ),
        )

    async def _publish(self, stream: str, event: EventEnvelope) -> None:
        """Publish an event if the feature flag is enabled."""
        from notebook.backend.core.config import get_app_config

        if not get_app_config().features.events_publish_enabled:
            return

        from notebook.backend.events.broker import publish_event

        await publish_event(stream, event)
        logger.debug(
            "Event published",
            extra={"stream": stream, "event_type": event.event_type, "event_id": event.event_id},
        )
