"""
Platform Event Consumer.

Subscribes to the host platform's course and module change streams and
applies them to stored notes through ScopeMaintenanceService, with the
resilience stack: circuit breaker → retry → timeout. Events that still
fail are routed to a dead letter queue (DLQ).

Maintenance is best-effort. A database failure inside the service is
logged and swallowed there; only malformed events, timeouts and broken
connections reach the DLQ.

Run with: python cli.py --service event-worker
"""

from collections.abc import Awaitable, Callable

from faststream.redis import StreamSub

from notebook.backend.core.config import get_app_config
from notebook.backend.core.logging import get_logger
from notebook.backend.core.resilience import with_resilience
from notebook.backend.events.broker import get_event_broker
from notebook.backend.events.schemas import CourseChangePayload, EventEnvelope, ModuleChangePayload
from notebook.backend.services.maintenance import ScopeMaintenanceService

logger = get_logger(__name__)

broker = get_event_broker()

CONSUMER = "scope-maintenance"
STREAM_COURSE_UPDATED = "platform:course-updated"
STREAM_COURSE_DELETED = "platform:course-deleted"
STREAM_MODULE_UPDATED = "platform:module-updated"
STREAM_MODULE_DELETED = "platform:module-deleted"

_consumer_config = get_app_config().events.consumers[CONSUMER]


def _stream(name: str) -> StreamSub:
    return StreamSub(name, group=_consumer_config.group, consumer=f"{CONSUMER}-1")


async def _send_to_dlq(stream: str, event: EventEnvelope, error: Exception) -> None:
    """Publish a failed event to the dead letter queue stream.

    DLQ stream name follows the convention: dlq:{original_stream}
    The original event is preserved with added error metadata.
    """
    dlq_config = get_app_config().events.dlq
    if not dlq_config.enabled:
        return

    dlq_stream = f"{dlq_config.stream_prefix}:{stream}"
    dlq_payload = event.model_dump()
    dlq_payload["_dlq_error"] = str(error)
    dlq_payload["_dlq_original_stream"] = stream

    try:
        await broker.publish(dlq_payload, stream=dlq_stream)
        logger.warning(
            "Event sent to DLQ",
            extra={
                "dlq_stream": dlq_stream,
                "event_id": event.event_id,
                "error": str(error),
            },
        )
    except Exception as dlq_err:
        logger.error(
            "Failed to send event to DLQ",
            extra={
                "dlq_stream": dlq_stream,
                "event_id": event.event_id,
                "dlq_error": str(dlq_err),
                "original_error": str(error),
            },
        )


@with_resilience(CONSUMER, _consumer_config)
async def _apply_with_resilience(action: Callable[[], Awaitable[bool]]) -> bool:
    """Run one maintenance action."""
    return await action()


async def _handle_event(
    stream: str,
    event: EventEnvelope,
    action: Callable[[ScopeMaintenanceService], Awaitable[bool]],
) -> None:
    """Apply an event, routing terminal failures to the DLQ."""
    service = ScopeMaintenanceService()
    try:
        applied = await _apply_with_resilience(lambda: action(service))
    except Exception as exc:
        logger.error(
            "Event processing failed after retries",
            extra={
                "event_type": event.event_type,
                "event_id": event.event_id,
                "error": str(exc),
            },
        )
        await _send_to_dlq(stream, event, exc)
        return

    if not applied:
        logger.warning(
            "Scope maintenance skipped",
            extra={"event_type": event.event_type, "event_id": event.event_id},
        )


@broker.subscriber(stream=_stream(STREAM_COURSE_UPDATED))
async def handle_course_updated(data: dict) -> None:
    """Rewrite the cached course name after a course is renamed."""
    event = EventEnvelope(**data)
    payload = CourseChangePayload(**event.payload)

    logger.info(
        "Processing course updated event",
        extra={"course_id": payload.course_id, "correlation_id": event.correlation_id},
    )

    await _handle_event(
        STREAM_COURSE_UPDATED,
        event,
        lambda service: service.course_renamed(payload.course_id, payload.short_name),
    )


@broker.subscriber(stream=_stream(STREAM_COURSE_DELETED))
async def handle_course_deleted(data: dict) -> None:
    """Orphan the notes of a deleted course."""
    event = EventEnvelope(**data)
    payload = CourseChangePayload(**event.payload)

    logger.info(
        "Processing course deleted event",
        extra={"course_id": payload.course_id, "correlation_id": event.correlation_id},
    )

    await _handle_event(
        STREAM_COURSE_DELETED,
        event,
        lambda service: service.course_deleted(payload.course_id),
    )


@broker.subscriber(stream=_stream(STREAM_MODULE_UPDATED))
async def handle_module_updated(data: dict) -> None:
    """Rewrite the cached module name after a module is renamed."""
    event = EventEnvelope(**data)
    payload = ModuleChangePayload(**event.payload)

    logger.info(
        "Processing module updated event",
        extra={"module_id": payload.module_id, "correlation_id": event.correlation_id},
    )

    await _handle_event(
        STREAM_MODULE_UPDATED,
        event,
        lambda service: service.module_renamed(payload.module_id, payload.name),
    )


@broker.subscriber(stream=_stream(STREAM_MODULE_DELETED))
async def handle_module_deleted(data: dict) -> None:
    """Orphan the notes of a deleted module."""
    event = EventEnvelope(**data)
    payload = ModuleChangePayload(**event.payload)

    logger.info(
        "Processing module deleted event",
        extra={"module_id": payload.module_id, "correlation_id": event.correlation_id},
    )

    await _handle_event(
        STREAM_MODULE_DELETED,
        event,
        lambda service: service.module_deleted(payload.module_id),
    )
