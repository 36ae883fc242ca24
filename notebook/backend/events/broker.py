"""
Event Broker.

One FastStream RedisBroker per process. The API process only publishes
note events and connects on first publish; the event worker process
runs the platform consumers through create_event_app().

Usage:
    from notebook.backend.events.broker import publish_event

    await publish_event("notebook:note-created", event)
"""

from faststream import FastStream
from faststream.redis import RedisBroker

from notebook.backend.core.logging import get_logger
from notebook.backend.events.schemas import EventEnvelope

logger = get_logger(__name__)

_broker: RedisBroker | None = None
_connected: RedisBroker | None = None
_app: FastStream | None = None


def get_event_broker() -> RedisBroker:
    """Get the process-wide broker, creating it on first use."""
    global _broker
    if _broker is None:
        from notebook.backend.core.config import get_redis_url

        _broker = RedisBroker(get_redis_url())
        logger.info("Event broker created")
    return _broker


async def publish_event(stream: str, event: EventEnvelope) -> None:
    """
    Append an event to a Redis stream.

    Streams are capped at events.streams.default_maxlen entries.
    """
    global _connected
    from notebook.backend.core.config import get_app_config

    broker = get_event_broker()
    if _connected is not broker:
        await broker.connect()
        _connected = broker

    await broker.publish(
        event.model_dump(),
        stream=stream,
        maxlen=get_app_config().events.streams.default_maxlen,
    )


async def close_event_broker() -> None:
    """Disconnect a broker opened by publish_event. No-op otherwise."""
    global _broker, _connected
    if _connected is not None:
        await _connected.close()
        logger.info("Event broker closed")
    _broker = None
    _connected = None


def create_event_app() -> FastStream:
    """
    Build the event worker application.

    Run through the FastStream CLI as a factory:
        faststream run --factory notebook.backend.events.broker:create_event_app
    """
    global _app
    if _app is not None:
        return _app

    from notebook.backend.events.middleware import EventContextMiddleware

    broker = get_event_broker()
    broker.middlewares = [EventContextMiddleware]

    from notebook.backend.events.consumers import platform as _platform_consumer  # noqa: F401

    _app = FastStream(broker)
    logger.info("Event worker application created", extra={"consumers": ["scope-maintenance"]})
    return _app
