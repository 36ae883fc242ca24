"""
Event Context Middleware.

Wraps every platform event the worker consumes: binds the envelope ids
and the affected course or module into the structlog context, and logs
the outcome with its duration.
"""

import time
from typing import Any

import structlog
from faststream import BaseMiddleware

from notebook.backend.core.logging import get_logger

logger = get_logger(__name__)

CONTEXT_KEYS = ("event_id", "correlation_id", "event_type", "course_id", "module_id")


def event_context(message: Any) -> dict[str, Any]:
    """
    Pick the log context out of a consumed message.

    Decoded bodies are plain dicts; pydantic models are dumped first.
    """
    if hasattr(message, "model_dump"):
        message = message.model_dump()
    if not isinstance(message, dict):
        return {}

    context = {
        key: message[key]
        for key in ("event_id", "correlation_id", "event_type")
        if message.get(key)
    }
    payload = message.get("payload")
    if isinstance(payload, dict):
        context.update(
            {key: payload[key] for key in ("course_id", "module_id") if key in payload}
        )
    return context


class EventContextMiddleware(BaseMiddleware):
    """Log context and timing for one consumed event."""

    async def on_consume(self, msg):
        body = await msg.decode() if hasattr(msg, "decode") else msg
        structlog.contextvars.bind_contextvars(source="events", **event_context(body))
        self._started = time.monotonic()
        return await super().on_consume(msg)

    async def after_consume(self, err):
        duration_ms = round((time.monotonic() - self._started) * 1000, 1)
        if err:
            logger.error("Platform event failed", extra={"duration_ms": duration_ms, "error": str(err)})
        else:
            logger.info("Platform event applied", extra={"duration_ms": duration_ms})

        structlog.contextvars.unbind_contextvars("source", *CONTEXT_KEYS)
        return await super().after_consume(err)
