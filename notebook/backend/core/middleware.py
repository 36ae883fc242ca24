"""
Request Context Middleware.

Every API request gets a request id (X-Request-ID, generated when
absent), a frontend tag (X-Frontend-ID) and, when the gateway forwarded
one, the acting user (X-User-ID). All three are bound into the structlog
context for the duration of the request and stored on request.state.

Responses carry X-Request-ID and X-Response-Time back to the caller.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notebook.backend.core.logging import get_logger

logger = get_logger(__name__)

# Subset of VALID_SOURCES in logging.py that may call the API
KNOWN_FRONTENDS = frozenset({"web", "cli", "drawer", "api", "internal"})


def _frontend(request: Request) -> str:
    frontend = request.headers.get("X-Frontend-ID", "").strip().lower()
    return frontend if frontend in KNOWN_FRONTENDS else "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request identity into request.state and the log context."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        frontend = _frontend(request)
        request.state.request_id = request_id
        request.state.frontend = frontend

        context = {
            "request_id": request_id,
            "frontend": frontend,
            "source": "web",
            "method": request.method,
            "path": request.url.path,
        }
        caller = request.headers.get("X-User-ID")
        if caller:
            context["caller_id"] = caller

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request raised",
                extra={"duration_ms": _elapsed_ms(started), "error_type": type(exc).__name__},
            )
            raise
        else:
            duration_ms = _elapsed_ms(started)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms}ms"
            logger.debug(
                "Request handled",
                extra={"status_code": response.status_code, "duration_ms": duration_ms},
            )
            return response
        finally:
            structlog.contextvars.clear_contextvars()


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
