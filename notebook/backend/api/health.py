"""
Health Check Endpoints.

/health        liveness: the process answers
/health/ready  readiness: the notebook database answers, and Redis too
               when note events are published
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

from notebook.backend.core.logging import get_logger
from notebook.backend.core.utils import utc_now

router = APIRouter()
logger = get_logger(__name__)

NOT_CONFIGURED = {"status": "not_configured"}


async def _timed_ping(name: str, ping: Callable[[], Awaitable[Any]]) -> dict[str, Any]:
    """Time one ping; any failure reports the dependency unhealthy."""
    started = time.perf_counter()
    try:
        await ping()
    except Exception as e:
        logger.warning(f"{name} health check failed", extra={"dependency": name, "error": str(e)})
        return {"status": "unhealthy", "error": str(e)}
    return {"status": "healthy", "latency_ms": int((time.perf_counter() - started) * 1000)}


async def check_database() -> dict[str, Any]:
    from notebook.backend.core import database
    from notebook.backend.core.config import get_app_config

    db_config = get_app_config().database
    if not db_config.host or not db_config.name:
        return dict(NOT_CONFIGURED)

    async def ping() -> None:
        async with database.get_session_factory()() as session:
            await session.execute(text("SELECT 1"))

    return await _timed_ping("database", ping)


async def check_redis() -> dict[str, Any]:
    """Redis is only a dependency while note events are published."""
    import redis.asyncio as redis

    from notebook.backend.core import config

    if not config.get_app_config().features.events_publish_enabled:
        return dict(NOT_CONFIGURED)

    async def ping() -> None:
        client = redis.from_url(config.get_redis_url())
        try:
            await client.ping()
        finally:
            await client.aclose()

    return await _timed_ping("redis", ping)


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check() -> dict[str, Any]:
    """
    Run every dependency check concurrently under the database timeout.

    Raises:
        HTTPException: 503 with the per-dependency results if any check fails
    """
    from notebook.backend.core.config import get_app_config

    checks: dict[str, dict[str, Any]] = {
        "database": {"status": "error", "error": "check did not run"},
        "redis": {"status": "error", "error": "check did not run"},
    }
    runners = {"database": check_database, "redis": check_redis}

    try:
        async with asyncio.timeout(get_app_config().application.timeouts.database):
            async with asyncio.TaskGroup() as tg:
                tasks = {name: tg.create_task(run()) for name, run in runners.items()}
        checks.update({name: task.result() for name, task in tasks.items()})
    except* Exception as eg:
        for exc in eg.exceptions:
            logger.warning("Health check task failed", extra={"error": str(exc)})

    failing = [name for name, check in checks.items() if check["status"] in ("unhealthy", "error")]
    body = {
        "status": "unhealthy" if failing else "healthy",
        "checks": checks,
        "timestamp": utc_now().isoformat(),
    }
    if failing:
        logger.warning("Readiness check failed", extra={"unhealthy": failing})
        raise HTTPException(status_code=503, detail=body)
    return body
