"""
Centralized Logging Configuration.

structlog on top of the stdlib root logger, configured from
config/settings/logging.yaml. Every record is rendered as one JSON line
(console may use the coloured dev renderer) with these fields:

    timestamp, level, logger, event, func_name, lineno
    source      web, cli, drawer, api, events or internal; always set
                explicitly, never derived from the logger name
    request_id  inside an API request, bound by RequestContextMiddleware
    event_id    inside a consumed platform event, bound by EventContextMiddleware

Usage:
    from notebook.backend.core.logging import get_logger, log_with_source

    logger = get_logger(__name__)
    logger.info("Note created", extra={"note_id": note.id})
    log_with_source(logger, "drawer", "info", "Drawer opened", course_id=3)

All records go to a single rotating file, logs/system.jsonl; filter on
the source field.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.typing import Processor

from notebook.backend.core.config import find_project_root, get_app_config

VALID_SOURCES = frozenset({"web", "cli", "drawer", "api", "events", "internal", "unknown"})

# Third-party loggers that flood DEBUG output
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "httpx", "httpcore")


def _resolve_log_path(configured_path: str) -> Path:
    return find_project_root() / configured_path


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]


def _formatter(renderer: Processor, shared: list[Processor]) -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    enable_console: bool | None = None,
    enable_file_logging: bool | None = None,
) -> None:
    """
    (Re)configure logging for the process.

    Arguments left as None take their value from logging.yaml. Existing
    root handlers are replaced, so calling this twice is safe.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        format_type: "json" or "console" for the console handler; the file is always JSON
        enable_console: Write to stdout
        enable_file_logging: Write to the rotating JSONL file
    """
    config = get_app_config().logging
    level = level or config.level
    format_type = format_type or config.format
    if enable_console is None:
        enable_console = config.handlers.console.enabled
    if enable_file_logging is None:
        enable_file_logging = config.handlers.file.enabled

    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    json_formatter = _formatter(structlog.processors.JSONRenderer(), shared)

    handlers: list[logging.Handler] = []
    if enable_console:
        console = logging.StreamHandler(sys.stdout)
        if format_type == "console":
            console.setFormatter(_formatter(structlog.dev.ConsoleRenderer(colors=True), shared))
        else:
            console.setFormatter(json_formatter)
        handlers.append(console)

    if enable_file_logging:
        file_config = config.handlers.file
        log_path = _resolve_log_path(file_config.path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_path),
            maxBytes=file_config.max_bytes,
            backupCount=file_config.backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(json_formatter)
        handlers.append(file_handler)

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    root.handlers[:] = handlers

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)


def log_with_source(logger: Any, source: str, level: str, message: str, **kwargs: Any) -> None:
    """
    Log outside an API request with an explicit source.

    Sources outside VALID_SOURCES are recorded as "unknown".

    Raises:
        AttributeError: If level is not a logger method
    """
    log_method = getattr(logger, level.lower())
    log_method(message, source=source if source in VALID_SOURCES else "unknown", **kwargs)
