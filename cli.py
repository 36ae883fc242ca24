#!/usr/bin/env python3
"""
Notebook Service CLI.

    python cli.py --service server --verbose
    python cli.py --service server --action status
    python cli.py --service event-worker
    python cli.py --service init-db
    python cli.py --service notes --user-id 42 --module-id 311
    python cli.py --service health | config | info

The server runs under uvicorn and the event worker under the FastStream
CLI, each as a child process. --action only applies to the server,
which is located by the port it listens on.
"""

import asyncio
import os
import signal
import subprocess
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn

import click
import httpx
import structlog

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from notebook.backend.core.logging import get_logger, setup_logging

SERVICES = ("server", "event-worker", "health", "config", "info", "init-db", "notes")

logger = get_logger("cli")


def _fail(message: str, **context: Any) -> NoReturn:
    logger.error(message, extra=context)
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


def _app_config():
    from notebook.backend.core.config import get_app_config

    try:
        return get_app_config()
    except (FileNotFoundError, ValueError) as e:
        _fail("could not load config/settings", error=str(e))


def _run_child(name: str, cmd: list[str]) -> None:
    """Run a long-lived child process until it exits or Ctrl+C."""
    click.echo(f"Starting {name}, Ctrl+C to stop\n")
    try:
        subprocess.run(cmd, check=True)
    except KeyboardInterrupt:
        logger.info(f"{name} stopped")
    except subprocess.CalledProcessError as e:
        logger.error(f"{name} exited", extra={"exit_code": e.returncode})
        sys.exit(e.returncode)


def _pids_on_port(port: int) -> list[int]:
    result = subprocess.run(["lsof", "-ti", f":{port}"], capture_output=True, text=True)
    return [int(pid) for pid in result.stdout.split()]


def _server_lifecycle(action: str, port: int) -> bool:
    """Apply --action to a running server. True when nothing is left to start."""
    pids = _pids_on_port(port)
    listed = ", ".join(str(pid) for pid in pids)

    if action == "status":
        click.echo(f"Server running on port {port} (PID: {listed})." if pids else f"Server not running on port {port}.")
        return True

    if not pids:
        click.echo(f"No server running on port {port}.")
    for pid in pids:
        os.kill(pid, signal.SIGINT)
        logger.info("Sent SIGINT", extra={"pid": pid, "port": port})
    if pids:
        click.echo(f"Server on port {port} stopped (PID: {listed}).")

    if action == "restart":
        time.sleep(2)
        return False
    return True


def run_server(options: dict[str, Any]) -> None:
    server = _app_config().application.server
    host = options["host"] or server.host
    port = options["port"] or server.port

    if options["action"] != "start" and _server_lifecycle(options["action"], port):
        return

    cmd = [sys.executable, "-m", "uvicorn", "notebook.backend.main:app", "--host", host, "--port", str(port)]
    if options["reload"]:
        cmd.append("--reload")
    logger.info("Starting server", extra={"host": host, "port": port, "reload": options["reload"]})
    click.echo(f"Notebook API at http://{host}:{port}")
    _run_child("server", cmd)


def run_event_worker(options: dict[str, Any]) -> None:
    if not _app_config().features.events_enabled:
        _fail("events_enabled is false in features.yaml")
    _run_child(
        "event worker",
        [sys.executable, "-m", "faststream", "run", "--factory", "notebook.backend.events.broker:create_event_app"],
    )


def _health_checks() -> list[tuple[str, Callable[[], str | None]]]:
    def yaml_config() -> str:
        return _app_config().application.name

    def secrets() -> None:
        from notebook.backend.core.config import get_settings

        get_settings()

    def api() -> str:
        from notebook.backend.main import get_app

        return get_app().title

    def models() -> str:
        from notebook.backend.models.note import Note
        from notebook.backend.models.platform import PlatformCourse  # noqa: F401

        return Note.__tablename__

    return [
        ("YAML configuration", yaml_config),
        ("Secrets (config/.env)", secrets),
        ("FastAPI application", api),
        ("Database models", models),
    ]


def check_health(options: dict[str, Any]) -> None:
    """Import-level health: config, secrets, app factory and models."""
    failed = 0
    for name, check in _health_checks():
        try:
            detail = check()
        except Exception as e:
            failed += 1
            logger.warning("Health check failed", extra={"check": name, "error": str(e)})
            click.echo(f"  {click.style('FAIL', fg='red')}  {name} ({e})")
            continue
        suffix = f" ({detail})" if detail else ""
        click.echo(f"  {click.style('PASS', fg='green')}  {name}{suffix}")

    if failed:
        click.echo(click.style(f"\n{failed} check(s) failed.", fg="yellow"))
        sys.exit(1)
    click.echo(click.style("\nAll checks passed.", fg="green"))


def _echo_mapping(values: dict[str, Any], indent: int = 2) -> None:
    for key, value in values.items():
        if isinstance(value, dict):
            click.echo(f"{' ' * indent}{key}:")
            _echo_mapping(value, indent + 2)
        else:
            click.echo(f"{' ' * indent}{key}: {value}")


def show_config(options: dict[str, Any]) -> None:
    config = _app_config()
    for section in ("application", "database", "logging", "features", "events"):
        click.echo(f"\n[{section}]")
        _echo_mapping(getattr(config, section).model_dump())


def init_db(options: dict[str, Any]) -> None:
    """
    Create every missing table: the notebook tables and the platform_* directory tables.

    The directory tables are normally owned by the host platform; create_all
    skips any that already exist.
    """
    from notebook.backend.core.database import create_tables, dispose_engine

    async def create() -> None:
        try:
            await create_tables()
        finally:
            await dispose_engine()

    try:
        asyncio.run(create())
    except Exception as e:
        _fail(f"table creation failed: {e}")
    click.echo("Tables created.")


def list_notes(options: dict[str, Any]) -> None:
    """Print a user's notes in ranked order, fetched from the running API."""
    from notebook.backend.schemas.scope import Scope
    from notebook.drawer.client import NotebookApiError, NotebookClient

    caller_id = options["user_id"]
    if not caller_id:
        _fail("--user-id is required for notes")

    scope = Scope(
        user_id=options["related_user_id"],
        course_id=options["course_id"],
        module_id=options["module_id"],
    )

    async def fetch():
        client = NotebookClient(caller_id=caller_id)
        try:
            return await client.list_notes(scope, limit=100)
        finally:
            await client.close()

    try:
        notes, total = asyncio.run(fetch())
    except NotebookApiError as e:
        _fail(f"{e.message} ({e.code})")
    except httpx.HTTPError as e:
        _fail(f"notebook API unreachable: {e}")

    click.echo(f"{total} note(s) for user {caller_id}")
    for note in notes:
        tags = ", ".join(tag.title for tag in note.tags)
        click.echo(f"  #{note.id:<6} [{note.context_name}] {note.subject}" + (f"  ({tags})" if tags else ""))


def show_info(options: dict[str, Any]) -> None:
    app = _app_config().application
    click.echo(f"{app.name} {app.version}")
    click.echo(app.description)
    click.echo("\nServices (--service): " + ", ".join(SERVICES))
    click.echo("Server actions (--action): start, stop, restart, status")


HANDLERS: dict[str, Callable[[dict[str, Any]], None]] = {
    "server": run_server,
    "event-worker": run_event_worker,
    "health": check_health,
    "config": show_config,
    "info": show_info,
    "init-db": init_db,
    "notes": list_notes,
}


@click.command()
@click.option("--service", "-s", type=click.Choice(SERVICES), default="info", help="What to run.")
@click.option(
    "--action", "-a",
    type=click.Choice(["start", "stop", "restart", "status"]),
    default="start",
    help="Server lifecycle action.",
)
@click.option("--verbose", "-v", is_flag=True, help="INFO level logging.")
@click.option("--debug", "-d", is_flag=True, help="DEBUG level logging.")
@click.option("--host", default=None, help="Server host.")
@click.option("--port", default=None, type=int, help="Server port.")
@click.option("--reload", is_flag=True, help="Auto-reload (server only).")
@click.option("--user-id", default=None, type=int, help="Acting user (notes only).")
@click.option("--related-user-id", default=0, type=int, help="Related user scope (notes only).")
@click.option("--course-id", default=0, type=int, help="Course scope (notes only).")
@click.option("--module-id", default=0, type=int, help="Course module scope (notes only).")
def main(service: str, verbose: bool, debug: bool, **options: Any) -> None:
    """Run a notebook service or maintenance command."""
    if not (PROJECT_ROOT / ".project_root").exists():
        click.echo(click.style("Error: .project_root not found. Run from project root.", fg="red"), err=True)
        sys.exit(1)

    level = "DEBUG" if debug else "INFO" if verbose else "WARNING"
    setup_logging(level=level, format_type="console")
    structlog.contextvars.bind_contextvars(source="cli")
    logger.debug("CLI invoked", extra={"service": service, "log_level": level})

    HANDLERS[service](options)


if __name__ == "__main__":
    main()
