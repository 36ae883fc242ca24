"""
Configuration Management.

Settings come from config/settings/*.yaml, secrets from config/.env.
Nothing else is read at runtime except the two environment overrides
below.

Secrets (.env):
    DB_PASSWORD, REDIS_PASSWORD

Settings (YAML), one validated section each:
    application.yaml   - App identity, server, cors, pagination, notebook presentation
    database.yaml      - Database and Redis connection settings
    logging.yaml       - Logging configuration
    features.yaml      - Feature flags (notebook_enabled, events_enabled, events_publish_enabled)
    events.yaml        - Event bus broker, consumers, dead letter queue

Environment overrides:
    NOTEBOOK_ROOT      - Project root, when not running inside the checkout
    NOTEBOOK_API_URL   - Backend base URL for the drawer client and the CLI
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from notebook.backend.core.config_schema import (
    ApplicationSchema,
    DatabaseSchema,
    EventsSchema,
    FeaturesSchema,
    LoggingSchema,
    NotebookSchema,
)

ROOT_MARKER = ".project_root"

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def find_project_root() -> Path:
    """
    Locate the directory holding the .project_root marker.

    NOTEBOOK_ROOT wins when it points at a marked directory; otherwise
    the search walks up from the working directory.
    """
    override = os.environ.get("NOTEBOOK_ROOT")
    if override and (Path(override) / ROOT_MARKER).exists():
        return Path(override)

    for directory in (Path.cwd(), *Path.cwd().parents):
        if (directory / ROOT_MARKER).exists():
            return directory
    raise RuntimeError(f"Project root not found. Ensure {ROOT_MARKER} exists or set NOTEBOOK_ROOT.")


def validate_project_root() -> Path:
    """Entry-script guard: exit with a readable message when no root is found."""
    try:
        return find_project_root()
    except RuntimeError as e:
        raise SystemExit(f"Error: {e}") from e


def load_yaml_config(filename: str) -> dict[str, Any]:
    """Load a YAML configuration file from config/settings/."""
    config_path = find_project_root() / "config" / "settings" / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


class Settings(BaseSettings):
    """Secrets loaded from config/.env. Only passwords."""

    db_password: str
    redis_password: str = ""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _load_section(schema_cls: type[SchemaT], filename: str) -> SchemaT:
    raw = load_yaml_config(filename)
    try:
        return schema_cls.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {filename}:\n{e}") from e


@dataclass(frozen=True)
class AppConfig:
    """
    Validated application configuration, one attribute per YAML file.

    Build it with AppConfig.load(); get_app_config() caches the result.
    """

    application: ApplicationSchema
    database: DatabaseSchema
    logging: LoggingSchema
    features: FeaturesSchema
    events: EventsSchema

    @classmethod
    def load(cls) -> "AppConfig":
        return cls(
            application=_load_section(ApplicationSchema, "application.yaml"),
            database=_load_section(DatabaseSchema, "database.yaml"),
            logging=_load_section(LoggingSchema, "logging.yaml"),
            features=_load_section(FeaturesSchema, "features.yaml"),
            events=_load_section(EventsSchema, "events.yaml"),
        )

    @property
    def notebook(self) -> NotebookSchema:
        """Notebook presentation settings (front page, tag URLs, subjects)."""
        return self.application.notebook


@lru_cache
def get_settings() -> Settings:
    """Get cached secrets. The .env file is optional; the environment also works."""
    return Settings(_env_file=str(find_project_root() / "config" / ".env"))


@lru_cache
def get_app_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig.load()


def get_database_url(async_driver: bool = True) -> str:
    """
    Build the PostgreSQL URL of the notes database.

    Args:
        async_driver: asyncpg for the service, plain postgresql for tooling
    """
    db = get_app_config().database
    driver = "postgresql+asyncpg" if async_driver else "postgresql"
    return f"{driver}://{db.user}:{get_settings().db_password}@{db.host}:{db.port}/{db.name}"


def get_redis_url() -> str:
    """Build the URL of the Redis instance carrying the event streams."""
    redis = get_app_config().database.redis
    return f"redis://:{get_settings().redis_password}@{redis.host}:{redis.port}/{redis.db}"


def get_server_base_url() -> tuple[str, float]:
    """
    Backend base URL and request timeout for API clients.

    Returns:
        Tuple of (base_url, timeout_seconds)
    """
    app = get_app_config().application
    base_url = os.environ.get("NOTEBOOK_API_URL") or f"http://{app.server.host}:{app.server.port}"
    return base_url.rstrip("/"), float(app.timeouts.external_api)
