"""
Configuration Schemas.

Pydantic models for the notebook's YAML settings, one top-level schema
per file in config/settings/:

    ApplicationSchema  application.yaml
    DatabaseSchema     database.yaml
    LoggingSchema      logging.yaml
    FeaturesSchema     features.yaml
    EventsSchema       events.yaml

Every model forbids unknown keys, so a typo in a YAML file fails at
startup instead of silently falling back to a default.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Port = Annotated[int, Field(ge=1, le=65535)]
Positive = Annotated[int, Field(ge=1)]
Seconds = Annotated[int, Field(ge=1)]


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


# application.yaml

class ServerSchema(_Section):
    host: str
    port: Port


class CorsSchema(_Section):
    origins: list[str]


class PaginationSchema(_Section):
    default_limit: Positive
    max_limit: Positive

    @model_validator(mode="after")
    def _default_within_max(self) -> "PaginationSchema":
        if self.default_limit > self.max_limit:
            raise ValueError("default_limit exceeds max_limit")
        return self


class TimeoutsSchema(_Section):
    database: Seconds
    external_api: Seconds


def _require_placeholder(value: str, placeholder: str) -> str:
    if placeholder not in value:
        raise ValueError(f"template must contain {placeholder}")
    return value


class NotebookUrlsSchema(_Section):
    """Tag link templates; {id} is the scope id."""

    course: str
    module: str
    profile: str

    @field_validator("course", "module", "profile")
    @classmethod
    def _has_id(cls, value: str) -> str:
        return _require_placeholder(value, "{id}")


class NotebookSubjectsSchema(_Section):
    """Default subjects; {count} is the next note number, {name} the scope name."""

    site: str
    course: str
    module: str
    user: str

    @field_validator("site", "course", "module", "user")
    @classmethod
    def _has_count(cls, value: str) -> str:
        return _require_placeholder(value, "{count}")


class NotebookSchema(_Section):
    frontpage_course_id: Positive
    course_profile_path: str
    urls: NotebookUrlsSchema
    subjects: NotebookSubjectsSchema


class ApplicationSchema(_Section):
    name: str
    version: str
    description: str
    environment: Literal["development", "testing", "staging", "production"]
    api_prefix: str
    docs_enabled: bool
    server: ServerSchema
    cors: CorsSchema
    pagination: PaginationSchema
    timeouts: TimeoutsSchema
    notebook: NotebookSchema


# database.yaml

class RedisSchema(_Section):
    host: str
    port: Port
    db: int = Field(ge=0)


class DatabaseSchema(_Section):
    """Notes database; the password comes from config/.env."""

    host: str
    port: Port
    name: str
    user: str
    pool_size: Positive
    max_overflow: int = Field(ge=0)
    pool_timeout: Seconds
    pool_recycle: Seconds
    echo: bool
    echo_pool: bool
    redis: RedisSchema


# logging.yaml

class ConsoleHandlerSchema(_Section):
    enabled: bool


class FileHandlerSchema(_Section):
    enabled: bool
    path: str
    max_bytes: Positive
    backup_count: int = Field(ge=0)


class HandlersSchema(_Section):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_Section):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    format: Literal["json", "console"]
    handlers: HandlersSchema


# features.yaml

class FeaturesSchema(_Section):
    notebook_enabled: bool
    events_enabled: bool
    events_publish_enabled: bool


# events.yaml

class EventBrokerSchema(_Section):
    type: Literal["redis"]


class EventStreamsSchema(_Section):
    default_maxlen: Positive


class ConsumerCircuitBreakerSchema(_Section):
    fail_max: Positive
    timeout_duration: Seconds


class ConsumerRetrySchema(_Section):
    max_attempts: Positive
    backoff_multiplier: Positive
    backoff_max: Seconds


class ConsumerConfigSchema(_Section):
    """Subscription and resilience settings for one consumer group."""

    streams: list[str] = Field(min_length=1)
    group: str
    circuit_breaker: ConsumerCircuitBreakerSchema
    retry: ConsumerRetrySchema
    processing_timeout: Seconds


class EventDlqSchema(_Section):
    enabled: bool
    stream_prefix: str


class EventsSchema(_Section):
    broker: EventBrokerSchema
    streams: EventStreamsSchema
    consumers: dict[str, ConsumerConfigSchema]
    dlq: EventDlqSchema
