"""
SQLAlchemy Declarative Base.

Notebook tables and the read-only platform directory tables share one
metadata, so a single create_all builds a complete development schema.
"""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from notebook.backend.core.utils import utc_now


class Base(DeclarativeBase):
    pass


class IntIdMixin:
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)


class TimestampMixin:
    """
    created_at and last_modified_at, both naive UTC.

    There is no onupdate hook: a note's modification time changes only
    when its text does, and the service stamps it.
    """

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False, index=True)
    last_modified_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
