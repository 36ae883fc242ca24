"""
Note Model.

Database model for notebook notes.
"""

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notebook.backend.models.base import Base, IntIdMixin, TimestampMixin


class Note(IntIdMixin, TimestampMixin, Base):
    """
    Note database model.

    A note belongs to its author and is about one scope: the site
    (all ids zero), a related user, a course, or a course module.
    course_name and module_name cache the display names at the time the
    scope was assigned, so a note stays readable after its course or
    module is deleted and the id is reset to 0.
    """

    __tablename__ = "notebook_notes"
    __table_args__ = (
        Index("ix_notebook_notes_author_scope", "author_id", "course_id", "module_id", "user_id"),
    )

    author_id: Mapped[int] = mapped_column(nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(default=0, nullable=False, index=True)
    course_id: Mapped[int] = mapped_column(default=0, nullable=False, index=True)
    module_id: Mapped[int] = mapped_column(default=0, nullable=False, index=True)
    course_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    module_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    attachment_area_id: Mapped[int] = mapped_column(default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, author_id={self.author_id}, subject={self.subject!r})>"
