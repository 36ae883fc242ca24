"""
Host Platform Directory Models.

Read-only mappings of the learning platform's users, courses, course
modules and enrolments. The host platform owns these tables; the
notebook only queries them to validate and label note scopes.
"""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from notebook.backend.models.base import Base


class PlatformUser(Base):
    """A platform user account."""

    __tablename__ = "platform_users"

    id: Mapped[int] = mapped_column(primary_key=True)
    first_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), default="", nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class PlatformCourse(Base):
    """A course on the platform."""

    __tablename__ = "platform_courses"

    id: Mapped[int] = mapped_column(primary_key=True)
    short_name: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    visible: Mapped[bool] = mapped_column(default=True, nullable=False)


class PlatformCourseModule(Base):
    """An activity or resource placed inside a course."""

    __tablename__ = "platform_course_modules"

    id: Mapped[int] = mapped_column(primary_key=True)
    course_id: Mapped[int] = mapped_column(
        ForeignKey("platform_courses.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    visible: Mapped[bool] = mapped_column(default=True, nullable=False)


class PlatformEnrolment(Base):
    """Enrolment of a user in a course."""

    __tablename__ = "platform_enrolments"

    course_id: Mapped[int] = mapped_column(
        ForeignKey("platform_courses.id"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("platform_users.id"),
        primary_key=True,
    )
    active: Mapped[bool] = mapped_column(default=True, nullable=False)
