"""
Platform Directory Repository.

Read-only lookups against the host platform's users, courses, modules
and enrolments.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from notebook.backend.models.platform import (
    PlatformCourse,
    PlatformCourseModule,
    PlatformEnrolment,
    PlatformUser,
)
from notebook.backend.repositories.base import BaseRepository


class CourseRepository(BaseRepository[PlatformCourse]):
    """Repository for platform courses."""

    model = PlatformCourse


class CourseModuleRepository(BaseRepository[PlatformCourseModule]):
    """Repository for platform course modules."""

    model = PlatformCourseModule


class UserRepository(BaseRepository[PlatformUser]):
    """Repository for platform users."""

    model = PlatformUser


class EnrolmentRepository:
    """Enrolment checks. The table has a composite key, so no BaseRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def is_enrolled(self, course_id: int, user_id: int) -> bool:
        """Check whether the user holds an active enrolment in the course."""
        result = await self.session.execute(
            select(PlatformEnrolment.user_id).where(
                PlatformEnrolment.course_id == course_id,
                PlatformEnrolment.user_id == user_id,
                PlatformEnrolment.active == True,  # noqa: E712
            )
        )
        return result.scalar_one_or_none() is not None
