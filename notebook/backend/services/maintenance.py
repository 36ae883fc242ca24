"""
Scope Maintenance Service.

Keeps note scopes in step with the platform directory. When a course or
module is renamed, the cached name on its notes is rewritten. When it is
deleted, the scope id on its notes is reset to 0 and the cached name is
kept, so the notes stay readable.

Each change is one set-based UPDATE in its own transaction. Failures are
logged and reported as False; they never propagate to the event bus.
"""

from collections.abc import Awaitable, Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notebook.backend.core.database import get_session_factory
from notebook.backend.core.logging import get_logger
from notebook.backend.repositories.note import NoteRepository

logger = get_logger(__name__)


class ScopeMaintenanceService:
    """Applies platform course and module changes to stored notes."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
        self._session_factory = session_factory or get_session_factory()

    async def _apply(
        self,
        operation: str,
        change: Callable[[NoteRepository], Awaitable[int]],
        **context: int | str,
    ) -> bool:
        async with self._session_factory() as session:
            try:
                rows = await change(NoteRepository(session))
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(
                    "Scope maintenance failed",
                    extra={"operation": operation, "error": str(e), **context},
                )
                return False

        logger.info(
            "Scope maintenance applied",
            extra={"operation": operation, "rows": rows, **context},
        )
        return True

    async def course_renamed(self, course_id: int, short_name: str) -> bool:
        """Rewrite the cached course name on the course's notes."""
        return await self._apply(
            "course_renamed",
            lambda repo: repo.rename_course(course_id, short_name),
            course_id=course_id,
        )

    async def module_renamed(self, module_id: int, name: str) -> bool:
        """Rewrite the cached module name on the module's notes."""
        return await self._apply(
            "module_renamed",
            lambda repo: repo.rename_module(module_id, name),
            module_id=module_id,
        )

    async def course_deleted(self, course_id: int) -> bool:
        """Orphan the course's notes."""
        return await self._apply(
            "course_deleted",
            lambda repo: repo.orphan_course(course_id),
            course_id=course_id,
        )

    async def module_deleted(self, module_id: int) -> bool:
        """Orphan the module's notes."""
        return await self._apply(
            "module_deleted",
            lambda repo: repo.orphan_module(module_id),
            module_id=module_id,
        )
