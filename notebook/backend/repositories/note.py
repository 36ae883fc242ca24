"""
Note Repository.

Data access layer for notes, including the tiered ranking query that
orders an author's notes by relevance to a (user, course, module) scope.
"""

from typing import NamedTuple

from sqlalchemy import Integer, func, literal, select, union_all, update
from sqlalchemy.ext.asyncio import AsyncSession

from notebook.backend.core.exceptions import NotFoundError
from notebook.backend.models.note import Note
from notebook.backend.models.platform import PlatformCourseModule
from notebook.backend.repositories.base import BaseRepository


class RankedNote(NamedTuple):
    """A note together with the relevance tier it was matched in."""

    note: Note
    rank: int


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note model.

    Inherits standard CRUD operations from BaseRepository
    and adds the ranking query and set-based scope maintenance.
    """

    model = Note

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)

    async def _module_course_id(self, module_id: int) -> int:
        result = await self.session.execute(
            select(PlatformCourseModule.course_id).where(PlatformCourseModule.id == module_id)
        )
        course_id = result.scalar_one_or_none()
        if course_id is None:
            raise NotFoundError(f"Course module {module_id} not found")
        return course_id

    async def _tier_conditions(
        self,
        user_id: int,
        course_id: int,
        module_id: int,
    ) -> list[tuple]:
        """
        Build the predicate list for each tier, most specific first.

        Each entry is a tuple of WHERE clauses; an empty tuple matches
        every note of the author and always closes the chain.
        """
        if module_id:
            module_course_id = await self._module_course_id(module_id)
            return [
                (Note.module_id == module_id,),
                (Note.module_id == 0, Note.course_id == module_course_id),
                (Note.module_id != 0, Note.course_id == module_course_id),
                (Note.module_id != 0,),
                (Note.course_id != 0,),
                (),
            ]
        if course_id and user_id:
            return [
                (Note.user_id == user_id, Note.course_id == course_id),
                (Note.user_id == user_id,),
                (Note.user_id != 0,),
                (),
            ]
        if course_id:
            return [
                (Note.course_id == course_id, Note.module_id == 0, Note.user_id == 0),
                (Note.course_id == course_id, (Note.module_id != 0) | (Note.user_id != 0)),
                (Note.course_id != 0,),
                (),
            ]
        if user_id:
            return [
                (Note.user_id == user_id, Note.course_id == 0),
                (Note.user_id == user_id, Note.course_id != 0),
                (Note.user_id != 0,),
                (),
            ]
        return [
            (Note.user_id == 0, Note.course_id == 0, Note.module_id == 0),
            (),
        ]

    async def list_ranked(
        self,
        author_id: int,
        user_id: int = 0,
        course_id: int = 0,
        module_id: int = 0,
    ) -> list[RankedNote]:
        """
        List all notes of an author ordered by relevance to a scope.

        The tiers are unioned as ranked sub-selects; a note matched by
        several tiers keeps its lowest rank. Order within a tier is
        newest first, with the id breaking exact timestamp ties.

        Args:
            author_id: Owner of the notes
            user_id: Related user of the current page, 0 for none
            course_id: Current course, 0 for none
            module_id: Current course module, 0 for none

        Returns:
            Every note of the author, each exactly once

        Raises:
            NotFoundError: If module_id names an unknown module
        """
        tiers = await self._tier_conditions(user_id, course_id, module_id)

        ranked = union_all(
            *[
                select(
                    Note.id.label("note_id"),
                    literal(rank, Integer).label("rank"),
                ).where(Note.author_id == author_id, *conditions)
                for rank, conditions in enumerate(tiers, start=1)
            ]
        ).subquery("tiers")

        best = (
            select(ranked.c.note_id, func.min(ranked.c.rank).label("rank"))
            .group_by(ranked.c.note_id)
            .subquery("best")
        )

        result = await self.session.execute(
            select(Note, best.c.rank)
            .join(best, best.c.note_id == Note.id)
            .order_by(best.c.rank.asc(), Note.created_at.desc(), Note.id.desc())
        )
        return [RankedNote(note, rank) for note, rank in result.all()]

    async def count_in_scope(
        self,
        author_id: int,
        user_id: int,
        course_id: int,
        module_id: int,
    ) -> int:
        """Count the author's notes on exactly this scope."""
        result = await self.session.execute(
            select(func.count())
            .select_from(Note)
            .where(
                Note.author_id == author_id,
                Note.user_id == user_id,
                Note.course_id == course_id,
                Note.module_id == module_id,
            )
        )
        return result.scalar_one()

    async def rename_course(self, course_id: int, short_name: str) -> int:
        """Rewrite the cached course name on every note in the course."""
        result = await self.session.execute(
            update(Note)
            .where(Note.course_id == course_id)
            .values(course_name=short_name)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def rename_module(self, module_id: int, name: str) -> int:
        """Rewrite the cached module name on every note on the module."""
        result = await self.session.execute(
            update(Note)
            .where(Note.module_id == module_id)
            .values(module_name=name)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def orphan_course(self, course_id: int) -> int:
        """Reset the course id of every note in the course, keeping its name."""
        result = await self.session.execute(
            update(Note)
            .where(Note.course_id == course_id)
            .values(course_id=0)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def orphan_module(self, module_id: int) -> int:
        """Reset the module id of every note on the module, keeping its name."""
        result = await self.session.execute(
            update(Note)
            .where(Note.module_id == module_id)
            .values(module_id=0)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
