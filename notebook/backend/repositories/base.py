"""
Base Repository.

Primary-key access shared by the note repository and the read-only
directory repositories. Writes flush but never commit; the caller owns
the transaction.
"""

from collections.abc import Iterable
from typing import Any, Generic, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from notebook.backend.core.exceptions import NotFoundError
from notebook.backend.models.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Keyed lookups and row writes for one mapped class.

        class CourseRepository(BaseRepository[PlatformCourse]):
            model = PlatformCourse
    """

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def _where_id(self, *ids: int) -> Select[tuple[ModelType]]:
        if len(ids) == 1:
            return select(self.model).where(self.model.id == ids[0])
        return select(self.model).where(self.model.id.in_(ids))

    async def get_by_id_or_none(self, id: int) -> ModelType | None:
        return (await self.session.execute(self._where_id(id))).scalar_one_or_none()

    async def get_by_id(self, id: int) -> ModelType:
        """
        Raises:
            NotFoundError: No row with this id
        """
        instance = await self.get_by_id_or_none(id)
        if instance is None:
            raise NotFoundError(f"{self.model.__name__} {id} not found")
        return instance

    async def get_many(self, ids: Iterable[int]) -> dict[int, ModelType]:
        """Rows for the given ids, keyed by id. Unknown ids are left out."""
        wanted = sorted({int(i) for i in ids})
        if not wanted:
            return {}
        rows = (await self.session.execute(self._where_id(*wanted))).scalars()
        return {row.id: row for row in rows}

    async def exists(self, id: int) -> bool:
        found = await self.session.execute(select(self.model.id).where(self.model.id == id))
        return found.first() is not None

    async def create(self, **values: Any) -> ModelType:
        instance = self.model(**values)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, id: int, **values: Any) -> ModelType:
        """
        Set mapped attributes on an existing row. Unknown keys are ignored.

        Raises:
            NotFoundError: No row with this id
        """
        instance = await self.get_by_id(id)
        for key, value in values.items():
            if hasattr(instance, key):
                setattr(instance, key, value)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, id: int) -> None:
        """
        Raises:
            NotFoundError: No row with this id
        """
        await self.session.delete(await self.get_by_id(id))
        await self.session.flush()
