"""
Base Service.

Shared plumbing for notebook services: the session, the notebook
feature switch, mapping of driver errors and service-tagged logging.

Usage:
    class NoteService(BaseService):
        async def delete_note(self, caller_id: int, note_id: int) -> bool:
            self._ensure_enabled()
            await self._execute_db_operation("delete_note", self.repo.delete(note_id))
"""

from collections.abc import Awaitable
from typing import Any, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notebook.backend.core.config import get_app_config
from notebook.backend.core.exceptions import DatabaseError, NotebookDisabledError
from notebook.backend.core.logging import get_logger

T = TypeVar("T")


class BaseService:
    """
    Base class for services that work inside one request session.

    The session is owned by the caller (the request dependency or a
    maintenance transaction); services flush and leave the commit to the caller.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._logger = get_logger(type(self).__module__)

    @property
    def session(self) -> AsyncSession:
        return self._session

    def _ensure_enabled(self) -> None:
        """Raise NotebookDisabledError while features.notebook_enabled is off."""
        if not get_app_config().features.notebook_enabled:
            raise NotebookDisabledError()

    async def _execute_db_operation(self, operation: str, coro: Awaitable[T]) -> T:
        """
        Await a repository call, surfacing driver failures as DatabaseError.

        Application errors raised by the repository (NotFoundError, ...)
        pass through unchanged.
        """
        try:
            return await coro
        except SQLAlchemyError as e:
            self._logger.error(
                "Database error",
                extra={"service": type(self).__name__, "operation": operation, "error": str(e)},
            )
            raise DatabaseError(f"Database operation failed: {operation}") from e

    def _log_operation(self, message: str, **context: Any) -> None:
        self._logger.info(message, extra={"service": type(self).__name__, **context})

    def _log_debug(self, message: str, **context: Any) -> None:
        self._logger.debug(message, extra={"service": type(self).__name__, **context})
