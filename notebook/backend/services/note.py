"""
Note Service.

Business logic layer for notes. Enforces ownership and content rules,
validates note scopes against the platform directory, and queues the
note domain events. Queued events go out through publish_events once
the request transaction has committed; see commit().
"""

from typing import Any
from uuid import uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from notebook.backend.core.exceptions import (
    CourseNotVisibleError,
    EmptyFieldError,
    ForbiddenError,
    ModuleNotVisibleError,
    NotEnrolledError,
    NotFoundError,
    ScopeMismatchError,
)
from notebook.backend.core.utils import utc_now
from notebook.backend.events.publishers import NoteEventPublisher
from notebook.backend.models.note import Note
from notebook.backend.repositories.note import NoteRepository
from notebook.backend.repositories.platform import (
    CourseModuleRepository,
    CourseRepository,
    EnrolmentRepository,
    UserRepository,
)
from notebook.backend.schemas.note import NoteDetail
from notebook.backend.services.base import BaseService
from notebook.backend.services.scope import build_tags, context_name, normalize_scope, render_subject


class NoteService(BaseService):
    """
    Service for the note lifecycle.

    Every operation takes the acting user explicitly as caller_id; the
    caller must be the author of any note it touches.
    """

    def __init__(
        self,
        session: AsyncSession,
        publisher: NoteEventPublisher | None = None,
        correlation_id: str | None = None,
    ) -> None:
        super().__init__(session)
        self.repo = NoteRepository(session)
        self.courses = CourseRepository(session)
        self.modules = CourseModuleRepository(session)
        self.users = UserRepository(session)
        self.enrolments = EnrolmentRepository(session)
        self.events = publisher or NoteEventPublisher()
        self.correlation_id = correlation_id or str(uuid4())
        self._pending_events: list[tuple[str, tuple]] = []

    # Events

    def _queue_event(self, name: str, *args: Any) -> None:
        """Hold a NoteEventPublisher call until publish_events."""
        self._pending_events.append((name, args))

    async def publish_events(self) -> int:
        """
        Publish the events queued by earlier operations, in order.

        Call once the transaction holding the writes has committed. A
        failed publish is logged and skipped; the committed write stands.

        Returns:
            Number of events published
        """
        pending, self._pending_events = self._pending_events, []
        published = 0
        for name, args in pending:
            try:
                await getattr(self.events, name)(*args, correlation_id=self.correlation_id)
            except Exception as e:
                self._logger.error(
                    "Event publish failed",
                    extra={
                        "service": type(self).__name__,
                        "event_name": name,
                        "correlation_id": self.correlation_id,
                        "error": str(e),
                    },
                )
                continue
            published += 1
        return published

    async def commit(self) -> None:
        """Commit the session, then publish what the committed writes queued."""
        await self.session.commit()
        await self.publish_events()

    @staticmethod
    def _ensure_content(body: str, subject: str) -> tuple[str, str]:
        """Trim body and subject; body is checked first."""
        body = (body or "").strip()
        subject = (subject or "").strip()
        if not body:
            raise EmptyFieldError("body")
        if not subject:
            raise EmptyFieldError("subject")
        return body, subject

    async def _get_owned(self, caller_id: int, note_id: int) -> Note:
        note = await self.repo.get_by_id_or_none(note_id)
        if note is None:
            raise NotFoundError(f"Note {note_id} not found")
        if note.author_id != caller_id:
            self._log_operation(
                "Note access denied",
                note_id=note_id,
                caller_id=caller_id,
            )
            raise ForbiddenError()
        return note

    async def _detail(self, note: Note) -> NoteDetail:
        courses = await self.courses.get_many([note.course_id] if note.course_id else [])
        modules = await self.modules.get_many([note.module_id] if note.module_id else [])
        users = await self.users.get_many([note.user_id] if note.user_id else [])
        return self._to_detail(note, courses, modules, users)

    @staticmethod
    def _to_detail(note: Note, courses: dict, modules: dict, users: dict) -> NoteDetail:
        detail = NoteDetail.model_validate(note)
        detail.context_name = context_name(note)
        detail.tags = build_tags(
            note,
            courses.get(note.course_id),
            modules.get(note.module_id),
            users.get(note.user_id),
        )
        return detail

    async def _resolve_create_scope(
        self,
        user_id: int,
        course_id: int,
        module_id: int,
    ) -> dict:
        """
        Validate a scope against the directory and collect cached names.

        Returns:
            Note column values for the scope
        """
        scope = normalize_scope(user_id, course_id, module_id)
        user_id, course_id, module_id = scope.user_id, scope.course_id, scope.module_id
        course_name = ""
        module_name = ""

        if module_id:
            module = await self.modules.get_by_id_or_none(module_id)
            if module is None:
                raise NotFoundError(f"Course module {module_id} not found")
            if not module.visible:
                raise ModuleNotVisibleError()
            if course_id != module.course_id:
                raise ScopeMismatchError()
            module_name = module.name

        if course_id:
            course = await self.courses.get_by_id_or_none(course_id)
            if course is None:
                raise NotFoundError(f"Course {course_id} not found")
            if not course.visible:
                raise CourseNotVisibleError()
            course_name = course.short_name

        if user_id:
            if not await self.users.exists(user_id):
                raise NotFoundError(f"User {user_id} not found")
            if course_id and not await self.enrolments.is_enrolled(course_id, user_id):
                raise NotEnrolledError()

        return {
            "user_id": user_id,
            "course_id": course_id,
            "module_id": module_id,
            "course_name": course_name,
            "module_name": module_name,
        }

    async def create_note(
        self,
        caller_id: int,
        body: str,
        subject: str,
        user_id: int = 0,
        course_id: int = 0,
        module_id: int = 0,
        attachment_area_id: int = 0,
    ) -> int:
        """
        Create a note owned by the caller.

        Args:
            caller_id: Acting user, becomes the author
            body: Note body (HTML)
            subject: Note subject line
            user_id: Related user, 0 for none; forces module_id to 0
            course_id: Course, 0 for none
            module_id: Course module, 0 for none
            attachment_area_id: Editor draft area holding embedded files

        Returns:
            Id of the new note

        Raises:
            EmptyFieldError: If body or subject is empty after trimming
            NotFoundError: If the course, module or user does not exist
            CourseNotVisibleError: If the course is hidden
            ModuleNotVisibleError: If the module is hidden
            ScopeMismatchError: If the module is not in the course
            NotEnrolledError: If the related user is not enrolled in the course
        """
        self._ensure_enabled()
        body, subject = self._ensure_content(body, subject)
        scope = await self._resolve_create_scope(user_id, course_id, module_id)

        now = utc_now()
        note = await self._execute_db_operation(
            "create_note",
            self.repo.create(
                author_id=caller_id,
                subject=subject,
                body=body,
                attachment_area_id=attachment_area_id,
                created_at=now,
                last_modified_at=now,
                **scope,
            ),
        )

        self._log_operation(
            "Note created",
            note_id=note.id,
            author_id=caller_id,
            course_id=note.course_id,
            module_id=note.module_id,
            user_id=note.user_id,
        )
        self._queue_event("note_created", note)
        return note.id

    async def read_note(self, caller_id: int, note_id: int) -> NoteDetail:
        """
        Read one of the caller's notes.

        Raises:
            NotFoundError: If the note does not exist
            ForbiddenError: If the caller is not the author
        """
        self._ensure_enabled()
        note = await self._get_owned(caller_id, note_id)
        self._queue_event("note_viewed", note.id, note.author_id)
        return await self._detail(note)

    async def note_viewed(self, caller_id: int, note_id: int) -> bool:
        """Record that the author viewed a note. Safe to repeat."""
        self._ensure_enabled()
        note = await self._get_owned(caller_id, note_id)
        self._queue_event("note_viewed", note.id, note.author_id)
        return True

    async def update_note(
        self,
        caller_id: int,
        note_id: int,
        body: str,
        subject: str,
        attachment_area_id: int = 0,
    ) -> bool:
        """
        Replace the subject and body of a note. The scope does not change.

        Raises:
            NotFoundError: If the note does not exist
            ForbiddenError: If the caller is not the author
            EmptyFieldError: If body or subject is empty after trimming
        """
        self._ensure_enabled()
        note = await self._get_owned(caller_id, note_id)
        body, subject = self._ensure_content(body, subject)

        note = await self._execute_db_operation(
            "update_note",
            self.repo.update(
                note.id,
                body=body,
                subject=subject,
                attachment_area_id=attachment_area_id,
                last_modified_at=utc_now(),
            ),
        )

        self._log_operation("Note updated", note_id=note.id, author_id=caller_id)
        self._queue_event("note_updated", note)
        return True

    async def delete_note(self, caller_id: int, note_id: int) -> bool:
        """
        Delete one of the caller's notes.

        Raises:
            NotFoundError: If the note does not exist
            ForbiddenError: If the caller is not the author
        """
        return await self.delete_notes(caller_id, [note_id])

    async def delete_notes(self, caller_id: int, note_ids: list[int]) -> bool:
        """
        Delete several of the caller's notes, all or nothing.

        Every id is checked before anything is deleted; the first missing
        or foreign note aborts the whole call.

        Raises:
            NotFoundError: If any note does not exist
            ForbiddenError: If the caller is not the author of any note
        """
        self._ensure_enabled()
        ids = list(dict.fromkeys(note_ids))
        notes = [await self._get_owned(caller_id, note_id) for note_id in ids]

        for note in notes:
            await self._execute_db_operation("delete_note", self.repo.delete(note.id))

        self._log_operation("Notes deleted", note_ids=ids, author_id=caller_id)
        for note_id in ids:
            self._queue_event("note_deleted", note_id, caller_id)
        return True

    async def list_notes(
        self,
        caller_id: int,
        user_id: int = 0,
        course_id: int = 0,
        module_id: int = 0,
    ) -> list[NoteDetail]:
        """
        List all of the caller's notes, most relevant to the scope first.

        Raises:
            NotFoundError: If module_id names an unknown module
        """
        self._ensure_enabled()
        ranked = await self.repo.list_ranked(caller_id, user_id, course_id, module_id)
        notes = [row.note for row in ranked]

        courses = await self.courses.get_many(n.course_id for n in notes if n.course_id)
        modules = await self.modules.get_many(n.module_id for n in notes if n.module_id)
        users = await self.users.get_many(n.user_id for n in notes if n.user_id)

        self._log_debug(
            "Notes listed",
            caller_id=caller_id,
            scope=(user_id, course_id, module_id),
            count=len(notes),
        )
        return [self._to_detail(note, courses, modules, users) for note in notes]

    async def form_subject(
        self,
        caller_id: int,
        user_id: int = 0,
        course_id: int = 0,
        module_id: int = 0,
    ) -> str:
        """
        Default subject line for the caller's next note in a scope.

        The line counts the notes already in exactly this scope, so the
        third note on a module proposes "Note 3 of the activity ...".
        """
        self._ensure_enabled()
        scope = normalize_scope(user_id, course_id, module_id)
        name = ""

        if scope.module_id:
            module = await self.modules.get_by_id(scope.module_id)
            scope = scope.model_copy(update={"course_id": module.course_id})
            name = module.name
        elif scope.user_id:
            user = await self.users.get_by_id(scope.user_id)
            name = user.full_name
        elif scope.course_id:
            course = await self.courses.get_by_id(scope.course_id)
            name = course.short_name

        count = await self.repo.count_in_scope(
            caller_id, scope.user_id, scope.course_id, scope.module_id,
        )
        return render_subject(count + 1, scope, name)
