"""
Unit Test Fixtures.

Fixtures for unit tests - external dependencies are mocked.
Unit tests should be fast and isolated; the few that need a database
use the in-memory SQLite fixtures from the root conftest.
"""

import asyncio
from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from notebook.backend.core.config_schema import (
    NotebookSchema,
    NotebookSubjectsSchema,
    NotebookUrlsSchema,
)
from notebook.backend.schemas.note import NoteDetail


# =============================================================================
# Database Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_db_session() -> AsyncMock:
    """
    Mock database session for unit tests.

    Usage:
        def test_service(mock_db_session: AsyncMock):
            service = NoteService(mock_db_session)
    """
    session = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.execute = AsyncMock()
    session.add = MagicMock()
    session.delete = AsyncMock()
    return session


# =============================================================================
# Event Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_publisher() -> MagicMock:
    """Mock NoteEventPublisher with awaitable methods."""
    publisher = MagicMock()
    publisher.note_created = AsyncMock()
    publisher.note_viewed = AsyncMock()
    publisher.note_updated = AsyncMock()
    publisher.note_deleted = AsyncMock()
    return publisher


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def notebook_settings() -> NotebookSchema:
    """Notebook presentation settings with fixed values."""
    return NotebookSchema(
        frontpage_course_id=1,
        course_profile_path="/user/view.php",
        urls=NotebookUrlsSchema(
            course="/course/view.php?id={id}",
            module="/mod/view.php?id={id}",
            profile="/user/profile.php?id={id}",
        ),
        subjects=NotebookSubjectsSchema(
            site="Note {count}",
            course="Note {count} of the course {name}",
            module="Note {count} of the activity {name}",
            user="Note {count} of the user {name}",
        ),
    )


# =============================================================================
# Drawer Fixtures
# =============================================================================


def make_note_detail(note_id: int, **overrides: Any) -> NoteDetail:
    """Build a NoteDetail as the API would return it."""
    values = {
        "id": note_id,
        "subject": f"Note {note_id}",
        "body": f"<p>Body {note_id}</p>",
        "user_id": 0,
        "course_id": 0,
        "module_id": 0,
        "course_name": "",
        "module_name": "",
        "created_at": datetime(2026, 1, 1, 12, 0, 0),
        "last_modified_at": datetime(2026, 1, 1, 12, 0, 0),
    }
    values.update(overrides)
    return NoteDetail(**values)


class FakeNotebookClient:
    """
    In-memory stand-in for NotebookClient.

    Keeps notes in insertion order, newest last, and lists them newest
    first. Set fail_next to make the next call raise, and delay to make
    every call yield to the event loop before answering.
    """

    def __init__(self, notes: list[NoteDetail] | None = None) -> None:
        self.notes: dict[int, NoteDetail] = {n.id: n for n in notes or []}
        self.next_id = max(self.notes, default=0) + 1
        self.calls: list[tuple[str, Any]] = []
        self.fail_next: Exception | None = None
        self.delay = 0.0

    async def _step(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error

    async def list_notes(self, scope, limit=20, offset=0):
        self.calls.append(("list_notes", (scope, limit, offset)))
        await self._step()
        ordered = sorted(self.notes.values(), key=lambda n: n.id, reverse=True)
        return ordered[offset:offset + limit], len(ordered)

    async def form_subject(self, scope):
        self.calls.append(("form_subject", scope))
        await self._step()
        return f"Note {len(self.notes) + 1}"

    async def create_note(self, scope, subject, body, attachment_area_id=0):
        self.calls.append(("create_note", (scope, subject, body)))
        await self._step()
        note_id = self.next_id
        self.next_id += 1
        self.notes[note_id] = make_note_detail(note_id, subject=subject, body=body)
        return note_id

    async def read_note(self, note_id):
        self.calls.append(("read_note", note_id))
        await self._step()
        return self.notes[note_id]

    async def update_note(self, note_id, subject, body, attachment_area_id=0):
        self.calls.append(("update_note", (note_id, subject, body)))
        await self._step()
        self.notes[note_id] = self.notes[note_id].model_copy(update={"subject": subject, "body": body})
        return True

    async def delete_notes(self, note_ids):
        self.calls.append(("delete_notes", list(note_ids)))
        await self._step()
        for note_id in note_ids:
            del self.notes[note_id]
        return True

    def called(self, name: str) -> list[Any]:
        return [args for call, args in self.calls if call == name]


@pytest.fixture
def note_detail():
    """Provide the NoteDetail builder."""
    return make_note_detail


@pytest.fixture
def fake_client_cls() -> type[FakeNotebookClient]:
    """Provide the fake client class for tests that need custom contents."""
    return FakeNotebookClient


@pytest.fixture
def fake_client() -> FakeNotebookClient:
    """Fake client preloaded with three notes."""
    return FakeNotebookClient([make_note_detail(i) for i in (1, 2, 3)])
