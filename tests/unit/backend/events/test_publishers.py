"""Unit tests for note event publishers."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from notebook.backend.events.publishers import NoteEventPublisher
from notebook.backend.models.note import Note


def _config(publish_enabled: bool) -> MagicMock:
    config = MagicMock()
    config.features.events_publish_enabled = publish_enabled
    return config


@pytest.fixture
def note() -> Note:
    return Note(id=10, author_id=1, user_id=0, course_id=7, module_id=311)


class TestNoteEventPublisher:
    @pytest.mark.asyncio
    async def test_created_payload_omits_course(self, note):
        """Created events carry the module and related user but never the course."""
        mock_broker = AsyncMock()

        with patch(
            "notebook.backend.core.config.get_app_config",
            return_value=_config(True),
        ), patch(
            "notebook.backend.events.broker.get_event_broker",
            return_value=mock_broker,
        ):
            await NoteEventPublisher().note_created(note, correlation_id="req-1")

        payload = mock_broker.publish.call_args[0][0]
        assert mock_broker.publish.call_args[1]["stream"] == "notebook:note-created"
        assert payload["event_type"] == "notebook.note.created"
        assert payload["correlation_id"] == "req-1"
        assert payload["payload"] == {
            "note_id": 10,
            "author_id": 1,
            "related_user_id": 0,
            "module_id": 311,
        }

    @pytest.mark.asyncio
    async def test_deleted_payload(self):
        mock_broker = AsyncMock()

        with patch(
            "notebook.backend.core.config.get_app_config",
            return_value=_config(True),
        ), patch(
            "notebook.backend.events.broker.get_event_broker",
            return_value=mock_broker,
        ):
            await NoteEventPublisher().note_deleted(10, 1, correlation_id="req-1")

        payload = mock_broker.publish.call_args[0][0]
        assert mock_broker.publish.call_args[1]["stream"] == "notebook:note-deleted"
        assert payload["payload"] == {"note_id": 10, "author_id": 1}

    @pytest.mark.asyncio
    async def test_skipped_when_publishing_disabled(self, note):
        mock_broker = AsyncMock()

        with patch(
            "notebook.backend.core.config.get_app_config",
            return_value=_config(False),
        ), patch(
            "notebook.backend.events.broker.get_event_broker",
            return_value=mock_broker,
        ):
            await NoteEventPublisher().note_updated(note, correlation_id="req-1")

        mock_broker.publish.assert_not_called()
