"""Unit tests for the platform event consumer."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from notebook.backend.events.schemas import EventEnvelope

CONSUMER_MODULE = "notebook.backend.events.consumers.platform"


def _make_event_dict(**overrides) -> dict:
    """Create a valid platform event dict for testing."""
    base = {
        "event_id": "evt-123",
        "event_type": "platform.course.deleted",
        "event_version": 1,
        "timestamp": "2026-01-01T00:00:00",
        "source": "platform",
        "correlation_id": "req-abc",
        "trace_id": None,
        "payload": {"course_id": 7},
    }
    base.update(overrides)
    return base


@pytest.fixture
def mock_service():
    """Patch the maintenance service the consumer instantiates."""
    service = MagicMock()
    service.course_renamed = AsyncMock(return_value=True)
    service.course_deleted = AsyncMock(return_value=True)
    service.module_renamed = AsyncMock(return_value=True)
    service.module_deleted = AsyncMock(return_value=True)
    with patch(f"{CONSUMER_MODULE}.ScopeMaintenanceService", return_value=service):
        yield service


class TestHandlers:
    @pytest.mark.asyncio
    async def test_course_updated_renames(self, mock_service):
        from notebook.backend.events.consumers.platform import handle_course_updated

        data = _make_event_dict(
            event_type="platform.course.updated",
            payload={"course_id": 7, "short_name": "PHY102"},
        )
        await handle_course_updated(data)

        mock_service.course_renamed.assert_awaited_once_with(7, "PHY102")

    @pytest.mark.asyncio
    async def test_course_deleted_orphans(self, mock_service):
        from notebook.backend.events.consumers.platform import handle_course_deleted

        await handle_course_deleted(_make_event_dict())

        mock_service.course_deleted.assert_awaited_once_with(7)

    @pytest.mark.asyncio
    async def test_module_updated_renames(self, mock_service):
        from notebook.backend.events.consumers.platform import handle_module_updated

        data = _make_event_dict(
            event_type="platform.module.updated",
            payload={"module_id": 311, "name": "Quiz 2"},
        )
        await handle_module_updated(data)

        mock_service.module_renamed.assert_awaited_once_with(311, "Quiz 2")

    @pytest.mark.asyncio
    async def test_module_deleted_routes_stream(self):
        from notebook.backend.events.consumers.platform import handle_module_deleted

        data = _make_event_dict(
            event_type="platform.module.deleted",
            payload={"module_id": 311},
        )
        with patch(f"{CONSUMER_MODULE}._handle_event", new_callable=AsyncMock) as mock_handle:
            await handle_module_deleted(data)

        assert mock_handle.call_args[0][0] == "platform:module-deleted"
        assert isinstance(mock_handle.call_args[0][1], EventEnvelope)


class TestHandleEvent:
    @pytest.mark.asyncio
    async def test_routes_to_dlq_on_failure(self, mock_service):
        from notebook.backend.events.consumers.platform import _handle_event

        event = EventEnvelope(**_make_event_dict())

        with patch(
            f"{CONSUMER_MODULE}._apply_with_resilience",
            new_callable=AsyncMock,
            side_effect=TimeoutError("slow"),
        ), patch(f"{CONSUMER_MODULE}._send_to_dlq", new_callable=AsyncMock) as mock_dlq:
            await _handle_event(
                "platform:course-deleted",
                event,
                lambda service: service.course_deleted(7),
            )

        mock_dlq.assert_awaited_once()
        assert mock_dlq.call_args[0][0] == "platform:course-deleted"

    @pytest.mark.asyncio
    async def test_skipped_maintenance_is_not_dead_lettered(self, mock_service):
        """A False result is logged; the event is not retried or dead-lettered."""
        from notebook.backend.events.consumers.platform import _handle_event

        mock_service.course_deleted.return_value = False
        event = EventEnvelope(**_make_event_dict())

        with patch(f"{CONSUMER_MODULE}._send_to_dlq", new_callable=AsyncMock) as mock_dlq, \
             patch(f"{CONSUMER_MODULE}.logger") as mock_logger:
            await _handle_event(
                "platform:course-deleted",
                event,
                lambda service: service.course_deleted(7),
            )

        mock_dlq.assert_not_called()
        mock_logger.warning.assert_called_once()


class TestSendToDlq:
    @pytest.mark.asyncio
    async def test_publishes_on_failure(self):
        from notebook.backend.events.consumers.platform import _send_to_dlq

        mock_config = MagicMock()
        mock_config.events.dlq.enabled = True
        mock_config.events.dlq.stream_prefix = "dlq"
        mock_broker = AsyncMock()
        event = EventEnvelope(**_make_event_dict())

        with patch(f"{CONSUMER_MODULE}.get_app_config", return_value=mock_config), \
             patch(f"{CONSUMER_MODULE}.broker", mock_broker):
            await _send_to_dlq("platform:course-deleted", event, RuntimeError("processing failed"))

        payload = mock_broker.publish.call_args[0][0]
        assert payload["_dlq_error"] == "processing failed"
        assert payload["_dlq_original_stream"] == "platform:course-deleted"
        assert mock_broker.publish.call_args[1]["stream"] == "dlq:platform:course-deleted"

    @pytest.mark.asyncio
    async def test_skips_when_disabled(self):
        from notebook.backend.events.consumers.platform import _send_to_dlq

        mock_config = MagicMock()
        mock_config.events.dlq.enabled = False
        mock_broker = AsyncMock()

        with patch(f"{CONSUMER_MODULE}.get_app_config", return_value=mock_config), \
             patch(f"{CONSUMER_MODULE}.broker", mock_broker):
            await _send_to_dlq(
                "platform:course-deleted",
                EventEnvelope(**_make_event_dict()),
                RuntimeError("fail"),
            )

        mock_broker.publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_logs_error_on_publish_failure(self):
        """If DLQ publish itself fails, it should log but not raise."""
        from notebook.backend.events.consumers.platform import _send_to_dlq

        mock_config = MagicMock()
        mock_config.events.dlq.enabled = True
        mock_config.events.dlq.stream_prefix = "dlq"
        mock_broker = AsyncMock()
        mock_broker.publish.side_effect = ConnectionError("redis down")

        with patch(f"{CONSUMER_MODULE}.get_app_config", return_value=mock_config), \
             patch(f"{CONSUMER_MODULE}.broker", mock_broker), \
             patch(f"{CONSUMER_MODULE}.logger") as mock_logger:
            await _send_to_dlq(
                "platform:course-deleted",
                EventEnvelope(**_make_event_dict()),
                RuntimeError("original"),
            )

        mock_logger.error.assert_called_once()
