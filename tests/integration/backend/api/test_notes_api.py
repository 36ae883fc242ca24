"""
Integration Tests for Notes API.

Tests the notes API endpoints with a real database.
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient

AUTHOR_ID = 1


@pytest.fixture
async def campus(directory):
    await directory.course(7, "PHY101")
    await directory.module(311, course_id=7, name="Quiz 1")
    await directory.user(55, "Grace", "Hopper")
    await directory.enrol(7, 55)
    return directory


class TestCreateNote:
    """Tests for POST /api/v1/notes."""

    @pytest.mark.asyncio
    async def test_create_note_success(self, client: AsyncClient, api, campus):
        response = await client.post(
            "/api/v1/notes",
            json={"subject": "Quiz prep", "body": "<p>Chapter 3</p>", "course_id": 7, "module_id": 311},
        )

        data = api.assert_success(response, expected_status=201)
        note_id = data["data"]["id"]

        response = await client.get(f"/api/v1/notes/{note_id}")
        note = api.assert_success(response)["data"]
        assert note["course_id"] == 7
        assert note["context_name"] == "Activity"

    @pytest.mark.asyncio
    async def test_empty_body(self, client: AsyncClient, api):
        response = await client.post("/api/v1/notes", json={"subject": "s", "body": "  "})

        data = api.assert_error(response, 400, "NOTE_EMPTY_FIELD")
        assert data["error"]["details"] == {"field": "body"}

    @pytest.mark.asyncio
    async def test_missing_subject(self, client: AsyncClient, api):
        response = await client.post("/api/v1/notes", json={"body": "b"})

        api.assert_validation_error(response, field="subject")

    @pytest.mark.asyncio
    async def test_negative_scope_id(self, client: AsyncClient, api):
        response = await client.post("/api/v1/notes", json={"subject": "s", "body": "b", "course_id": -1})

        api.assert_validation_error(response, field="course_id")

    @pytest.mark.asyncio
    async def test_not_enrolled(self, client: AsyncClient, api, campus):
        await campus.user(56, "Alan", "Turing")

        response = await client.post(
            "/api/v1/notes",
            json={"subject": "s", "body": "b", "user_id": 56, "course_id": 7},
        )

        api.assert_error(response, 400, "SCOPE_NOT_ENROLLED")

    @pytest.mark.asyncio
    async def test_unknown_course(self, client: AsyncClient, api):
        response = await client.post("/api/v1/notes", json={"subject": "s", "body": "b", "course_id": 99})

        api.assert_error(response, 404, "RES_NOT_FOUND")

    @pytest.mark.asyncio
    async def test_module_without_course(self, client: AsyncClient, api, campus):
        response = await client.post("/api/v1/notes", json={"subject": "s", "body": "b", "module_id": 311})

        api.assert_error(response, 400, "SCOPE_MISMATCH")

    @pytest.mark.asyncio
    async def test_broker_outage_does_not_fail_create(self, client: AsyncClient, api, campus):
        failing = AsyncMock(side_effect=ConnectionError("redis down"))
        with patch("notebook.backend.events.publishers.NoteEventPublisher._publish", failing):
            response = await client.post("/api/v1/notes", json={"subject": "s", "body": "b", "course_id": 7})
            note_id = api.assert_success(response, expected_status=201)["data"]["id"]

            response = await client.get(f"/api/v1/notes/{note_id}")

        assert api.assert_success(response)["data"]["subject"] == "s"
        assert failing.await_count == 2


class TestCaller:
    """Tests for the acting user header."""

    @pytest.mark.asyncio
    async def test_missing_caller(self, app, api):
        from httpx import ASGITransport

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as anonymous:
            response = await anonymous.get("/api/v1/notes")

        api.assert_error(response, 401, "AUTH_UNAUTHORIZED")

    @pytest.mark.asyncio
    async def test_other_author_forbidden(self, client: AsyncClient, api, campus, as_user):
        note = await campus.note(AUTHOR_ID, course_id=7)

        response = await client.get(f"/api/v1/notes/{note.id}", headers=as_user(2))

        api.assert_error(response, 403, "NOTE_FORBIDDEN")


class TestListNotes:
    """Tests for GET /api/v1/notes."""

    @pytest.mark.asyncio
    async def test_list_notes_empty(self, client: AsyncClient, api):
        response = await client.get("/api/v1/notes")

        data = api.assert_success(response)
        assert data["data"] == []
        assert data["pagination"]["total"] == 0

    @pytest.mark.asyncio
    async def test_ranked_and_paginated(self, client: AsyncClient, api, campus):
        site = await campus.note(AUTHOR_ID)
        course_note = await campus.note(AUTHOR_ID, course_id=7)
        module_note = await campus.note(AUTHOR_ID, course_id=7, module_id=311)

        response = await client.get("/api/v1/notes", params={"module_id": 311, "limit": 2})

        data = api.assert_success(response)
        assert [n["id"] for n in data["data"]] == [module_note.id, course_note.id]
        assert data["pagination"] == {"total": 3, "limit": 2, "offset": 0, "has_more": True}

        response = await client.get("/api/v1/notes", params={"module_id": 311, "limit": 2, "offset": 2})
        data = api.assert_success(response)
        assert [n["id"] for n in data["data"]] == [site.id]
        assert data["pagination"]["has_more"] is False

    @pytest.mark.asyncio
    async def test_limit_above_max(self, client: AsyncClient, api):
        response = await client.get("/api/v1/notes", params={"limit": 101})

        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")

    @pytest.mark.asyncio
    async def test_unknown_module(self, client: AsyncClient, api):
        response = await client.get("/api/v1/notes", params={"module_id": 999})

        api.assert_error(response, 404, "RES_NOT_FOUND")


class TestSubject:
    """Tests for GET /api/v1/notes/subject."""

    @pytest.mark.asyncio
    async def test_default_subject(self, client: AsyncClient, api, campus):
        await campus.note(AUTHOR_ID, course_id=7)

        response = await client.get("/api/v1/notes/subject", params={"course_id": 7})

        assert api.assert_success(response)["data"]["subject"] == "Note 2 of the course PHY101"


class TestUpdateNote:
    """Tests for PUT /api/v1/notes/{note_id}."""

    @pytest.mark.asyncio
    async def test_update(self, client: AsyncClient, api, campus):
        note = await campus.note(AUTHOR_ID, course_id=7)

        response = await client.put(
            f"/api/v1/notes/{note.id}",
            json={"subject": "Renamed", "body": "<p>New</p>"},
        )

        assert api.assert_success(response)["data"] is True
        detail = api.assert_success(await client.get(f"/api/v1/notes/{note.id}"))["data"]
        assert detail["subject"] == "Renamed"
        assert detail["course_id"] == 7

    @pytest.mark.asyncio
    async def test_update_missing(self, client: AsyncClient, api):
        response = await client.put("/api/v1/notes/999", json={"subject": "s", "body": "b"})

        api.assert_error(response, 404, "RES_NOT_FOUND")


class TestViewed:
    @pytest.mark.asyncio
    async def test_viewed_is_repeatable(self, client: AsyncClient, api, campus):
        note = await campus.note(AUTHOR_ID)

        for _ in range(2):
            response = await client.post(f"/api/v1/notes/{note.id}/viewed")
            assert api.assert_success(response)["data"] is True


class TestDeleteNotes:
    """Tests for DELETE /api/v1/notes/{note_id} and POST /api/v1/notes/delete."""

    @pytest.mark.asyncio
    async def test_delete_note(self, client: AsyncClient, api, campus):
        note = await campus.note(AUTHOR_ID)

        response = await client.delete(f"/api/v1/notes/{note.id}")

        assert api.assert_success(response)["data"] is True
        api.assert_error(await client.get(f"/api/v1/notes/{note.id}"), 404, "RES_NOT_FOUND")

    @pytest.mark.asyncio
    async def test_batch_rejects_foreign_note(self, client: AsyncClient, api, campus):
        mine = await campus.note(AUTHOR_ID)
        theirs = await campus.note(2)

        response = await client.post("/api/v1/notes/delete", json={"note_ids": [mine.id, theirs.id]})

        api.assert_error(response, 403, "NOTE_FORBIDDEN")
        api.assert_success(await client.get(f"/api/v1/notes/{mine.id}"))

    @pytest.mark.asyncio
    async def test_batch_requires_ids(self, client: AsyncClient, api):
        response = await client.post("/api/v1/notes/delete", json={"note_ids": []})

        api.assert_validation_error(response, field="note_ids")


class TestResolveScope:
    """Tests for POST /api/v1/scope/resolve."""

    @pytest.mark.asyncio
    async def test_module_page(self, client: AsyncClient, api):
        response = await client.post(
            "/api/v1/scope/resolve",
            json={"context_level": "module", "instance_id": 311, "course_id": 7},
        )

        assert api.assert_success(response)["data"] == {"user_id": 0, "course_id": 7, "module_id": 311}

    @pytest.mark.asyncio
    async def test_own_profile_uses_caller(self, client: AsyncClient, api):
        response = await client.post(
            "/api/v1/scope/resolve",
            json={"context_level": "user", "instance_id": AUTHOR_ID},
        )

        assert api.assert_success(response)["data"] == {"user_id": 0, "course_id": 0, "module_id": 0}
