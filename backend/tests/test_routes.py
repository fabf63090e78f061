"""
ScopeNotes Backend — API Route Integration Tests
==================================================

What:  HTTP-level tests for every endpoint, through the full middleware
       chain and exception handlers.
How:   HTTPX AsyncClient against create_app() with the per-test database
       and job queue from conftest.py.
"""

import pytest

CATEGORY_1 = {"CategoryId": "1"}


class TestListNotes:

    @pytest.mark.asyncio
    async def test_lists_completed_notes_of_header_category(self, test_client):
        response = await test_client.get("/api/notes", headers=CATEGORY_1)

        assert response.status_code == 200
        data = response.json()
        assert sorted(note["id"] for note in data) == [2, 3]
        assert all(note["category_id"] == 1 for note in data)

    @pytest.mark.asyncio
    async def test_lowercase_header_name(self, test_client):
        response = await test_client.get("/api/notes", headers={"categoryid": "2"})

        assert response.status_code == 200
        assert [note["id"] for note in response.json()] == [4]

    @pytest.mark.asyncio
    async def test_signed_header_value(self, test_client):
        response = await test_client.get("/api/notes", headers={"CategoryId": "+1"})

        assert response.status_code == 200
        assert sorted(note["id"] for note in response.json()) == [2, 3]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"CategoryId": "abc"},
            {"CategoryId": ""},
            {"CategoryId": "999"},
            {"CategoryId": "99999999999999999999"},
        ],
        ids=["missing", "non-numeric", "empty", "unknown", "oversized"],
    )
    async def test_unresolvable_scope_is_bad_request(self, test_client, headers):
        response = await test_client.get("/api/notes", headers=headers)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "scope_resolution_error"
        assert data["message"]
        assert data["request_id"]


class TestDeleteCompletedNotes:

    @pytest.mark.asyncio
    async def test_deletes_and_reports_count(self, test_client):
        response = await test_client.delete("/api/notes/completed", headers=CATEGORY_1)

        assert response.status_code == 200
        assert response.json() == {"category_id": 1, "deleted_count": 2}

        listed = await test_client.get("/api/notes", headers=CATEGORY_1)
        assert listed.json() == []

    @pytest.mark.asyncio
    async def test_second_delete_removes_nothing(self, test_client):
        await test_client.delete("/api/notes/completed", headers=CATEGORY_1)
        response = await test_client.delete("/api/notes/completed", headers=CATEGORY_1)

        assert response.json()["deleted_count"] == 0

    @pytest.mark.asyncio
    async def test_other_category_is_untouched(self, test_client):
        await test_client.delete("/api/notes/completed", headers=CATEGORY_1)

        response = await test_client.get("/api/categories/2")
        assert [note["id"] for note in response.json()["notes"]] == [4, 5]

    @pytest.mark.asyncio
    async def test_unknown_category_is_bad_request(self, test_client):
        response = await test_client.delete("/api/notes/completed", headers={"CategoryId": "999"})

        assert response.status_code == 400


class TestRunCleanupTask:

    @pytest.mark.asyncio
    async def test_queues_job_and_returns_202(self, test_client, job_queue):
        response = await test_client.post("/api/notes/run-cleanup-task", headers=CATEGORY_1)

        assert response.status_code == 202
        data = response.json()
        assert data["message"] == "Cleanup task triggered"
        assert data["category_id"] == 1
        assert data["job_id"]

        await job_queue.join()

        listed = await test_client.get("/api/notes", headers=CATEGORY_1)
        assert listed.json() == []

        status = await test_client.get(f"/api/jobs/{data['job_id']}")
        assert status.status_code == 200
        assert status.json()["status"] == "succeeded"
        assert status.json()["args"] == [1]

    @pytest.mark.asyncio
    async def test_unknown_category_is_accepted_then_fails(self, test_client, job_queue):
        response = await test_client.post(
            "/api/notes/run-cleanup-task", headers={"CategoryId": "999"}
        )
        assert response.status_code == 202

        await job_queue.join()

        status = await test_client.get(f"/api/jobs/{response.json()['job_id']}")
        body = status.json()
        assert body["status"] == "failed"
        assert body["attempts"] == 1
        assert body["error"]

        listed = await test_client.get("/api/notes", headers=CATEGORY_1)
        assert sorted(note["id"] for note in listed.json()) == [2, 3]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "headers",
        [{}, {"CategoryId": "one"}, {"CategoryId": "99999999999999999999"}],
        ids=["missing", "non-numeric", "oversized"],
    )
    async def test_malformed_header_queues_nothing(self, test_client, job_queue, headers):
        response = await test_client.post("/api/notes/run-cleanup-task", headers=headers)

        assert response.status_code == 400
        assert response.json()["error"] == "scope_resolution_error"
        assert job_queue.pending == 0

    @pytest.mark.asyncio
    async def test_stopped_queue_is_service_unavailable(self, test_client, job_queue):
        await job_queue.stop()

        response = await test_client.post("/api/notes/run-cleanup-task", headers=CATEGORY_1)

        assert response.status_code == 503
        assert response.json()["error"] == "job_queue_unavailable"


class TestCategoriesAndJobs:

    @pytest.mark.asyncio
    async def test_get_category_with_notes(self, test_client):
        response = await test_client.get("/api/categories/1")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Category 1"
        assert [note["id"] for note in data["notes"]] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_unknown_category_is_not_found(self, test_client):
        response = await test_client.get("/api/categories/999")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_unknown_job_is_not_found(self, test_client):
        response = await test_client.get("/api/jobs/does-not-exist")

        assert response.status_code == 404


class TestMiddlewareAndHealth:

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        response = await test_client.get("/api/notes", headers={**CATEGORY_1, "X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_request_id_is_generated(self, test_client):
        response = await test_client.get("/health")

        assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert data["job_queue"] == "running"
