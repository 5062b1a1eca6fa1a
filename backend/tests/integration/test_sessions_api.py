"""
Integration tests for the study session and analytics HTTP API.

Exercises the routers, dependencies and error handling end to end over
httpx against a per-test SQLite database.
"""

import httpx
import pytest

from tests.conftest import OTHER_USER_ID, FrozenClock, TaskFactory

pytestmark = pytest.mark.integration


# =============================================================================
# Health
# =============================================================================


class TestHealthEndpoints:
    @pytest.mark.asyncio
    async def test_health(self, async_test_client: httpx.AsyncClient) -> None:
        response = await async_test_client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_ready(self, async_test_client: httpx.AsyncClient) -> None:
        response = await async_test_client.get("/api/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready"}


# =============================================================================
# Authentication
# =============================================================================


class TestAuthentication:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/sessions"),
            ("GET", "/api/sessions/active"),
            ("GET", "/api/analytics"),
        ],
    )
    async def test_missing_user_is_unauthorized(
        self, async_test_client: httpx.AsyncClient, method: str, path: str
    ) -> None:
        response = await async_test_client.request(method, path, headers={"X-User-Id": ""})

        assert response.status_code == 401


# =============================================================================
# Session Lifecycle
# =============================================================================


class TestSessionLifecycle:
    """Start → complete → list → analytics over HTTP."""

    @pytest.mark.asyncio
    async def test_full_flow(
        self,
        async_test_client: httpx.AsyncClient,
        make_task: TaskFactory,
        clock: FrozenClock,
    ) -> None:
        task = await make_task(estimated_hours=1.0)

        # Start
        response = await async_test_client.post("/api/sessions", json={"task_id": task.id})
        assert response.status_code == 201
        started = response.json()
        assert started["task_id"] == task.id
        assert started["start_time"].startswith("2024-03-15T15:00:00")
        session_id = started["id"]

        # Active session is visible for timer resume
        response = await async_test_client.get("/api/sessions/active")
        assert response.status_code == 200
        assert response.json()["id"] == session_id
        assert response.json()["state"] == "active"

        # Complete after 50 minutes
        clock.advance(minutes=50, seconds=20)
        response = await async_test_client.put(
            f"/api/sessions/{session_id}",
            json={"pomodoros_completed": 2, "was_completed": True, "notes": "Chapter 3 done"},
        )
        assert response.status_code == 200
        completed = response.json()
        assert completed["total_minutes"] == 50
        assert completed["state"] == "completed"
        assert completed["notes"] == "Chapter 3 done"
        assert completed["task_updated"] is True
        assert completed["warnings"] == []

        # No longer active
        response = await async_test_client.get("/api/sessions/active")
        assert response.status_code == 200
        assert response.json() is None

        # Listed with the credited task
        response = await async_test_client.get("/api/sessions")
        assert response.status_code == 200
        sessions = response.json()
        assert [s["id"] for s in sessions] == [session_id]
        assert sessions[0]["task"]["actual_hours"] == pytest.approx(50 / 60)

        # Analytics reflect the finished session
        response = await async_test_client.get("/api/analytics")
        assert response.status_code == 200
        analytics = response.json()
        assert analytics["summary"]["total_pomodoros"] == 2
        assert analytics["summary"]["weekly_pomodoros"] == 2
        assert analytics["summary"]["sessions_count"] == 1
        assert analytics["summary"]["current_streak"] == 1
        assert analytics["most_productive_hour"] == 15
        assert len(analytics["daily_hours"]) == 7
        assert analytics["task_accuracy"][0]["task_id"] == task.id
        assert "You've completed 2 Pomodoros this week!" in analytics["insights"]

    @pytest.mark.asyncio
    async def test_second_start_conflicts(
        self, async_test_client: httpx.AsyncClient, make_task: TaskFactory
    ) -> None:
        task = await make_task()
        first = await async_test_client.post("/api/sessions", json={"task_id": task.id})
        assert first.status_code == 201

        response = await async_test_client.post("/api/sessions", json={"task_id": task.id})

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "conflict"
        assert body["message"] == "You already have an active session"
        assert "error_id" in body
        assert "timestamp" in body

    @pytest.mark.asyncio
    async def test_recompletion_is_not_found(
        self, async_test_client: httpx.AsyncClient, make_task: TaskFactory
    ) -> None:
        task = await make_task()
        started = (
            await async_test_client.post("/api/sessions", json={"task_id": task.id})
        ).json()
        body = {"pomodoros_completed": 1, "was_completed": True}

        first = await async_test_client.put(f"/api/sessions/{started['id']}", json=body)
        second = await async_test_client.put(f"/api/sessions/{started['id']}", json=body)

        assert first.status_code == 200
        assert second.status_code == 404
        assert second.json()["error"] == "session_already_ended"

    @pytest.mark.asyncio
    async def test_cancel(
        self,
        async_test_client: httpx.AsyncClient,
        make_task: TaskFactory,
        clock: FrozenClock,
    ) -> None:
        task = await make_task()
        started = (
            await async_test_client.post("/api/sessions", json={"task_id": task.id})
        ).json()
        clock.advance(minutes=7)

        response = await async_test_client.put(
            f"/api/sessions/{started['id']}", json={"was_completed": False}
        )

        assert response.status_code == 200
        assert response.json()["state"] == "cancelled"
        assert response.json()["pomodoros_completed"] == 0
        assert response.json()["total_minutes"] == 7

    @pytest.mark.asyncio
    async def test_other_users_session_is_not_found(
        self, async_test_client: httpx.AsyncClient, make_task: TaskFactory
    ) -> None:
        task = await make_task()
        started = (
            await async_test_client.post("/api/sessions", json={"task_id": task.id})
        ).json()

        response = await async_test_client.put(
            f"/api/sessions/{started['id']}",
            json={"was_completed": True},
            headers={"X-User-Id": OTHER_USER_ID},
        )

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


# =============================================================================
# Request Validation
# =============================================================================


class TestRequestValidation:
    @pytest.mark.asyncio
    async def test_unknown_task_is_not_found(
        self, async_test_client: httpx.AsyncClient
    ) -> None:
        response = await async_test_client.post("/api/sessions", json={"task_id": "nope"})

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_blank_task_id_is_rejected(
        self, async_test_client: httpx.AsyncClient
    ) -> None:
        response = await async_test_client.post("/api/sessions", json={"task_id": "  "})

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_unknown_fields_are_rejected(
        self, async_test_client: httpx.AsyncClient, make_task: TaskFactory
    ) -> None:
        task = await make_task()

        response = await async_test_client.post(
            "/api/sessions",
            json={"task_id": task.id, "start_time": "2024-01-01T00:00:00Z"},
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_negative_pomodoros_rejected(
        self, async_test_client: httpx.AsyncClient, make_task: TaskFactory
    ) -> None:
        task = await make_task()
        started = (
            await async_test_client.post("/api/sessions", json={"task_id": task.id})
        ).json()

        response = await async_test_client.put(
            f"/api/sessions/{started['id']}",
            json={"pomodoros_completed": -1, "was_completed": True},
        )

        assert response.status_code == 422

        active = await async_test_client.get("/api/sessions/active")
        assert active.json()["id"] == started["id"]


# =============================================================================
# OpenAPI Contract
# =============================================================================


class TestOpenApiContract:
    @pytest.mark.asyncio
    async def test_routes_and_error_schema_published(
        self, async_test_client: httpx.AsyncClient
    ) -> None:
        response = await async_test_client.get("/openapi.json")

        assert response.status_code == 200
        schema = response.json()
        assert {"/api/sessions", "/api/sessions/{session_id}", "/api/sessions/active", "/api/analytics"} <= set(
            schema["paths"]
        )
        assert "ErrorDetail" in schema["components"]["schemas"]
        start = schema["paths"]["/api/sessions"]["post"]
        assert {"201", "404", "409"} <= set(start["responses"])
