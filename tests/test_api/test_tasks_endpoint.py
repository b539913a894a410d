"""Tests for the task routes."""

import pytest
from datetime import datetime, timedelta, timezone
from src.models.enums import TaskPriority, TaskStatus
from src.services.rate_limiter import RateLimiter
from src.services.router import TaskAPI
from src.utils.errors import PersistenceError
from tests.utils.assertions import assert_error_response, assert_valid_response, assert_valid_task
from tests.utils.factories import make_task
from tests.utils.helpers import create_api_request, response_json


@pytest.mark.api
@pytest.mark.asyncio
async def test_create_task_returns_201(task_api, task_store, sample_task_payload):
    """Test POST /tasks with a full payload."""
    response = await task_api.dispatch(create_api_request("POST", body=sample_task_payload))

    assert_valid_response(response, 201)
    body = response_json(response)
    assert body["success"] is True
    task = body["data"]
    assert_valid_task(task)
    assert task["title"] == "Submit thesis draft"
    assert task["status"] == "IN_PROGRESS"
    assert task["priority"] == "high"
    assert datetime.fromisoformat(task["dueDate"]) == datetime(2024, 12, 15, 17, tzinfo=timezone.utc)
    assert task["id"] in task_store.tasks


@pytest.mark.api
@pytest.mark.asyncio
async def test_create_task_defaults(task_api):
    """Test a title-only payload gets default status and priority."""
    response = await task_api.dispatch(create_api_request("POST", body={"title": "Email advisor"}))

    task = response_json(response)["data"]
    assert task["status"] == "TODO"
    assert task["priority"] == "medium"
    assert task["dueDate"] is None


@pytest.mark.api
@pytest.mark.asyncio
@pytest.mark.parametrize("body,field", [
    ({}, "title"),
    ({"title": "   "}, "title"),
    ({"title": 42}, "title"),
    ({"title": "ok", "dueDate": "next tuesday"}, "dueDate"),
    ({"title": "ok", "status": 1}, "status"),
])
async def test_create_task_validation_errors(task_api, task_store, body, field):
    """Test invalid payloads are rejected before persisting."""
    response = await task_api.dispatch(create_api_request("POST", body=body))

    assert_error_response(response, 400, field=field)
    assert task_store.tasks == {}


@pytest.mark.api
@pytest.mark.asyncio
async def test_invalid_status_lists_valid_options(task_api):
    """Test enumeration errors echo the options and the received value."""
    response = await task_api.dispatch(create_api_request("POST", body={"title": "ok", "status": "done"}))

    body = assert_error_response(response, 400, field="status")
    assert body["validOptions"] == ["TODO", "IN_PROGRESS", "DONE"]
    assert body["receivedValue"] == "done"


@pytest.mark.api
@pytest.mark.asyncio
async def test_malformed_json_is_400(task_api):
    """Test an unparseable body."""
    response = await task_api.dispatch(create_api_request("POST", body="{not json"))

    assert_error_response(response, 400, field="body")


@pytest.mark.api
@pytest.mark.asyncio
async def test_oversized_body_is_413(task_api):
    """Test bodies over the size cap."""
    response = await task_api.dispatch(create_api_request("POST", body='{"title": "' + "x" * 20000 + '"}'))

    assert_error_response(response, 413)


@pytest.mark.api
@pytest.mark.asyncio
async def test_list_empty_store(task_api):
    """Test GET /tasks on an empty store."""
    response = await task_api.dispatch(create_api_request("GET", query={"page": "1", "limit": "10"}))

    assert_valid_response(response, 200)
    assert response_json(response) == {
        "success": True,
        "data": [],
        "pagination": {"total": 0, "page": 1, "limit": 10, "totalPages": 0},
    }


@pytest.mark.api
@pytest.mark.asyncio
async def test_list_filters_from_query_string(task_api, task_store):
    """Test filters parsed from the request path when no query dict is given."""
    done = task_store.add(make_task(status=TaskStatus.DONE, priority=TaskPriority.HIGH))
    task_store.add(make_task(status=TaskStatus.TODO))
    request = create_api_request("GET", path="/api/v1/tasks?status=DONE&priority=high&limit=5")
    request["query"] = None

    response = await task_api.dispatch(request)

    body = response_json(response)
    assert [task["id"] for task in body["data"]] == [done.id]
    assert body["pagination"] == {"total": 1, "page": 1, "limit": 5, "totalPages": 1}


@pytest.mark.api
@pytest.mark.asyncio
async def test_list_overdue(task_api, task_store):
    """Test the overdue filter against the real clock."""
    now = datetime.now(timezone.utc)
    overdue = task_store.add(make_task(due_date=now - timedelta(days=2)))
    task_store.add(make_task(due_date=now + timedelta(days=2)))
    task_store.add(make_task())

    response = await task_api.dispatch(create_api_request("GET", query={"dateFilter": "overdue"}))

    assert [task["id"] for task in response_json(response)["data"]] == [overdue.id]


@pytest.mark.api
@pytest.mark.asyncio
@pytest.mark.parametrize("query,field", [
    ({"status": "done"}, "status"),
    ({"priority": "urgent"}, "priority"),
    ({"dateFilter": "yesterday"}, "dateFilter"),
    ({"page": "0"}, "page"),
    ({"limit": "abc"}, "limit"),
])
async def test_list_rejects_bad_parameters(task_api, query, field):
    """Test invalid query parameters."""
    response = await task_api.dispatch(create_api_request("GET", query=query))

    assert_error_response(response, 400, field=field)


@pytest.mark.api
@pytest.mark.asyncio
async def test_update_task(task_api, task_store):
    """Test PATCH /tasks/{id} applies only supplied fields."""
    existing = task_store.add(make_task(title="Draft abstract", priority=TaskPriority.LOW))

    response = await task_api.dispatch(
        create_api_request("PATCH", path=f"/api/v1/tasks/{existing.id}", body={"status": "DONE"})
    )

    assert_valid_response(response, 200)
    task = response_json(response)["data"]
    assert task["status"] == "DONE"
    assert task["title"] == "Draft abstract"
    assert task["priority"] == "low"


@pytest.mark.api
@pytest.mark.asyncio
async def test_update_unknown_task_is_404(task_api):
    """Test PATCH on a missing id."""
    response = await task_api.dispatch(
        create_api_request("PATCH", path="/api/v1/tasks/does-not-exist", body={"status": "DONE"})
    )

    assert_error_response(response, 404)


@pytest.mark.api
@pytest.mark.asyncio
async def test_update_validation_error(task_api, task_store):
    """Test PATCH with an out-of-enumeration priority."""
    existing = task_store.add(make_task())

    response = await task_api.dispatch(
        create_api_request("PATCH", path=f"/api/v1/tasks/{existing.id}", body={"priority": "urgent"})
    )

    body = assert_error_response(response, 400, field="priority")
    assert body["validOptions"] == ["low", "medium", "high"]


@pytest.mark.api
@pytest.mark.asyncio
async def test_delete_task_returns_204(task_api, task_store):
    """Test DELETE removes the task and returns an empty body."""
    existing = task_store.add(make_task())

    response = await task_api.dispatch(create_api_request("DELETE", path=f"/api/v1/tasks/{existing.id}"))

    assert response["statusCode"] == 204
    assert response["body"] == ""
    assert existing.id not in task_store.tasks

    again = await task_api.dispatch(create_api_request("DELETE", path=f"/api/v1/tasks/{existing.id}"))
    assert_error_response(again, 404)


@pytest.mark.api
@pytest.mark.asyncio
async def test_store_failure_is_500(task_api, task_store):
    """Test persistence failures map to a server error."""
    task_store.fail_with = PersistenceError("Failed to fetch tasks", details="timeout")

    response = await task_api.dispatch(create_api_request("GET"))

    body = assert_error_response(response, 500)
    assert body["error"] == "Failed to fetch tasks"
    assert "details" not in body


@pytest.mark.api
@pytest.mark.asyncio
async def test_unknown_route_and_method(task_api):
    """Test 404 for unknown paths and 405 for unsupported methods."""
    missing = await task_api.dispatch(create_api_request("GET", path="/api/v1/projects"))
    wrong_method = await task_api.dispatch(create_api_request("PUT", path="/api/v1/tasks"))

    assert_error_response(missing, 404)
    assert_error_response(wrong_method, 405)
    assert wrong_method["headers"]["Allow"] == "GET, POST"


@pytest.mark.api
@pytest.mark.asyncio
async def test_preflight_and_common_headers(task_api):
    """Test OPTIONS preflight and headers present on every response."""
    preflight = await task_api.dispatch(create_api_request("OPTIONS", path="/api/v1/tasks"))
    listing = await task_api.dispatch(create_api_request("GET"))

    assert preflight["statusCode"] == 204
    for response in (preflight, listing):
        headers = response["headers"]
        assert headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
        assert "PATCH" in headers["Access-Control-Allow-Methods"]
        assert headers["X-Content-Type-Options"] == "nosniff"
        assert headers["X-Correlation-ID"]


@pytest.mark.api
@pytest.mark.asyncio
async def test_correlation_id_is_echoed(task_api):
    """Test a valid inbound correlation id is reused."""
    request = create_api_request("GET", headers={"X-Correlation-ID": "req-123"})

    response = await task_api.dispatch(request)

    assert response["headers"]["X-Correlation-ID"] == "req-123"


@pytest.mark.api
@pytest.mark.asyncio
async def test_rate_limit(task_store):
    """Test the 429 response once a client exhausts its quota."""
    api = TaskAPI(task_store, rate_limiter=RateLimiter(max_requests=2, window_seconds=900))

    first = await api.dispatch(create_api_request("GET", client_ip="10.1.1.1"))
    await api.dispatch(create_api_request("GET", client_ip="10.1.1.1"))
    limited = await api.dispatch(create_api_request("GET", client_ip="10.1.1.1"))
    other = await api.dispatch(create_api_request("GET", client_ip="10.1.1.2"))

    assert first["headers"]["RateLimit-Limit"] == "2"
    assert first["headers"]["RateLimit-Remaining"] == "1"
    body = assert_error_response(limited, 429)
    assert body["error"] == "Too many requests, please try again later"
    assert int(limited["headers"]["Retry-After"]) > 0
    assert other["statusCode"] == 200


@pytest.mark.api
@pytest.mark.asyncio
async def test_api_docs(task_api):
    """Test the OpenAPI document is served."""
    response = await task_api.dispatch(create_api_request("GET", path="/api-docs"))

    assert_valid_response(response, 200)
    assert response_json(response)["openapi"] == "3.0.0"


@pytest.mark.api
def test_handle_runs_dispatch_synchronously(task_api):
    """Test the synchronous entry point."""
    response = task_api.handle(create_api_request("GET"))

    assert_valid_response(response, 200)


@pytest.mark.api
@pytest.mark.asyncio
@pytest.mark.parametrize("environment,exposed", [("production", False), ("development", True)])
async def test_persistence_details_only_in_development(task_store, monkeypatch, environment, exposed):
    """Test raw database error text reaches clients only in development."""
    monkeypatch.setattr("src.services.router.AppConfig.ENVIRONMENT", environment)
    task_store.fail_with = PersistenceError("Failed to fetch tasks", details="pg: password auth failed")

    response = await TaskAPI(task_store).dispatch(create_api_request("GET"))

    body = assert_error_response(response, 500)
    assert ("details" in body) is exposed


@pytest.mark.api
@pytest.mark.asyncio
async def test_rate_limit_ignores_forwarded_for_by_default(task_store):
    """Test rotating X-Forwarded-For values does not reset a client's quota."""
    api = TaskAPI(task_store, rate_limiter=RateLimiter(max_requests=2, window_seconds=900))

    codes = []
    for hop in range(6):
        request = create_api_request(
            "GET",
            headers={"X-Forwarded-For": f"203.0.113.{hop}"},
            client_ip="10.0.0.1",
        )
        codes.append((await api.dispatch(request))["statusCode"])

    assert codes == [200, 200, 429, 429, 429, 429]


@pytest.mark.api
@pytest.mark.asyncio
async def test_rate_limit_uses_forwarded_for_behind_trusted_proxy(task_store, monkeypatch):
    """Test the first forwarded hop is the key when the proxy is trusted."""
    monkeypatch.setattr("src.services.router.AppConfig.TRUST_PROXY", True)
    api = TaskAPI(task_store, rate_limiter=RateLimiter(max_requests=1, window_seconds=900))

    first = await api.dispatch(create_api_request(
        "GET", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.2"}, client_ip="10.0.0.2"))
    second = await api.dispatch(create_api_request(
        "GET", headers={"X-Forwarded-For": "203.0.113.8, 10.0.0.2"}, client_ip="10.0.0.2"))
    repeat = await api.dispatch(create_api_request(
        "GET", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.2"}, client_ip="10.0.0.2"))

    assert [first["statusCode"], second["statusCode"], repeat["statusCode"]] == [200, 200, 429]


@pytest.mark.api
@pytest.mark.asyncio
async def test_serverless_function_paths_are_routed(task_api, task_store):
    """Test the paths the api/ functions receive reach the same handlers."""
    existing = task_store.add(make_task(title="Grade quizzes"))

    listing = await task_api.dispatch(create_api_request("GET", path="/api/tasks"))
    created = await task_api.dispatch(create_api_request("POST", path="/api/tasks", body={"title": "Office hours"}))
    updated = await task_api.dispatch(
        create_api_request("PATCH", path=f"/api/tasks/{existing.id}", body={"status": "DONE"})
    )
    deleted = await task_api.dispatch(create_api_request("DELETE", path=f"/api/tasks/{existing.id}"))
    docs = await task_api.dispatch(create_api_request("GET", path="/api/docs"))

    assert listing["statusCode"] == 200
    assert created["statusCode"] == 201
    assert response_json(updated)["data"]["status"] == "DONE"
    assert deleted["statusCode"] == 204
    assert response_json(docs)["openapi"] == "3.0.0"
