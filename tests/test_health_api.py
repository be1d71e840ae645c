"""Health, smoke-test and cross-cutting middleware behaviour."""

from newsdesk.middleware.logging import level_for
from newsdesk.middleware.rate_limit import is_rate_limited_path


async def test_health_reports_database_and_store(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["content_store"] == "memory"


async def test_api_test(client):
    response = await client.get("/api/test")

    assert response.json() == {"message": "API is working"}


async def test_request_id_is_echoed(client):
    response = await client.get("/api/test", headers={"X-Request-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


async def test_bogus_request_id_is_replaced(client):
    response = await client.get("/api/test", headers={"X-Request-ID": "bad id with spaces"})

    assert response.headers["X-Request-ID"] != "bad id with spaces"


async def test_error_body_carries_request_id(client):
    response = await client.get("/uploads/nonexistent.png", headers={"X-Request-ID": "trace-1"})

    assert response.status_code == 404
    assert response.json()["request_id"] == "trace-1"


def test_rate_limit_exclusions():
    assert not is_rate_limited_path("/health")
    assert not is_rate_limited_path("/uploads/1-icon.png")
    assert is_rate_limited_path("/api/blogs")


def test_log_levels():
    assert level_for("/api/blogs", 500) > level_for("/api/blogs", 404) > level_for("/api/blogs", 200)
