"""Health and metrics endpoints."""

from fastapi import status


def test_health_reports_database(client):
    response = client.get("/api/v1/health")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "ok"
    assert body["service"] == "classbook-api"
    assert body["environment"] == "test"


def test_health_needs_no_token(client):
    assert client.get("/api/v1/health").status_code == status.HTTP_200_OK


def test_metrics_exposition(client):
    client.get("/api/v1/health")

    response = client.get("/api/v1/metrics")

    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith("text/plain")
    assert "classbook_http_request_duration_seconds" in response.text


def test_unknown_route_is_problem_json(client):
    response = client.get("/api/v1/nope")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["status"] == 404
    assert response.json()["title"] == "Not Found"
