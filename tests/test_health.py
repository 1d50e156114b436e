import pytest
from fastapi import status

from hris.core.init_system import DEFAULT_LEAVE_TYPES, init_system_data
from hris.models.leave_type import LeaveType


def test_health_check(client):
    """Test the /health endpoint returns 200 and OK status."""
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "OK"
    assert "version" in data
    assert "timestamp" in data


def test_api_health_check(client):
    """The probe is also reachable under the API prefix."""
    response = client.get("/api/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "OK"


def test_readiness_check(client):
    """Test the /readiness endpoint returns 200 and database status."""
    response = client.get("/readiness")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ready"
    assert data["components"]["database"] == "connected"


def test_root_endpoint(client):
    """Test the API root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert "Plugo HRIS" in response.json()["message"]


def test_request_id_is_echoed(client):
    """A caller-supplied correlation id comes back on the response."""
    response = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"
    assert "X-Process-Time" in response.headers


def test_api_responses_are_not_cached(client):
    response = client.get("/api/health")
    assert response.headers["Cache-Control"] == "no-cache, no-store, must-revalidate"


def test_unknown_route_uses_error_body(client):
    response = client.get("/api/does-not-exist")
    assert response.status_code == 404
    assert "error" in response.json()


def test_init_system_seeds_leave_types_once(db_session):
    """Default leave types are created only into an empty catalogue."""
    assert init_system_data(db_session) == len(DEFAULT_LEAVE_TYPES)
    assert db_session.query(LeaveType).filter(LeaveType.name == "Annual Leave").count() == 1
    assert init_system_data(db_session) == 0
