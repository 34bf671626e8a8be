"""Smoke tests for the application wiring."""
from fastapi.testclient import TestClient
from starlette.requests import Request

from homewise import __version__
from homewise.main import app
from homewise.middleware.rate_limit import client_key


def make_request(headers=None, client=("10.0.0.1", 5000)):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_root():
    data = TestClient(app).get("/").json()

    assert data["version"] == __version__
    assert data["docs"] == "/docs"


def test_health():
    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_client_key_uses_peer_address():
    assert client_key(make_request()) == "10.0.0.1"


def test_client_key_prefers_forwarded_for():
    request = make_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})

    assert client_key(request) == "203.0.113.7"
